"""
Tenant model: one driving school.
"""

import uuid
from typing import TYPE_CHECKING, List

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.kernel.models.base import Base, TimestampMixin, generate_uuid

if TYPE_CHECKING:
    from src.kernel.models.user import User


class Tenant(Base, TimestampMixin):
    """An isolated organization. All business data belongs to exactly one tenant."""

    __tablename__ = "tenants"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    users: Mapped[List["User"]] = relationship(
        "User",
        back_populates="tenant",
    )

    def __repr__(self) -> str:
        return f"<Tenant {self.name}>"
