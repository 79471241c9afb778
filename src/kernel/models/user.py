"""
User model: the identity store the principal resolver reads from.
"""

import uuid
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.kernel.models.base import Base, TenantOwnedMixin, TimestampMixin, generate_uuid

if TYPE_CHECKING:
    from src.kernel.models.tenant import Tenant


class UserRole(str, Enum):
    """Closed set of roles inside a tenant."""
    ADMIN = "ADMIN"
    SECRETARY = "SECRETARY"
    INSTRUCTOR = "INSTRUCTOR"
    STUDENT = "STUDENT"


class User(Base, TenantOwnedMixin, TimestampMixin):
    """User account model."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    role: Mapped[UserRole] = mapped_column(
        String(50),
        default=UserRole.STUDENT,
        nullable=False,
    )

    tenant: Mapped["Tenant"] = relationship(
        "Tenant",
        back_populates="users",
    )

    def __repr__(self) -> str:
        return f"<User {self.email}>"
