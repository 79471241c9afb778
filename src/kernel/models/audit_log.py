"""
Immutable audit trail of privileged mutations.

Rows are written once, after the mutation they describe has committed, and
are never updated or deleted. Every row is tenant-scoped.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

from sqlalchemy import JSON, DateTime, Index, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.kernel.models.base import Base, generate_uuid

if TYPE_CHECKING:
    from src.kernel.models.user import User


class AuditAction(str, Enum):
    """Audit action taxonomy."""

    STUDENT_CREATED = "student.created"
    STUDENT_UPDATED = "student.updated"
    STUDENT_ARCHIVED = "student.archived"
    STUDENT_RESTORED = "student.restored"
    STUDENT_DELETED = "student.deleted"
    STUDENT_HOURS_UPDATED = "student.hours_updated"

    USER_ROLE_CHANGED = "user.role_changed"


class AuditLog(Base):
    """
    One immutable fact about a privileged state change.

    No foreign keys: a record must outlive the actor and the entity it
    describes (e.g. ``student.deleted``).
    """

    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        nullable=False,
    )
    actor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        nullable=False,
    )
    action: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    entity_type: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    entity_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    # "metadata" is reserved on declarative classes
    details: Mapped[Dict[str, Any]] = mapped_column(
        "metadata",
        JSON,
        nullable=False,
        default=dict,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        nullable=False,
    )

    # Read-only; None once the account is gone or if it belongs to another tenant.
    actor: Mapped[Optional["User"]] = relationship(
        "User",
        primaryjoin="and_(foreign(AuditLog.actor_id) == User.id, "
        "foreign(AuditLog.tenant_id) == User.tenant_id)",
        viewonly=True,
        lazy="joined",
    )

    __table_args__ = (
        Index("ix_audit_logs_tenant_created", "tenant_id", "created_at"),
        Index("ix_audit_logs_tenant_entity", "tenant_id", "entity_type", "entity_id"),
        Index("ix_audit_logs_tenant_actor", "tenant_id", "actor_id"),
    )

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} {self.entity_type}:{self.entity_id}>"
