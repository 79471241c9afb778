"""
Kernel Data Models

Core SQLAlchemy models: tenants, the identity store, tenant-owned student
records, and the append-only audit trail.
"""

from src.kernel.models.base import (
    ArchivableMixin,
    Base,
    TenantOwnedMixin,
    TimestampMixin,
    generate_uuid,
)
from src.kernel.models.tenant import Tenant
from src.kernel.models.user import User, UserRole
from src.kernel.models.student import LicenseType, Student, StudentStatus
from src.kernel.models.audit_log import AuditAction, AuditLog

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "TenantOwnedMixin",
    "ArchivableMixin",
    "generate_uuid",
    # Tenancy & identity
    "Tenant",
    "User",
    "UserRole",
    # Students
    "Student",
    "StudentStatus",
    "LicenseType",
    # Audit
    "AuditLog",
    "AuditAction",
]
