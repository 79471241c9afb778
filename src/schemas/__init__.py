"""
Pydantic schemas for API request/response validation.
"""

from src.schemas.auth import (
    PrincipalResponse,
    RoleChangeRequest,
    TenantRegister,
    TokenResponse,
    UserLogin,
    UserResponse,
)
from src.schemas.student import (
    HoursResponse,
    MinutesRequest,
    StudentCreate,
    StudentResponse,
    StudentUpdate,
)
from src.schemas.audit import AuditActorResponse, AuditRecordResponse
from src.schemas.common import (
    ErrorResponse,
    HealthResponse,
    ValidationErrorResponse,
)

__all__ = [
    # Auth
    "TenantRegister",
    "UserLogin",
    "UserResponse",
    "TokenResponse",
    "PrincipalResponse",
    "RoleChangeRequest",
    # Students
    "StudentCreate",
    "StudentUpdate",
    "StudentResponse",
    "MinutesRequest",
    "HoursResponse",
    # Audit
    "AuditActorResponse",
    "AuditRecordResponse",
    # Common
    "ErrorResponse",
    "HealthResponse",
    "ValidationErrorResponse",
]
