"""
Authentication and account schemas.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from src.kernel.models.user import UserRole


class TenantRegister(BaseModel):
    """Sign-up of a new driving school and its first (admin) user."""

    tenant_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if not any(c.isupper() for c in v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not any(c.islower() for c in v):
            raise ValueError("Password must contain at least one lowercase letter")
        if not any(c.isdigit() for c in v):
            raise ValueError("Password must contain at least one digit")
        return v


class UserLogin(BaseModel):
    """User login request."""

    email: EmailStr
    password: str


class UserResponse(BaseModel):
    """User account response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    email: str
    role: UserRole
    created_at: Optional[datetime] = None


class TokenResponse(BaseModel):
    """Issued credential plus the account it belongs to."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class PrincipalResponse(BaseModel):
    """The principal resolved for the current request."""

    model_config = ConfigDict(from_attributes=True)

    subject_id: uuid.UUID
    tenant_id: uuid.UUID
    role: UserRole
    email: Optional[str] = None
    issued_at: datetime
    expires_at: datetime


class RoleChangeRequest(BaseModel):
    role: UserRole
