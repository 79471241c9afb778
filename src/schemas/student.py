"""
Student record schemas.

None of these carry a tenant field: the tenant always comes from the
authenticated principal. Unknown keys in a payload (``tenantId``,
``tenant_id``) are ignored.
"""

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from src.kernel.models.student import LicenseType, StudentStatus


class StudentBase(BaseModel):
    birth_name: str = Field(..., min_length=1, max_length=255)
    first_name: str = Field(..., min_length=1, max_length=255)
    birth_date: date
    birth_city: str = Field(..., min_length=1, max_length=255)
    birth_zip_code: Optional[str] = Field(None, max_length=10)
    birth_country: str = Field("FRANCE", max_length=100)
    address: str = Field(..., min_length=1, max_length=500)
    city: str = Field(..., min_length=1, max_length=255)
    zip_code: str = Field(..., min_length=1, max_length=10)
    phone: str = Field(..., min_length=6, max_length=30)

    neph: Optional[str] = Field(None, max_length=20)
    e_photo_code: Optional[str] = Field(None, max_length=50)
    has_id_card: bool = False
    has_proof_of_address: bool = False
    has_assr2: bool = False
    has_jdc_certificate: bool = False
    has_census_certificate: bool = False
    needs_medical_opinion: bool = False
    has_medical_opinion: bool = False

    license_type: LicenseType = LicenseType.B

    guardian_name: Optional[str] = Field(None, max_length=255)
    guardian_phone: Optional[str] = Field(None, max_length=30)
    guardian_email: Optional[EmailStr] = None
    guardian_relation: Optional[str] = Field(None, max_length=100)


class StudentCreate(StudentBase):
    """Creates the student's login account and the student record together."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    status: StudentStatus = StudentStatus.PROSPECT
    minutes_purchased: int = Field(0, ge=0)


# Columns of the students table that accept NULL; no other field may be cleared.
NULLABLE_FIELDS = frozenset({
    "birth_zip_code",
    "neph",
    "e_photo_code",
    "guardian_name",
    "guardian_phone",
    "guardian_email",
    "guardian_relation",
})


class StudentUpdate(BaseModel):
    """Partial update. Driving minutes change only through the hours endpoints."""

    email: Optional[EmailStr] = None
    birth_name: Optional[str] = Field(None, min_length=1, max_length=255)
    first_name: Optional[str] = Field(None, min_length=1, max_length=255)
    birth_date: Optional[date] = None
    birth_city: Optional[str] = Field(None, min_length=1, max_length=255)
    birth_zip_code: Optional[str] = Field(None, max_length=10)
    birth_country: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, min_length=1, max_length=500)
    city: Optional[str] = Field(None, min_length=1, max_length=255)
    zip_code: Optional[str] = Field(None, min_length=1, max_length=10)
    phone: Optional[str] = Field(None, min_length=6, max_length=30)
    neph: Optional[str] = Field(None, max_length=20)
    e_photo_code: Optional[str] = Field(None, max_length=50)
    has_id_card: Optional[bool] = None
    has_proof_of_address: Optional[bool] = None
    has_assr2: Optional[bool] = None
    has_jdc_certificate: Optional[bool] = None
    has_census_certificate: Optional[bool] = None
    needs_medical_opinion: Optional[bool] = None
    has_medical_opinion: Optional[bool] = None
    license_type: Optional[LicenseType] = None
    status: Optional[StudentStatus] = None
    guardian_name: Optional[str] = Field(None, max_length=255)
    guardian_phone: Optional[str] = Field(None, max_length=30)
    guardian_email: Optional[EmailStr] = None
    guardian_relation: Optional[str] = Field(None, max_length=100)

    @field_validator("status")
    @classmethod
    def status_not_archived(cls, v: Optional[StudentStatus]) -> Optional[StudentStatus]:
        if v == StudentStatus.ARCHIVED:
            raise ValueError("use the archive operation to archive a student")
        return v

    @model_validator(mode="after")
    def reject_null_for_required(self) -> "StudentUpdate":
        nulled = sorted(
            name for name in self.model_fields_set
            if getattr(self, name) is None and name not in NULLABLE_FIELDS
        )
        if nulled:
            raise ValueError(f"fields cannot be null: {', '.join(nulled)}")
        return self


class StudentResponse(StudentBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    user_id: uuid.UUID
    email: str
    guardian_email: Optional[str] = None
    status: StudentStatus
    minutes_purchased: int
    minutes_used: int
    archived_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class MinutesRequest(BaseModel):
    minutes: int = Field(..., gt=0, le=100_000)


class HoursResponse(BaseModel):
    minutes_purchased: int
    minutes_used: int
    minutes_remaining: int
    hours_purchased: int
    hours_used: int
    hours_remaining: int

    @classmethod
    def from_minutes(cls, purchased: int, used: int) -> "HoursResponse":
        remaining = purchased - used
        return cls(
            minutes_purchased=purchased,
            minutes_used=used,
            minutes_remaining=remaining,
            hours_purchased=purchased // 60,
            hours_used=used // 60,
            hours_remaining=remaining // 60,
        )
