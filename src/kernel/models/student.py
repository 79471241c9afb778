"""
Student record: the tenant-owned business entity of a driving school.
"""

import uuid
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, CheckConstraint, Date, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.kernel.models.base import (
    ArchivableMixin,
    Base,
    TenantOwnedMixin,
    TimestampMixin,
    generate_uuid,
)

if TYPE_CHECKING:
    from src.kernel.models.user import User


class LicenseType(str, Enum):
    B = "B"
    AAC = "AAC"  # accompanied driving
    CS = "CS"  # supervised driving
    A1 = "A1"
    A2 = "A2"


class StudentStatus(str, Enum):
    PROSPECT = "PROSPECT"
    ANTS_PROCESSING = "ANTS_PROCESSING"
    ACTIVE = "ACTIVE"
    EXAM_READY = "EXAM_READY"
    LICENSE_OBTAINED = "LICENSE_OBTAINED"
    ARCHIVED = "ARCHIVED"


class Student(Base, TenantOwnedMixin, TimestampMixin, ArchivableMixin):
    """
    A learner enrolled in a driving school.

    Driving time is tracked in minutes; ``minutes_used`` never exceeds
    ``minutes_purchased``.
    """

    __tablename__ = "students"
    __table_args__ = (
        CheckConstraint("minutes_used >= 0", name="ck_students_minutes_used_positive"),
        CheckConstraint("minutes_used <= minutes_purchased", name="ck_students_minutes_within_purchase"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="RESTRICT"),
        unique=True,
        nullable=False,
    )

    # Civil identity
    birth_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    birth_date: Mapped[date] = mapped_column(Date, nullable=False)
    birth_city: Mapped[str] = mapped_column(String(255), nullable=False)
    birth_zip_code: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    birth_country: Mapped[str] = mapped_column(String(100), nullable=False, default="FRANCE")
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    city: Mapped[str] = mapped_column(String(255), nullable=False)
    zip_code: Mapped[str] = mapped_column(String(10), nullable=False)
    phone: Mapped[str] = mapped_column(String(30), nullable=False)

    # Licence file (NEPH = national registration number)
    neph: Mapped[Optional[str]] = mapped_column(String(20), unique=True, nullable=True)
    e_photo_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    has_id_card: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_proof_of_address: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_assr2: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_jdc_certificate: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_census_certificate: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    needs_medical_opinion: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_medical_opinion: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    license_type: Mapped[LicenseType] = mapped_column(
        String(10),
        default=LicenseType.B,
        nullable=False,
    )
    status: Mapped[StudentStatus] = mapped_column(
        String(30),
        default=StudentStatus.PROSPECT,
        nullable=False,
    )

    # Driving time
    minutes_purchased: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    minutes_used: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Legal guardian (minors)
    guardian_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    guardian_phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    guardian_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    guardian_relation: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    user: Mapped["User"] = relationship("User", lazy="joined")

    @property
    def minutes_remaining(self) -> int:
        return self.minutes_purchased - self.minutes_used

    @property
    def email(self) -> str:
        return self.user.email

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.birth_name}"

    def __repr__(self) -> str:
        return f"<Student {self.display_name}>"
