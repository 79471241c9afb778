"""
Student records: tenant-scoped CRUD and driving-time accounting.

Every read and write is filtered by the principal's tenant. Privileged
mutations commit first and are then reported to the audit trail; the audit
outcome never affects the result returned to the caller.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.kernel.audit.recorder import AuditRecorder
from src.kernel.errors import ConflictError
from src.kernel.identity.password import hash_password
from src.kernel.identity.principal import Principal
from src.kernel.models.audit_log import AuditAction
from src.kernel.models.student import Student, StudentStatus
from src.kernel.models.user import User, UserRole
from src.kernel.tenancy.scope import CrossTenantPolicy, get_scoped, scoped_select, tenant_clause
from src.logging_config import get_logger
from src.schemas.student import StudentCreate, StudentUpdate

logger = get_logger(__name__)

ENTITY_TYPE = "Student"
_MINUTE_FIELDS = ["minutes_purchased", "minutes_used", "updated_at"]


class StudentService:
    """
    Usage:
        service = StudentService(session, audit)
        student = await service.consume_minutes(student_id, 60, principal)
    """

    def __init__(
        self,
        session: AsyncSession,
        audit: AuditRecorder,
        cross_tenant_policy: CrossTenantPolicy = CrossTenantPolicy.FORBIDDEN,
    ):
        self.session = session
        self.audit = audit
        self.cross_tenant_policy = cross_tenant_policy

    async def create(self, data: StudentCreate, principal: Principal) -> Student:
        """
        Create the student's login account (role STUDENT) and record.

        Raises:
            ConflictError: email or NEPH already in use
        """
        email = data.email.lower().strip()
        await self._ensure_email_free(email)
        if data.neph:
            await self._ensure_neph_free(data.neph)

        fields = data.model_dump(exclude={"email", "password"})
        user = User(
            tenant_id=principal.tenant_id,
            email=email,
            password_hash=hash_password(data.password),
            role=UserRole.STUDENT,
        )
        student = Student(
            tenant_id=principal.tenant_id,
            user=user,
            minutes_used=0,
            **fields,
        )
        self.session.add(student)
        await self.session.commit()

        await self._audit(
            principal,
            AuditAction.STUDENT_CREATED,
            student,
            {"student_name": student.display_name, "status": student.status},
        )
        return student

    async def list_students(self, principal: Principal, include_archived: bool = False) -> List[Student]:
        query = scoped_select(Student, principal)
        if not include_archived:
            query = query.where(Student.archived_at.is_(None))
        query = query.order_by(Student.created_at.desc())
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get(self, student_id: uuid.UUID, principal: Principal) -> Student:
        return await get_scoped(
            self.session, Student, student_id, principal, self.cross_tenant_policy
        )

    async def update(
        self,
        student_id: uuid.UUID,
        data: StudentUpdate,
        principal: Principal,
    ) -> Student:
        """
        Raises:
            ConflictError: new email or NEPH already in use
        """
        student = await self.get(student_id, principal)
        changes: Dict[str, Any] = data.model_dump(exclude_unset=True)

        email_changed = False
        email = changes.pop("email", None)
        if email is not None:
            email = email.lower().strip()
            if email != student.user.email:
                await self._ensure_email_free(email, exclude_user_id=student.user_id)
                student.user.email = email
                email_changed = True

        if not changes and not email_changed:
            return student

        neph = changes.get("neph")
        if neph and neph != student.neph:
            await self._ensure_neph_free(neph, exclude_student_id=student.id)

        for field, value in changes.items():
            setattr(student, field, value)

        await self.session.commit()

        changed_fields = sorted(changes) + (["email"] if email_changed else [])
        await self._audit(
            principal,
            AuditAction.STUDENT_UPDATED,
            student,
            {"student_name": student.display_name, "fields": changed_fields},
        )
        return student

    async def archive(self, student_id: uuid.UUID, principal: Principal) -> Student:
        student = await self.get(student_id, principal)
        previous_status = student.status

        student.archived_at = datetime.now(timezone.utc)
        student.status = StudentStatus.ARCHIVED
        await self.session.commit()

        await self._audit(
            principal,
            AuditAction.STUDENT_ARCHIVED,
            student,
            {"student_name": student.display_name, "previous_status": previous_status},
        )
        return student

    async def restore(self, student_id: uuid.UUID, principal: Principal) -> Student:
        """
        Raises:
            ConflictError: the student is not archived
        """
        student = await self.get(student_id, principal)
        if not student.is_archived:
            raise ConflictError("student is not archived")

        student.archived_at = None
        student.status = StudentStatus.ACTIVE
        await self.session.commit()

        await self._audit(
            principal,
            AuditAction.STUDENT_RESTORED,
            student,
            {
                "student_name": student.display_name,
                "previous_status": StudentStatus.ARCHIVED,
                "new_status": StudentStatus.ACTIVE,
            },
        )
        return student

    async def remove(self, student_id: uuid.UUID, principal: Principal) -> None:
        """Delete the record and its login account. Existing credentials stop resolving."""
        student = await self.get(student_id, principal)
        user = student.user
        name = student.display_name

        await self.session.delete(student)
        await self.session.flush()
        await self.session.delete(user)
        await self.session.commit()

        await self._audit(
            principal,
            AuditAction.STUDENT_DELETED,
            student,
            {"student_name": name, "user_id": user.id},
        )

    async def remaining_minutes(self, student_id: uuid.UUID, principal: Principal) -> int:
        student = await self.get(student_id, principal)
        return student.minutes_remaining

    async def purchase_minutes(
        self,
        student_id: uuid.UUID,
        minutes: int,
        principal: Principal,
    ) -> Student:
        if minutes <= 0:
            raise ValueError("minutes must be positive")

        student = await self.get(student_id, principal)
        previous = student.minutes_purchased

        stmt = (
            update(Student)
            .where(Student.id == student.id, tenant_clause(Student, principal))
            .values(minutes_purchased=Student.minutes_purchased + minutes)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
        await self.session.commit()
        await self.session.refresh(student, attribute_names=_MINUTE_FIELDS)

        await self._audit(
            principal,
            AuditAction.STUDENT_HOURS_UPDATED,
            student,
            {
                "student_name": student.display_name,
                "type": "PURCHASE",
                "minutes_added": minutes,
                "previous_minutes_purchased": previous,
                "new_minutes_purchased": student.minutes_purchased,
            },
        )
        return student

    async def consume_minutes(
        self,
        student_id: uuid.UUID,
        minutes: int,
        principal: Principal,
    ) -> Student:
        """
        Record driving time used.

        Raises:
            ConflictError: ``minutes_used + minutes`` would exceed
                ``minutes_purchased``; nothing is changed and nothing audited
        """
        if minutes <= 0:
            raise ValueError("minutes must be positive")

        student = await self.get(student_id, principal)
        available = student.minutes_remaining
        if minutes > available:
            raise ConflictError(
                f"insufficient driving time: {available} min available, {minutes} min requested"
            )
        previous = student.minutes_used

        # The WHERE clause re-checks the invariant so a concurrent consumption
        # cannot push minutes_used past minutes_purchased.
        stmt = (
            update(Student)
            .where(
                Student.id == student.id,
                tenant_clause(Student, principal),
                Student.minutes_used + minutes <= Student.minutes_purchased,
            )
            .values(minutes_used=Student.minutes_used + minutes)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            await self.session.rollback()
            raise ConflictError("insufficient driving time")
        await self.session.commit()
        await self.session.refresh(student, attribute_names=_MINUTE_FIELDS)

        await self._audit(
            principal,
            AuditAction.STUDENT_HOURS_UPDATED,
            student,
            {
                "student_name": student.display_name,
                "type": "CONSUMPTION",
                "minutes_used": minutes,
                "previous_minutes_used": previous,
                "new_minutes_used": student.minutes_used,
            },
        )
        return student

    async def _ensure_email_free(self, email: str, exclude_user_id: Optional[uuid.UUID] = None) -> None:
        # Emails are unique across tenants (they are login identifiers).
        query = select(User.id).where(User.email == email)
        if exclude_user_id is not None:
            query = query.where(User.id != exclude_user_id)
        result = await self.session.execute(query)
        if result.first() is not None:
            raise ConflictError("email already in use")

    async def _ensure_neph_free(self, neph: str, exclude_student_id: Optional[uuid.UUID] = None) -> None:
        query = select(Student.id).where(Student.neph == neph)
        if exclude_student_id is not None:
            query = query.where(Student.id != exclude_student_id)
        result = await self.session.execute(query)
        if result.first() is not None:
            raise ConflictError("NEPH already in use")

    async def _audit(
        self,
        principal: Principal,
        action: AuditAction,
        student: Student,
        metadata: Dict[str, Any],
    ) -> None:
        await self.audit.record(
            tenant_id=principal.tenant_id,
            actor_id=principal.subject_id,
            action=action,
            entity_type=ENTITY_TYPE,
            entity_id=student.id,
            metadata=metadata,
        )
