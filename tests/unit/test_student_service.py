"""Unit tests for StudentService."""

import uuid
from datetime import date

import pytest
from sqlalchemy import select

from src.engines.students.student_service import StudentService
from src.kernel.audit.recorder import AuditRecorder
from src.kernel.errors import AuthorizationError, ConflictError, NotFoundError
from src.kernel.models.student import Student, StudentStatus
from src.kernel.models.user import User
from src.kernel.tenancy.scope import CrossTenantPolicy
from src.schemas.student import StudentCreate, StudentUpdate


class FailingAuditRecorder(AuditRecorder):
    """Recorder whose store is down for every write."""

    def __init__(self):
        super().__init__(self._unavailable)

    @staticmethod
    def _unavailable():
        raise ConnectionError("audit store unavailable")


@pytest.fixture
def service(db_session, audit_recorder) -> StudentService:
    return StudentService(db_session, audit_recorder)


def new_student_payload(**overrides) -> StudentCreate:
    data = {
        "email": f"eleve-{uuid.uuid4().hex[:6]}@example.com",
        "password": "Secret1234",
        "birth_name": "Durand",
        "first_name": "Lea",
        "birth_date": date(2006, 7, 1),
        "birth_city": "Nantes",
        "address": "3 quai de la Fosse",
        "city": "Nantes",
        "zip_code": "44000",
        "phone": "0611223344",
        "minutes_purchased": 600,
    }
    data.update(overrides)
    return StudentCreate(**data)


class TestDrivingTime:
    """Consumption never pushes minutes_used past minutes_purchased."""

    async def test_overdraw_rejected_and_not_audited(self, service, secretary_a, student_a, audit_recorder, principal_for):
        assert student_a.minutes_remaining == 900

        with pytest.raises(ConflictError, match="900 min available, 1000 min requested"):
            await service.consume_minutes(student_a.id, 1000, principal_for(secretary_a))

        assert await service.remaining_minutes(student_a.id, principal_for(secretary_a)) == 900
        assert await audit_recorder.list_by_tenant(secretary_a.tenant_id) == []

    async def test_consume_exact_remaining(self, service, secretary_a, student_a, audit_recorder, principal_for):
        student = await service.consume_minutes(student_a.id, 900, principal_for(secretary_a))

        assert student.minutes_used == 1000
        assert student.minutes_remaining == 0

        records = await audit_recorder.list_by_entity(secretary_a.tenant_id, "Student", student_a.id)
        assert len(records) == 1
        assert records[0].details["type"] == "CONSUMPTION"
        assert records[0].details["new_minutes_used"] == 1000
        assert records[0].actor_id == secretary_a.id

    async def test_purchase_then_consume(self, service, admin_a, student_a, audit_recorder, principal_for):
        principal = principal_for(admin_a)
        await service.purchase_minutes(student_a.id, 120, principal)
        student = await service.consume_minutes(student_a.id, 1000, principal)

        assert student.minutes_purchased == 1120
        assert student.minutes_used == 1100

        records = await audit_recorder.list_by_entity(admin_a.tenant_id, "Student", student_a.id)
        assert [r.details["type"] for r in records] == ["CONSUMPTION", "PURCHASE"]

    async def test_non_positive_minutes_refused(self, service, admin_a, student_a, principal_for):
        with pytest.raises(ValueError):
            await service.consume_minutes(student_a.id, 0, principal_for(admin_a))
        with pytest.raises(ValueError):
            await service.purchase_minutes(student_a.id, -5, principal_for(admin_a))

    async def test_audit_outage_does_not_fail_mutation(self, db_session, admin_a, student_a, principal_for):
        service = StudentService(db_session, FailingAuditRecorder())

        student = await service.consume_minutes(student_a.id, 60, principal_for(admin_a))

        assert student.minutes_used == 160


class TestStudentLifecycle:
    """Create, update, archive, restore and remove."""

    async def test_create_uses_principal_tenant(self, service, secretary_a, audit_recorder, principal_for):
        student = await service.create(new_student_payload(), principal_for(secretary_a))

        assert student.tenant_id == secretary_a.tenant_id
        assert student.user.tenant_id == secretary_a.tenant_id
        assert student.status == StudentStatus.PROSPECT
        assert student.minutes_used == 0

        records = await audit_recorder.list_by_tenant(secretary_a.tenant_id)
        assert [r.action for r in records] == ["student.created"]

    async def test_payload_tenant_is_ignored(self, service, admin_a, tenant_b, principal_for):
        payload = new_student_payload(tenant_id=str(tenant_b.id), tenantId=str(tenant_b.id))

        student = await service.create(payload, principal_for(admin_a))

        assert student.tenant_id == admin_a.tenant_id

    async def test_duplicate_email_conflict(self, service, admin_a, student_a, principal_for):
        with pytest.raises(ConflictError, match="email"):
            await service.create(new_student_payload(email=student_a.user.email), principal_for(admin_a))

    async def test_update_records_changed_fields(self, service, admin_a, student_a, audit_recorder, principal_for):
        student = await service.update(
            student_a.id,
            StudentUpdate(city="Paris", zip_code="75001"),
            principal_for(admin_a),
        )

        assert student.city == "Paris"
        records = await audit_recorder.list_by_entity(admin_a.tenant_id, "Student", student_a.id)
        assert len(records) == 1
        assert records[0].details["fields"] == ["city", "zip_code"]

    async def test_empty_update_is_not_audited(self, service, admin_a, student_a, audit_recorder, principal_for):
        await service.update(student_a.id, StudentUpdate(), principal_for(admin_a))
        assert await audit_recorder.list_by_tenant(admin_a.tenant_id) == []

    async def test_resending_same_email_is_not_a_change(self, service, admin_a, student_a, audit_recorder, principal_for):
        same = student_a.user.email.upper()

        await service.update(student_a.id, StudentUpdate(email=same), principal_for(admin_a))
        assert await audit_recorder.list_by_tenant(admin_a.tenant_id) == []

        await service.update(student_a.id, StudentUpdate(email=same, city="Nantes"), principal_for(admin_a))
        records = await audit_recorder.list_by_entity(admin_a.tenant_id, "Student", student_a.id)
        assert records[0].details["fields"] == ["city"]

    async def test_archive_and_restore(self, service, admin_a, student_a, audit_recorder, principal_for):
        principal = principal_for(admin_a)

        archived = await service.archive(student_a.id, principal)
        assert archived.is_archived
        assert archived.status == StudentStatus.ARCHIVED
        assert await service.list_students(principal) == []
        assert len(await service.list_students(principal, include_archived=True)) == 1

        restored = await service.restore(student_a.id, principal)
        assert not restored.is_archived
        assert restored.status == StudentStatus.ACTIVE

        records = await audit_recorder.list_by_entity(admin_a.tenant_id, "Student", student_a.id)
        assert [r.action for r in records] == ["student.restored", "student.archived"]
        assert records[1].details["previous_status"] == "ACTIVE"

    async def test_restore_requires_archived(self, service, admin_a, student_a, principal_for):
        with pytest.raises(ConflictError):
            await service.restore(student_a.id, principal_for(admin_a))

    async def test_remove_deletes_account(self, service, db_session, admin_a, student_a, audit_recorder, principal_for):
        user_id = student_a.user_id

        await service.remove(student_a.id, principal_for(admin_a))

        assert (await db_session.execute(select(Student).where(Student.id == student_a.id))).first() is None
        assert (await db_session.execute(select(User).where(User.id == user_id))).first() is None
        records = await audit_recorder.list_by_tenant(admin_a.tenant_id)
        assert [r.action for r in records] == ["student.deleted"]


class TestCrossTenant:
    """Another tenant's student is never read or changed."""

    async def test_get_other_tenant_forbidden(self, service, admin_a, student_b, principal_for):
        with pytest.raises(AuthorizationError):
            await service.get(student_b.id, principal_for(admin_a))

    async def test_get_other_tenant_not_found_policy(self, db_session, audit_recorder, admin_a, student_b, principal_for):
        service = StudentService(db_session, audit_recorder, CrossTenantPolicy.NOT_FOUND)
        with pytest.raises(NotFoundError):
            await service.get(student_b.id, principal_for(admin_a))

    async def test_consume_other_tenant_untouched(self, service, admin_a, student_b, audit_recorder, principal_for):
        with pytest.raises(AuthorizationError):
            await service.consume_minutes(student_b.id, 10, principal_for(admin_a))

        assert await audit_recorder.list_by_tenant(student_b.tenant_id) == []
        assert await audit_recorder.list_by_tenant(admin_a.tenant_id) == []

    async def test_list_excludes_other_tenant(self, service, admin_a, student_a, student_b, principal_for):
        students = await service.list_students(principal_for(admin_a))
        assert [s.id for s in students] == [student_a.id]
