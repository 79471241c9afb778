"""Unit tests for tenant-scoped data access."""

import dataclasses
import uuid

import pytest

from src.kernel.errors import AuthorizationError, NotFoundError, TenantScopeError
from src.kernel.models.student import Student
from src.kernel.tenancy.scope import CrossTenantPolicy, get_scoped, scoped_select, tenant_clause


class TestScopedReads:
    """Tests for get_scoped / scoped_select."""

    async def test_reads_own_tenant_row(self, db_session, admin_a, student_a, principal_for):
        found = await get_scoped(db_session, Student, student_a.id, principal_for(admin_a))
        assert found.id == student_a.id

    async def test_cross_tenant_read_forbidden(self, db_session, admin_a, student_b, principal_for):
        with pytest.raises(AuthorizationError) as exc:
            await get_scoped(db_session, Student, student_b.id, principal_for(admin_a))

        assert exc.value.http_status == 403
        assert student_b.first_name not in exc.value.message

    async def test_cross_tenant_read_not_found_policy(self, db_session, admin_a, student_b, principal_for):
        with pytest.raises(NotFoundError) as exc:
            await get_scoped(
                db_session,
                Student,
                student_b.id,
                principal_for(admin_a),
                CrossTenantPolicy.NOT_FOUND,
            )
        assert exc.value.http_status == 404

    @pytest.mark.parametrize("policy", list(CrossTenantPolicy))
    async def test_unknown_id_not_found(self, db_session, admin_a, policy, principal_for):
        with pytest.raises(NotFoundError):
            await get_scoped(db_session, Student, uuid.uuid4(), principal_for(admin_a), policy)

    async def test_list_only_returns_own_tenant(self, db_session, admin_a, student_a, student_b, principal_for):
        result = await db_session.execute(scoped_select(Student, principal_for(admin_a)))
        ids = {s.id for s in result.scalars().all()}
        assert ids == {student_a.id}

    async def test_tenant_comes_from_principal(self, admin_b, student_a, student_b, db_session, principal_for):
        """The same query returns a different tenant's rows for a different principal."""
        result = await db_session.execute(scoped_select(Student, principal_for(admin_b)))
        ids = {s.id for s in result.scalars().all()}
        assert ids == {student_b.id}

    async def test_tenantless_principal_refused(self, admin_a, principal_for):
        principal = dataclasses.replace(principal_for(admin_a), tenant_id=None)
        with pytest.raises(TenantScopeError):
            tenant_clause(Student, principal)
