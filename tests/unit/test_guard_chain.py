"""Unit tests for the guard chain."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from src.kernel.errors import AuthenticationError, AuthorizationError, TenantScopeError
from src.kernel.guards.chain import DEFAULT_GUARDS, GuardChain, GuardState
from src.kernel.guards.role_policy import RolePolicy
from src.kernel.identity.principal import Principal
from src.kernel.models.user import UserRole


def make_principal(role: UserRole) -> Principal:
    now = datetime.now(timezone.utc)
    return Principal(
        subject_id=uuid.uuid4(),
        tenant_id=uuid.uuid4(),
        role=role,
        issued_at=now,
        expires_at=now + timedelta(minutes=5),
    )


class StubResolver:
    """Resolver returning a fixed principal or raising a fixed error."""

    def __init__(self, principal=None, error=None):
        self.principal = principal
        self.error = error
        self.calls = 0

    async def resolve(self, credential):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.principal


class TestGuardChain:
    """Tests for GuardChain."""

    async def test_secretary_allowed_on_office_operation(self):
        principal = make_principal(UserRole.SECRETARY)
        chain = GuardChain(StubResolver(principal), RolePolicy())

        outcome = await chain.evaluate("token", "students.archive")

        assert outcome.allowed
        assert outcome.state == GuardState.AUTHORIZED
        assert outcome.principal is principal

    async def test_instructor_denied_on_admin_operation(self):
        chain = GuardChain(StubResolver(make_principal(UserRole.INSTRUCTOR)), RolePolicy())

        outcome = await chain.evaluate("token", "students.remove")

        assert outcome.state == GuardState.DENIED
        assert outcome.failed_at == GuardState.AUTHORIZED
        assert isinstance(outcome.error, AuthorizationError)

        with pytest.raises(AuthorizationError):
            await chain.authorize("token", "students.remove")

    async def test_authentication_failure_is_terminal(self):
        resolver = StubResolver(error=AuthenticationError("principal no longer valid"))
        ran = []

        def spy(principal, requirement):
            ran.append(principal)
            return None

        chain = GuardChain(resolver, RolePolicy(), guards=[(GuardState.AUTHORIZED, spy)])

        outcome = await chain.evaluate("token", "students.list")

        assert outcome.failed_at == GuardState.AUTHENTICATED
        assert isinstance(outcome.error, AuthenticationError)
        assert ran == []

    async def test_tenantless_principal_fails_as_authentication(self):
        now = datetime.now(timezone.utc)
        principal = Principal(
            subject_id=uuid.uuid4(),
            tenant_id=None,
            role=UserRole.ADMIN,
            issued_at=now,
            expires_at=now + timedelta(minutes=5),
        )
        chain = GuardChain(StubResolver(principal), RolePolicy())

        outcome = await chain.evaluate("token", "students.list")

        assert outcome.failed_at == GuardState.TENANT_SCOPED
        assert isinstance(outcome.error, TenantScopeError)
        assert isinstance(outcome.error, AuthenticationError)
        assert outcome.error.http_status == 401

    async def test_first_error_short_circuits(self):
        calls = []

        def first(principal, requirement):
            calls.append("first")
            return AuthorizationError("first")

        def second(principal, requirement):
            calls.append("second")
            return None

        chain = GuardChain(
            StubResolver(make_principal(UserRole.ADMIN)),
            RolePolicy(),
            guards=[(GuardState.TENANT_SCOPED, first), (GuardState.AUTHORIZED, second)],
        )

        with pytest.raises(AuthorizationError, match="first"):
            await chain.authorize("token", "students.list")
        assert calls == ["first"]

    async def test_undeclared_operation_fails_before_resolving(self):
        resolver = StubResolver(make_principal(UserRole.ADMIN))
        chain = GuardChain(resolver, RolePolicy())

        with pytest.raises(LookupError):
            await chain.evaluate("token", "students.export")
        assert resolver.calls == 0

    @pytest.mark.parametrize("role", list(UserRole))
    async def test_open_operation_admits_every_role(self, role):
        chain = GuardChain(StubResolver(make_principal(role)), RolePolicy())

        principal = await chain.authorize("token", "auth.me")

        assert principal.role == role

    def test_default_guard_order(self):
        assert [state for state, _ in DEFAULT_GUARDS] == [
            GuardState.TENANT_SCOPED,
            GuardState.AUTHORIZED,
        ]
