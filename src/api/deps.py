"""
FastAPI dependencies for database sessions, the guard chain, and services.

Every exposed operation is wrapped with ``guarded(operation_id)``; the
operation id must be declared in ``src.kernel.guards.role_policy``.
"""

from typing import Annotated, Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import Settings, get_settings
from src.database import async_session_maker, get_db
from src.engines.students.student_service import StudentService
from src.kernel.audit.recorder import AuditRecorder
from src.kernel.guards.chain import GuardChain
from src.kernel.guards.role_policy import RolePolicy
from src.kernel.identity.identity_service import IdentityService
from src.kernel.identity.jwt import JWTManager
from src.kernel.identity.principal import Principal
from src.kernel.identity.resolver import PrincipalResolver, SqlIdentityStore
from src.kernel.tenancy.scope import CrossTenantPolicy
from src.logging_config import bind_principal

# Security scheme; missing credentials are reported by the guard chain
security = HTTPBearer(auto_error=False)

_role_policy = RolePolicy()


DbSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_settings)]


def get_role_policy() -> RolePolicy:
    return _role_policy


def get_jwt_manager(settings: AppSettings) -> JWTManager:
    """Credential verifier built from configuration; the secret is passed in explicitly."""
    return JWTManager.from_settings(settings)


def get_audit_recorder(settings: AppSettings) -> AuditRecorder:
    """Audit recorder with its own sessions, independent of the request session."""
    return AuditRecorder(async_session_maker, max_limit=settings.audit_max_limit)


def get_cross_tenant_policy(settings: AppSettings) -> CrossTenantPolicy:
    return CrossTenantPolicy(settings.cross_tenant_read_policy)


Verifier = Annotated[JWTManager, Depends(get_jwt_manager)]
Audit = Annotated[AuditRecorder, Depends(get_audit_recorder)]
TenantPolicy = Annotated[CrossTenantPolicy, Depends(get_cross_tenant_policy)]


def guarded(operation_id: str) -> Callable:
    """
    Dependency factory that runs the guard chain for one operation.

    Usage:
        @router.post("/{student_id}/archive")
        async def archive(student_id: uuid.UUID, principal: Annotated[Principal, guarded("students.archive")]):
            ...
    """
    # Fail at import time, not at first request, for undeclared operations.
    _role_policy.requirement_for(operation_id)

    async def _run_chain(
        credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
        db: DbSession,
        verifier: Verifier,
        policy: Annotated[RolePolicy, Depends(get_role_policy)],
    ) -> Principal:
        resolver = PrincipalResolver(verifier, SqlIdentityStore(db))
        chain = GuardChain(resolver, policy)
        token = credentials.credentials if credentials else None
        principal = await chain.authorize(token, operation_id)
        bind_principal(principal.tenant_id, principal.subject_id)
        return principal

    return Depends(_run_chain)


def get_student_service(db: DbSession, audit: Audit, policy: TenantPolicy) -> StudentService:
    return StudentService(db, audit, policy)


def get_identity_service(
    db: DbSession,
    verifier: Verifier,
    audit: Audit,
    policy: TenantPolicy,
) -> IdentityService:
    return IdentityService(db, verifier, audit, policy)


Students = Annotated[StudentService, Depends(get_student_service)]
Identity = Annotated[IdentityService, Depends(get_identity_service)]

