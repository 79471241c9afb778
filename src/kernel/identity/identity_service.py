"""
Identity service: tenant sign-up, login, and role administration.
"""

import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.kernel.audit.recorder import AuditRecorder
from src.kernel.errors import AuthenticationError, ConflictError
from src.kernel.identity.jwt import AccessToken, JWTManager
from src.kernel.identity.password import hash_password, verify_password
from src.kernel.identity.principal import Principal
from src.kernel.models.audit_log import AuditAction
from src.kernel.models.tenant import Tenant
from src.kernel.models.user import User, UserRole
from src.kernel.tenancy.scope import CrossTenantPolicy, get_scoped
from src.logging_config import get_logger

logger = get_logger(__name__)


class IdentityService:
    """
    Service for user identity operations.

    Password checks happen only here, at login; every later operation is
    authenticated by the principal resolver.
    """

    def __init__(
        self,
        session: AsyncSession,
        jwt_manager: JWTManager,
        audit: Optional[AuditRecorder] = None,
        cross_tenant_policy: CrossTenantPolicy = CrossTenantPolicy.FORBIDDEN,
    ):
        self.session = session
        self.jwt_manager = jwt_manager
        self.audit = audit
        self.cross_tenant_policy = cross_tenant_policy

    async def register_tenant(
        self,
        tenant_name: str,
        email: str,
        password: str,
    ) -> tuple[User, AccessToken]:
        """
        Create a new tenant and its first user, who is always ADMIN.

        Raises:
            ConflictError: email already registered
        """
        email = email.lower().strip()
        if await self.get_user_by_email(email):
            raise ConflictError("email already registered")

        tenant = Tenant(name=tenant_name.strip())
        self.session.add(tenant)
        await self.session.flush()

        user = User(
            tenant_id=tenant.id,
            email=email,
            password_hash=hash_password(password),
            role=UserRole.ADMIN,
        )
        self.session.add(user)
        await self.session.commit()

        logger.info(
            "Tenant registered",
            extra={"new_tenant_id": str(tenant.id), "user_id": str(user.id)},
        )
        return user, self.jwt_manager.create_access_token(user.id, user.tenant_id, user.role)

    async def authenticate(self, email: str, password: str) -> tuple[User, AccessToken]:
        """
        Raises:
            AuthenticationError: unknown email or wrong password
        """
        user = await self.get_user_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationError("invalid email or password")

        return user, self.jwt_manager.create_access_token(user.id, user.tenant_id, user.role)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        query = select(User).where(User.email == email.lower().strip())
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_user(self, user_id: uuid.UUID, principal: Principal) -> User:
        """Tenant-scoped lookup of a user account."""
        return await get_scoped(
            self.session, User, user_id, principal, self.cross_tenant_policy, label="User"
        )

    async def change_role(
        self,
        user_id: uuid.UUID,
        new_role: UserRole,
        principal: Principal,
    ) -> User:
        """
        Change a user's role inside the principal's tenant.

        Applies from the user's next operation: the resolver re-reads the
        role on every request.

        Raises:
            ConflictError: the change would leave the tenant without an ADMIN
        """
        user = await self.get_user(user_id, principal)
        previous_role = UserRole(user.role)
        if previous_role == new_role:
            return user

        if previous_role == UserRole.ADMIN and await self._count_admins(principal.tenant_id) <= 1:
            raise ConflictError("cannot demote the last ADMIN of the tenant")

        user.role = new_role
        await self.session.commit()

        if self.audit is not None:
            await self.audit.record(
                tenant_id=principal.tenant_id,
                actor_id=principal.subject_id,
                action=AuditAction.USER_ROLE_CHANGED,
                entity_type="User",
                entity_id=user.id,
                metadata={"previous_role": previous_role, "new_role": new_role},
            )
        return user

    async def _count_admins(self, tenant_id: uuid.UUID) -> int:
        query = (
            select(func.count())
            .select_from(User)
            .where(User.tenant_id == tenant_id, User.role == UserRole.ADMIN)
        )
        return (await self.session.execute(query)).scalar_one()
