"""
Principal resolver: bearer credential -> Principal.

Two steps, in order:

1. Verify signature and expiry (pure, no I/O).
2. Re-read the subject from the identity store. A deleted account fails here
   even while its credential is still unexpired, and role or tenant changes
   apply on the very next operation without reissuing the credential.
"""

import uuid
from dataclasses import dataclass
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.kernel.errors import AuthenticationError
from src.kernel.identity.jwt import JWTManager
from src.kernel.identity.principal import Principal
from src.kernel.models.user import User, UserRole
from src.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class IdentityRecord:
    """Current state of an account as held by the identity store."""

    id: uuid.UUID
    tenant_id: uuid.UUID
    role: UserRole
    email: Optional[str] = None


class IdentityStore(Protocol):
    async def find_by_id(self, subject_id: uuid.UUID) -> Optional[IdentityRecord]:
        ...


class SqlIdentityStore:
    """Identity store backed by the ``users`` table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_id(self, subject_id: uuid.UUID) -> Optional[IdentityRecord]:
        query = select(User.id, User.tenant_id, User.role, User.email).where(User.id == subject_id)
        result = await self.session.execute(query)
        row = result.one_or_none()
        if row is None:
            return None
        return IdentityRecord(
            id=row.id,
            tenant_id=row.tenant_id,
            role=UserRole(row.role),
            email=row.email,
        )


class PrincipalResolver:
    """
    Resolves a bearer credential into a Principal.

    Usage:
        resolver = PrincipalResolver(JWTManager.from_settings(settings), SqlIdentityStore(session))
        principal = await resolver.resolve(token)
    """

    def __init__(self, verifier: JWTManager, identity_store: IdentityStore):
        self.verifier = verifier
        self.identity_store = identity_store

    async def resolve(self, credential: Optional[str]) -> Principal:
        """
        Raises:
            AuthenticationError: "invalid credential" if the credential is
                missing, malformed, badly signed or expired; "principal no
                longer valid" if the subject no longer exists.
        """
        if not credential:
            raise AuthenticationError("invalid credential")

        claims = self.verifier.verify(credential)

        record = await self.identity_store.find_by_id(claims.sub)
        if record is None:
            logger.info(
                "Credential subject no longer exists",
                extra={"subject": str(claims.sub)},
            )
            raise AuthenticationError("principal no longer valid")

        return Principal(
            subject_id=record.id,
            tenant_id=record.tenant_id,
            role=record.role,
            issued_at=claims.iat,
            expires_at=claims.exp,
            email=record.email,
        )
