"""
Signed bearer credentials.

Credentials are HS256 JWTs carrying ``{sub, tenantId, role, iat, exp}``.
The signing secret is passed in by whoever constructs the manager; nothing
here reads configuration on its own.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.config import Settings
from src.kernel.errors import AuthenticationError
from src.kernel.models.user import UserRole
from src.logging_config import get_logger

logger = get_logger(__name__)

_DECODE_OPTIONS = {
    "require_exp": True,
    "require_iat": True,
    "require_sub": True,
}


class CredentialClaims(BaseModel):
    """Verified claims of a bearer credential."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    sub: uuid.UUID
    tenant_id: uuid.UUID = Field(alias="tenantId")
    role: UserRole
    iat: datetime
    exp: datetime


class AccessToken(BaseModel):
    """Issued credential returned to clients."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int  # Seconds until expiry


class JWTManager:
    """
    Credential issuing and verification.

    Verification is pure: signature and expiry only, no I/O.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        access_token_expire_minutes: int = 30,
    ):
        if not secret_key:
            raise ValueError("secret_key is required")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.access_token_expire_minutes = access_token_expire_minutes

    @classmethod
    def from_settings(cls, settings: Settings) -> "JWTManager":
        return cls(
            secret_key=settings.secret_key,
            algorithm=settings.algorithm,
            access_token_expire_minutes=settings.access_token_expire_minutes,
        )

    def create_access_token(
        self,
        user_id: uuid.UUID,
        tenant_id: uuid.UUID,
        role: UserRole | str,
        expires_delta: Optional[timedelta] = None,
    ) -> AccessToken:
        """
        Issue a credential for a user.

        Args:
            user_id: Subject identifier
            tenant_id: Owning tenant
            role: Role at issue time (informational; the resolver re-reads it)
            expires_delta: Optional custom lifetime

        Returns:
            AccessToken with the encoded credential and its lifetime
        """
        now = datetime.now(timezone.utc)
        lifetime = expires_delta or timedelta(minutes=self.access_token_expire_minutes)
        payload = {
            "sub": str(user_id),
            "tenantId": str(tenant_id),
            "role": UserRole(role).value,
            "iat": now,
            "exp": now + lifetime,
        }
        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        return AccessToken(
            access_token=token,
            expires_in=int(lifetime.total_seconds()),
        )

    def verify(self, token: str) -> CredentialClaims:
        """
        Verify signature and expiry and parse the claims.

        Raises:
            AuthenticationError: malformed, badly signed, expired, or
                missing/invalid claims
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options=_DECODE_OPTIONS,
            )
        except JWTError as e:
            logger.info("Credential rejected", extra={"reason": str(e)})
            raise AuthenticationError("invalid credential") from e

        try:
            return CredentialClaims.model_validate(payload)
        except ValidationError as e:
            logger.info(
                "Credential claims rejected",
                extra={"reason": "claims", "fields": [".".join(map(str, err["loc"])) for err in e.errors()]},
            )
            raise AuthenticationError("invalid credential") from e
