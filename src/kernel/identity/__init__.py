"""
Identity Core - credentials, principal resolution and user management.
"""

from src.kernel.identity.password import PasswordHasher, hash_password, verify_password
from src.kernel.identity.jwt import AccessToken, CredentialClaims, JWTManager
from src.kernel.identity.principal import Principal
from src.kernel.identity.resolver import (
    IdentityRecord,
    IdentityStore,
    PrincipalResolver,
    SqlIdentityStore,
)

__all__ = [
    "PasswordHasher",
    "hash_password",
    "verify_password",
    "AccessToken",
    "CredentialClaims",
    "JWTManager",
    "Principal",
    "IdentityRecord",
    "IdentityStore",
    "PrincipalResolver",
    "SqlIdentityStore",
]
