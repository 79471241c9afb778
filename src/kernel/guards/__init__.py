"""
Guard chain and role policy.
"""

from src.kernel.guards.chain import (
    DEFAULT_GUARDS,
    GuardChain,
    GuardOutcome,
    GuardState,
    role_guard,
    tenant_scope_guard,
)
from src.kernel.guards.role_policy import (
    ADMIN_ONLY,
    ANY_ROLE,
    OFFICE_STAFF,
    OPERATION_ROLES,
    RolePolicy,
    RoleRequirement,
)

__all__ = [
    "DEFAULT_GUARDS",
    "GuardChain",
    "GuardOutcome",
    "GuardState",
    "role_guard",
    "tenant_scope_guard",
    "ADMIN_ONLY",
    "ANY_ROLE",
    "OFFICE_STAFF",
    "OPERATION_ROLES",
    "RolePolicy",
    "RoleRequirement",
]
