"""
Tenant isolation helpers.
"""

from src.kernel.tenancy.scope import (
    CrossTenantPolicy,
    get_scoped,
    scoped_select,
    tenant_clause,
)

__all__ = [
    "CrossTenantPolicy",
    "get_scoped",
    "scoped_select",
    "tenant_clause",
]
