"""
Tenant isolation at the data-access boundary.

Rules every tenant-owned query follows:

- The predicate includes ``model.tenant_id == principal.tenant_id``.
- The tenant value comes from the Principal only. Tenant-like values in a
  request payload are never used to filter.
- A read by identifier applies the tenant predicate in the same query, so the
  database never returns another tenant's row.
"""

import uuid
from enum import Enum
from typing import Any, Type, TypeVar

from sqlalchemy import ColumnElement, Select, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.kernel.errors import AuthorizationError, NotFoundError, TenantScopeError
from src.kernel.identity.principal import Principal
from src.kernel.models.base import TenantOwnedMixin

T = TypeVar("T", bound=TenantOwnedMixin)


class CrossTenantPolicy(str, Enum):
    """How a read for an id owned by another tenant is reported."""

    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"


def tenant_clause(model: Type[TenantOwnedMixin], principal: Principal) -> ColumnElement[bool]:
    """Equality predicate on the model's tenant column, bound to the principal's tenant."""
    if not principal.tenant_id:
        raise TenantScopeError()
    return model.tenant_id == principal.tenant_id


def scoped_select(model: Type[T], principal: Principal) -> Select[Any]:
    """``SELECT model WHERE model.tenant_id = principal.tenant_id``."""
    return select(model).where(tenant_clause(model, principal))


async def get_scoped(
    session: AsyncSession,
    model: Type[T],
    entity_id: uuid.UUID,
    principal: Principal,
    policy: CrossTenantPolicy = CrossTenantPolicy.FORBIDDEN,
    *,
    label: str | None = None,
) -> T:
    """
    Fetch one tenant-owned row by id.

    Raises:
        NotFoundError: no row with this id in the principal's tenant (and,
            under FORBIDDEN, none anywhere)
        AuthorizationError: under FORBIDDEN, the id exists in another tenant.
            Only existence is checked; no column of the foreign row is read.
    """
    query = scoped_select(model, principal).where(model.id == entity_id)
    result = await session.execute(query)
    entity = result.unique().scalar_one_or_none()
    if entity is not None:
        return entity

    name = label or model.__name__
    if policy == CrossTenantPolicy.FORBIDDEN:
        found = await session.execute(select(exists().where(model.id == entity_id)))
        if found.scalar():
            raise AuthorizationError(f"access to {name} {entity_id} is forbidden")
    raise NotFoundError(f"{name} {entity_id} not found")
