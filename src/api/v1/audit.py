"""
Audit trail endpoints for operators.

All reads are scoped to the caller's tenant; there is no cross-tenant path.
"""

import uuid
from typing import Annotated, List, Optional

from fastapi import APIRouter, Query

from src.api.deps import AppSettings, Audit, guarded
from src.kernel.identity.principal import Principal
from src.schemas.audit import AuditRecordResponse

router = APIRouter()


@router.get("", response_model=List[AuditRecordResponse])
async def list_tenant_records(
    audit: Audit,
    settings: AppSettings,
    principal: Annotated[Principal, guarded("audit.list_by_tenant")],
    limit: Optional[int] = Query(None, ge=1),
):
    """Most recent audit records of the caller's tenant."""
    records = await audit.list_by_tenant(
        principal.tenant_id,
        limit=limit or settings.audit_default_limit,
    )
    return [AuditRecordResponse.model_validate(r) for r in records]


@router.get("/entities/{entity_type}/{entity_id}", response_model=List[AuditRecordResponse])
async def list_entity_records(
    entity_type: str,
    entity_id: str,
    audit: Audit,
    principal: Annotated[Principal, guarded("audit.list_by_entity")],
):
    records = await audit.list_by_entity(principal.tenant_id, entity_type, entity_id)
    return [AuditRecordResponse.model_validate(r) for r in records]


@router.get("/actors/{actor_id}", response_model=List[AuditRecordResponse])
async def list_actor_records(
    actor_id: uuid.UUID,
    audit: Audit,
    principal: Annotated[Principal, guarded("audit.list_by_actor")],
):
    records = await audit.list_by_actor(principal.tenant_id, actor_id)
    return [AuditRecordResponse.model_validate(r) for r in records]
