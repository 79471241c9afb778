"""
Audit trail recorder.

Appends one immutable record per successful privileged mutation. The write
happens in its own session, after the business mutation has committed, and
never raises: an audit outage must not turn a successful mutation into a
failed request. Gaps in the trail are therefore possible and downstream
consumers must tolerate them.
"""

import uuid
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.kernel.models.audit_log import AuditAction, AuditLog
from src.logging_config import get_logger

logger = get_logger(__name__)

SessionFactory = Callable[[], AsyncSession]

DEFAULT_LIST_LIMIT = 100
MAX_LIST_LIMIT = 500


def _json_safe(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_json_safe(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


class AuditRecorder:
    """
    Best-effort writer and tenant-scoped reader of the audit trail.

    Usage:
        audit = AuditRecorder(async_session_maker)
        await audit.record(
            tenant_id=principal.tenant_id,
            actor_id=principal.subject_id,
            action=AuditAction.STUDENT_ARCHIVED,
            entity_type="Student",
            entity_id=student.id,
            metadata={"previous_status": "ACTIVE"},
        )
    """

    def __init__(self, session_factory: SessionFactory, max_limit: int = MAX_LIST_LIMIT):
        self._session_factory = session_factory
        self.max_limit = max_limit

    async def record(
        self,
        tenant_id: uuid.UUID,
        actor_id: uuid.UUID,
        action: AuditAction | str,
        entity_type: str,
        entity_id: Any,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Write one audit record. Never raises to the caller.

        Call only after the mutation being described has committed.
        """
        action_value = action.value if isinstance(action, AuditAction) else str(action)
        try:
            entry = AuditLog(
                tenant_id=tenant_id,
                actor_id=actor_id,
                action=action_value,
                entity_type=entity_type,
                entity_id=str(entity_id),
                details=_json_safe(metadata or {}),
            )
            async with self._session_factory() as session:
                session.add(entry)
                await session.commit()
        except Exception:
            logger.exception(
                "Failed to write audit record",
                extra={
                    "action": action_value,
                    "entity_type": entity_type,
                    "entity_id": str(entity_id),
                    "audit_tenant_id": str(tenant_id),
                },
            )
            return

        logger.info(
            "audit",
            extra={
                "type": "audit",
                "action": action_value,
                "entity_type": entity_type,
                "entity_id": str(entity_id),
                "audit_tenant_id": str(tenant_id),
                "actor_id": str(actor_id),
            },
        )

    def _clamp(self, limit: int) -> int:
        return max(1, min(limit, self.max_limit))

    async def list_by_tenant(
        self,
        tenant_id: uuid.UUID,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> List[AuditLog]:
        """Newest records of one tenant."""
        query = (
            select(AuditLog)
            .where(AuditLog.tenant_id == tenant_id)
            .order_by(desc(AuditLog.created_at))
            .limit(self._clamp(limit))
        )
        return await self._fetch(query)

    async def list_by_entity(
        self,
        tenant_id: uuid.UUID,
        entity_type: str,
        entity_id: Any,
    ) -> List[AuditLog]:
        """History of one entity inside one tenant, newest first."""
        query = (
            select(AuditLog)
            .where(
                AuditLog.tenant_id == tenant_id,
                AuditLog.entity_type == entity_type,
                AuditLog.entity_id == str(entity_id),
            )
            .order_by(desc(AuditLog.created_at))
        )
        return await self._fetch(query)

    async def list_by_actor(
        self,
        tenant_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> List[AuditLog]:
        """Everything one actor did inside one tenant, newest first."""
        query = (
            select(AuditLog)
            .where(
                AuditLog.tenant_id == tenant_id,
                AuditLog.actor_id == actor_id,
            )
            .order_by(desc(AuditLog.created_at))
        )
        return await self._fetch(query)

    async def _fetch(self, query) -> List[AuditLog]:
        async with self._session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())
