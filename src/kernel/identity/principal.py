"""
The authenticated, tenant-scoped identity attached to one in-flight operation.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from src.kernel.models.user import UserRole


@dataclass(frozen=True)
class Principal:
    """
    Built once per operation by the principal resolver and discarded after.

    ``tenant_id`` and ``role`` come from the live identity store, not from
    the credential's claims. Never cached across operations.
    """

    subject_id: uuid.UUID
    tenant_id: uuid.UUID
    role: UserRole
    issued_at: datetime
    expires_at: datetime
    email: Optional[str] = None
