"""
Audit trail: best-effort, append-only records of privileged mutations.
"""

from src.kernel.audit.recorder import AuditRecorder

__all__ = [
    "AuditRecorder",
]
