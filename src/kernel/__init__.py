"""
Kernel Layer

Authorization and audit core shared by every business service:
- Identity Core (credentials, principal resolution, accounts)
- Guard chain (authentication -> tenant scope -> role)
- Tenant isolation helpers for the data-access boundary
- Audit trail (best-effort, append-only)

Architectural invariants:
- Every tenant-owned query filters on the principal's tenant, never on client input
- Audit records are written after the mutation commits and are never updated
- An audit write failure never fails the operation that triggered it
"""
