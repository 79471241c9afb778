"""
Role requirements per operation.

A static table maps every exposed operation to the set of roles allowed to
perform it. An empty set means any authenticated, tenant-scoped principal;
a non-empty set is OR-membership. Operations missing from the table are
rejected at dispatch instead of silently falling open.
"""

from typing import Dict, FrozenSet, List, Mapping

from src.kernel.models.user import UserRole

RoleRequirement = FrozenSet[UserRole]

ANY_ROLE: RoleRequirement = frozenset()
OFFICE_STAFF: RoleRequirement = frozenset({UserRole.ADMIN, UserRole.SECRETARY})
ADMIN_ONLY: RoleRequirement = frozenset({UserRole.ADMIN})

OPERATION_ROLES: Dict[str, RoleRequirement] = {
    # Identity
    "auth.me": ANY_ROLE,
    "users.change_role": ADMIN_ONLY,
    # Students
    "students.create": OFFICE_STAFF,
    "students.list": OFFICE_STAFF,
    "students.get": OFFICE_STAFF,
    "students.update": OFFICE_STAFF,
    "students.archive": OFFICE_STAFF,
    "students.restore": OFFICE_STAFF,
    "students.remove": ADMIN_ONLY,
    "students.hours.get": OFFICE_STAFF,
    "students.hours.purchase": OFFICE_STAFF,
    "students.hours.consume": OFFICE_STAFF,
    # Audit trail
    "audit.list_by_tenant": ADMIN_ONLY,
    "audit.list_by_entity": ADMIN_ONLY,
    "audit.list_by_actor": ADMIN_ONLY,
}


class RolePolicy:
    """Read-only view over an operation -> role requirement table."""

    def __init__(self, table: Mapping[str, RoleRequirement] = OPERATION_ROLES):
        self._table = {op: frozenset(roles) for op, roles in table.items()}

    def requirement_for(self, operation_id: str) -> RoleRequirement:
        """
        Raises:
            LookupError: the operation was never declared
        """
        try:
            return self._table[operation_id]
        except KeyError:
            raise LookupError(f"operation {operation_id!r} has no declared role requirement") from None

    @staticmethod
    def is_satisfied(requirement: RoleRequirement, role: UserRole) -> bool:
        if not requirement:
            return True
        return role in requirement

    def open_operations(self) -> List[str]:
        """Operations any authenticated principal may call. Worth reviewing."""
        return sorted(op for op, roles in self._table.items() if not roles)

    def __contains__(self, operation_id: str) -> bool:
        return operation_id in self._table
