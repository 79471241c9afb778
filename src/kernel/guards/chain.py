"""
Guard chain: authentication -> tenant scope -> role.

The chain is an explicit, ordered list of guard functions run after the
principal is resolved. Each guard returns ``None`` to continue or an error to
stop. The first error is terminal: later guards do not run and the error is
raised unchanged, never retried.

States::

    START -> AUTHENTICATED -> TENANT_SCOPED -> AUTHORIZED
      \\            \\                 \\
       +------------+-----------------+--> DENIED
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence, Tuple

from src.kernel.errors import AppError, AuthorizationError, TenantScopeError
from src.kernel.guards.role_policy import RolePolicy, RoleRequirement
from src.kernel.identity.principal import Principal
from src.kernel.identity.resolver import PrincipalResolver
from src.logging_config import get_logger

logger = get_logger(__name__)


class GuardState(str, Enum):
    START = "start"
    AUTHENTICATED = "authenticated"
    TENANT_SCOPED = "tenant_scoped"
    AUTHORIZED = "authorized"
    DENIED = "denied"


Guard = Callable[[Principal, RoleRequirement], Optional[AppError]]


def tenant_scope_guard(principal: Principal, requirement: RoleRequirement) -> Optional[AppError]:
    # The resolver never yields a tenantless principal; this catches a resolver bug.
    if not principal.tenant_id:
        return TenantScopeError()
    return None


def role_guard(principal: Principal, requirement: RoleRequirement) -> Optional[AppError]:
    if RolePolicy.is_satisfied(requirement, principal.role):
        return None
    return AuthorizationError("insufficient role for this operation")


DEFAULT_GUARDS: Tuple[Tuple[GuardState, Guard], ...] = (
    (GuardState.TENANT_SCOPED, tenant_scope_guard),
    (GuardState.AUTHORIZED, role_guard),
)


@dataclass(frozen=True)
class GuardOutcome:
    """Where the chain stopped, and why."""

    state: GuardState
    principal: Optional[Principal] = None
    error: Optional[AppError] = None
    failed_at: Optional[GuardState] = None

    @property
    def allowed(self) -> bool:
        return self.state == GuardState.AUTHORIZED


class GuardChain:
    """
    Runs the ordered guards for one operation.

    Usage:
        chain = GuardChain(resolver, RolePolicy())
        principal = await chain.authorize(token, "students.archive")
    """

    def __init__(
        self,
        resolver: PrincipalResolver,
        policy: RolePolicy,
        guards: Sequence[Tuple[GuardState, Guard]] = DEFAULT_GUARDS,
    ):
        self.resolver = resolver
        self.policy = policy
        self.guards = tuple(guards)

    async def evaluate(self, credential: Optional[str], operation_id: str) -> GuardOutcome:
        """
        Run the chain and report the outcome without raising guard errors.

        Raises:
            LookupError: the operation has no declared role requirement
        """
        requirement = self.policy.requirement_for(operation_id)

        try:
            principal = await self.resolver.resolve(credential)
        except AppError as e:
            self._log_denied(operation_id, GuardState.AUTHENTICATED, e, None)
            return GuardOutcome(state=GuardState.DENIED, error=e, failed_at=GuardState.AUTHENTICATED)

        for target_state, guard in self.guards:
            error = guard(principal, requirement)
            if error is not None:
                self._log_denied(operation_id, target_state, error, principal)
                return GuardOutcome(
                    state=GuardState.DENIED,
                    principal=principal,
                    error=error,
                    failed_at=target_state,
                )

        return GuardOutcome(state=GuardState.AUTHORIZED, principal=principal)

    async def authorize(self, credential: Optional[str], operation_id: str) -> Principal:
        """Run the chain; return the principal or raise the terminal error."""
        outcome = await self.evaluate(credential, operation_id)
        if outcome.error is not None:
            raise outcome.error
        return outcome.principal

    @staticmethod
    def _log_denied(
        operation_id: str,
        stage: GuardState,
        error: AppError,
        principal: Optional[Principal],
    ) -> None:
        extra = {
            "operation": operation_id,
            "stage": stage.value,
            "reason": error.message,
        }
        if principal is not None:
            extra["subject"] = str(principal.subject_id)
            extra["role"] = principal.role.value
        level = logging.WARNING if isinstance(error, AuthorizationError) else logging.INFO
        logger.log(level, "Access denied", extra=extra)
