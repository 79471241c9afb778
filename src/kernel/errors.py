"""
Application error taxonomy.

Each error carries the HTTP status the dispatch layer maps it to; the
exception handler in ``src.main`` is the only place that translation happens.
"""

from fastapi import status


class AppError(Exception):
    """Base error for expected failures."""

    http_status: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, *, http_status: int | None = None):
        super().__init__(message)
        self.message = message
        if http_status is not None:
            self.http_status = http_status


class AuthenticationError(AppError):
    """Credential missing, malformed, expired, or subject no longer exists."""

    http_status = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "invalid credential"):
        super().__init__(message)


class TenantScopeError(AuthenticationError):
    """A resolved principal carries no tenant. Surfaced exactly like AuthenticationError."""

    def __init__(self, message: str = "principal is not tenant-scoped"):
        super().__init__(message)


class AuthorizationError(AppError):
    """Authenticated, tenant-scoped, but not permitted."""

    http_status = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "forbidden"):
        super().__init__(message)


class NotFoundError(AppError):
    http_status = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "not found"):
        super().__init__(message)


class ConflictError(AppError):
    """The mutation would violate a business invariant; nothing was applied."""

    http_status = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "conflict"):
        super().__init__(message)
