"""
API v1 routes.
"""

from fastapi import APIRouter

from src.api.v1 import audit, auth, students, users
from src.schemas.common import ErrorResponse, ValidationErrorResponse

# Documented on every v1 operation; bodies are built by the handlers in src.main.
ERROR_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Missing, invalid or expired credential"},
    403: {"model": ErrorResponse, "description": "Role or tenant does not permit the operation"},
    404: {"model": ErrorResponse, "description": "Not found in the caller's tenant"},
    409: {"model": ErrorResponse, "description": "Business rule violated; nothing was changed"},
    422: {"model": ValidationErrorResponse, "description": "Invalid request payload"},
}

router = APIRouter(responses=ERROR_RESPONSES)

router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(students.router, prefix="/students", tags=["Students"])
router.include_router(audit.router, prefix="/audit", tags=["Audit"])
