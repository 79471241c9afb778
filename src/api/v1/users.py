"""
User administration endpoints.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter

from src.api.deps import Identity, guarded
from src.kernel.identity.principal import Principal
from src.schemas.auth import RoleChangeRequest, UserResponse

router = APIRouter()


@router.patch("/{user_id}/role", response_model=UserResponse)
async def change_role(
    user_id: uuid.UUID,
    data: RoleChangeRequest,
    identity: Identity,
    principal: Annotated[Principal, guarded("users.change_role")],
):
    """
    Change a user's role within the caller's tenant.

    Takes effect on the user's next request; existing credentials are not reissued.
    """
    user = await identity.change_role(user_id, data.role, principal)
    return UserResponse.model_validate(user)
