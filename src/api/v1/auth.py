"""
Authentication endpoints.
"""

from typing import Annotated

from fastapi import APIRouter, status

from src.api.deps import Identity, guarded
from src.kernel.identity.principal import Principal
from src.schemas.auth import (
    PrincipalResponse,
    TenantRegister,
    TokenResponse,
    UserLogin,
    UserResponse,
)

router = APIRouter()


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(data: TenantRegister, identity: Identity):
    """
    Register a new driving school and its first administrator.

    Returns a bearer credential for the new administrator.
    """
    user, token = await identity.register_tenant(
        tenant_name=data.tenant_name,
        email=data.email,
        password=data.password,
    )
    return TokenResponse(
        access_token=token.access_token,
        token_type=token.token_type,
        expires_in=token.expires_in,
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=TokenResponse)
async def login(data: UserLogin, identity: Identity):
    """Authenticate with email and password."""
    user, token = await identity.authenticate(email=data.email, password=data.password)
    return TokenResponse(
        access_token=token.access_token,
        token_type=token.token_type,
        expires_in=token.expires_in,
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=PrincipalResponse)
async def me(principal: Annotated[Principal, guarded("auth.me")]):
    """The principal resolved for this request, with its current tenant and role."""
    return PrincipalResponse.model_validate(principal)
