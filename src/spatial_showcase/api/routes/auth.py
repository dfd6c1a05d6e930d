"""Account routes: register, login and the current user."""

from __future__ import annotations

from fastapi import APIRouter, status

from spatial_showcase.api.dependencies import CurrentIdentity, Services
from spatial_showcase.api.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserResponse,
)
from spatial_showcase.services.accounts import authenticate_user, get_user, register_user

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
async def register(request: RegisterRequest, services: Services) -> AuthResponse:
    """Create a user and return it with a bearer credential."""
    user = await register_user(
        services.database,
        request.email,
        request.password,
        request.name,
        iterations=services.settings.password_hash_iterations,
    )
    return AuthResponse(
        user=UserResponse.model_validate(user),
        token=services.verifier.issue(user.id),
    )


@router.post("/login", response_model=AuthResponse, summary="Log in with email and password")
async def login(request: LoginRequest, services: Services) -> AuthResponse:
    user = await authenticate_user(
        services.database,
        request.email,
        request.password,
        iterations=services.settings.password_hash_iterations,
    )
    return AuthResponse(
        user=UserResponse.model_validate(user),
        token=services.verifier.issue(user.id),
    )


@router.get("/me", response_model=UserResponse, summary="Current user")
async def me(identity: CurrentIdentity, services: Services) -> UserResponse:
    user = await get_user(services.database, identity.user_id)
    return UserResponse.model_validate(user)
