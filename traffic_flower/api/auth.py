"""Account endpoints: registration, login, session resolution and deletion."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from traffic_flower.api.dependencies import (
    get_bearer_token,
    get_current_user,
    limit_login_attempts,
    limit_registrations,
)
from traffic_flower.database import get_db
from traffic_flower.exceptions import ConflictError, ValidationError
from traffic_flower.models.user import User
from traffic_flower.schemas.auth import (
    AuthResponse,
    MessageResponse,
    SignupAlert,
    UserLogin,
    UserRegister,
    UserResponse,
)
from traffic_flower.services import auth as auth_service

router = APIRouter(prefix="/api/signup", tags=["auth"])


@router.post(
    "/register",
    response_model=AuthResponse | SignupAlert,
    dependencies=[Depends(limit_registrations)],
)
async def register(
    user_data: UserRegister,
    db: Annotated[Session, Depends(get_db)],
):
    """Register a new user.

    Validation and duplicate-account failures are reported inline with
    ``alert: "error"`` so the signup form can render them.
    """
    try:
        result = auth_service.register_user(
            db,
            name=user_data.name,
            username=user_data.username,
            email=user_data.email,
            password=user_data.password,
            repeat_password=user_data.repeat_password,
        )
    except (ValidationError, ConflictError) as e:
        return SignupAlert(message=e.detail)

    return AuthResponse(
        message="Account created successfully",
        token=result.token,
        user=UserResponse.model_validate(result.user),
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    dependencies=[Depends(limit_login_attempts)],
)
async def login(
    credentials: UserLogin,
    db: Annotated[Session, Depends(get_db)],
):
    """Login with email or username and password."""
    result = auth_service.login_user(db, credentials.identifier, credentials.password)

    return AuthResponse(
        message="Login successful",
        token=result.token,
        user=UserResponse.model_validate(result.user),
    )


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Get current user information."""
    return current_user


@router.delete("/account", response_model=MessageResponse)
async def delete_account(
    token: Annotated[str | None, Depends(get_bearer_token)],
    db: Annotated[Session, Depends(get_db)],
):
    """Delete the authenticated account."""
    auth_service.delete_account(db, token)
    return MessageResponse(message="Account deleted")


@router.post("/logout", response_model=MessageResponse)
async def logout():
    """Logout (client should discard token)."""
    return MessageResponse(message="Logged out successfully")
