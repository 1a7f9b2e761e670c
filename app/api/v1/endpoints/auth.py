"""Authentication endpoints."""

import structlog
from fastapi import APIRouter, status

from app.core.exceptions import UnauthorizedException
from app.core.security import create_access_token
from app.dependencies import CurrentUser, DatabaseSession
from app.schemas.auth import LoginRequest, LoginResponse
from app.schemas.users import UserResponse
from app.services.user_service import UserService

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    tags=["Authentication"],
    summary="Email and password login",
)
async def login(request: LoginRequest, db: DatabaseSession) -> LoginResponse:
    """
    Authenticate with email and password and return a JWT access token.

    Args:
        request: Login credentials
        db: Database session

    Returns:
        Access token and user information

    Raises:
        UnauthorizedException: If the credentials do not match
    """
    user = await UserService().authenticate(db, request.email, request.password)
    if not user:
        logger.warning("login_failed", email=request.email)
        raise UnauthorizedException("Invalid email or password")

    access_token = create_access_token(user["id"], user["role"])
    logger.info("user_logged_in", user_id=user["id"], role=user["role"])

    return LoginResponse(
        access_token=access_token,
        token_type="bearer",
        user=UserResponse.model_validate(user),
    )


@router.get(
    "/me",
    response_model=UserResponse,
    status_code=status.HTTP_200_OK,
    tags=["Authentication"],
    summary="Get current user",
)
async def get_me(current_user: CurrentUser) -> UserResponse:
    """Return the authenticated user's profile."""
    return UserResponse.model_validate(current_user)
