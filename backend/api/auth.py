"""
Authentication API Endpoints
User registration, login, token refresh and user info.
"""
import logging

from fastapi import APIRouter, HTTPException, status
from jose import JWTError
from sqlalchemy import select

from backend.api.deps import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    AsyncSessionDep,
    CurrentUser,
    create_token_pair,
    get_password_hash,
    verify_password,
    verify_refresh_token,
)
from backend.models import User
from backend.schemas.auth import (
    RefreshRequest,
    Token,
    UserCreate,
    UserLogin,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def _token_response(user: User) -> Token:
    access_token, refresh_token = create_token_pair(user)
    return Token(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        expires_in=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


@router.post(
    "/register",
    response_model=Token,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="Create a new user account with email and password."
)
async def register(
    user_data: UserCreate,
    db: AsyncSessionDep,
) -> Token:
    """
    Register a new user account.

    - **email**: Valid email address (used for login)
    - **password**: Minimum 12 characters
    - **name**: Optional full name
    """
    result = await db.execute(
        select(User).where(User.email == user_data.email)
    )
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    new_user = User(
        email=user_data.email,
        password_hash=get_password_hash(user_data.password),
        name=user_data.name,
    )
    db.add(new_user)
    await db.flush()
    await db.refresh(new_user)

    logger.info(f"Registered user {new_user.id}")
    return _token_response(new_user)


@router.post(
    "/login",
    response_model=Token,
    summary="Login user",
    description="Authenticate user and return JWT tokens."
)
async def login(
    credentials: UserLogin,
    db: AsyncSessionDep,
) -> Token:
    """
    Authenticate a user with email and password.

    Returns access and refresh tokens on success.
    """
    result = await db.execute(
        select(User).where(User.email == credentials.email)
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return _token_response(user)


@router.post(
    "/refresh",
    response_model=Token,
    summary="Refresh access token",
    description="Get a new access token using a refresh token."
)
async def refresh_token(
    request: RefreshRequest,
    db: AsyncSessionDep,
) -> Token:
    """Exchange a valid refresh token for a new token pair."""
    try:
        token_data = verify_refresh_token(request.refresh_token)
    except (JWTError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await db.execute(
        select(User).where(User.id == token_data.user_id)
    )
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return _token_response(user)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
    description="Get information about the currently authenticated user."
)
async def get_me(current_user: CurrentUser) -> UserResponse:
    """Get the current authenticated user's information."""
    return UserResponse.model_validate(current_user)
