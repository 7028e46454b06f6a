# app/api/endpoints/auth.py

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from app.schemas.auth import (
    AuthPayload,
    ChangePasswordRequest,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
)
from app.schemas.common import ApiResponse
from app.schemas.user import UserRead
from app.models.user import User, UserRole
from app.services.auth_service import (
    authenticate_user,
    change_password,
    create_auth_payload,
    create_user,
    update_profile,
)
from app.core.config import settings
from app.core.rate_limiter import limiter
from app.api.deps import get_db_session, get_current_user

router = APIRouter(prefix="/api/auth", tags=["Auth"])


# -------------------------------------------------------------------
# REGISTER (public, always a plain 'user')
# -------------------------------------------------------------------
@router.post("/register", response_model=ApiResponse[AuthPayload], status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def register(
    request: Request,
    data: RegisterRequest,
    session: AsyncSession = Depends(get_db_session),
):
    user = await create_user(
        session=session,
        name=data.name,
        email=data.email,
        password=data.password,
        role=UserRole.User,
    )
    logger.info(f"New user registered: {user.email}")
    return ApiResponse(message="User registered successfully", data=create_auth_payload(user))


# -------------------------------------------------------------------
# LOGIN
# -------------------------------------------------------------------
@router.post("/login", response_model=ApiResponse[AuthPayload])
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db_session),
):
    user = await authenticate_user(session, payload.email, payload.password)
    return ApiResponse(message="Login successful", data=create_auth_payload(user))


# -------------------------------------------------------------------
# PROFILE
# -------------------------------------------------------------------
@router.get("/profile", response_model=ApiResponse[UserRead])
async def get_profile(current_user: User = Depends(get_current_user)):
    return ApiResponse(message="Profile retrieved successfully", data=UserRead.model_validate(current_user))


@router.put("/profile", response_model=ApiResponse[UserRead])
async def edit_profile(
    data: ProfileUpdate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    user = await update_profile(session, current_user, name=data.name, email=data.email)
    return ApiResponse(message="Profile updated successfully", data=UserRead.model_validate(user))


@router.put("/change-password", response_model=ApiResponse[None])
async def update_password(
    data: ChangePasswordRequest,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    await change_password(session, current_user, data.current_password, data.new_password)
    logger.info(f"Password changed for user {current_user.id}")
    return ApiResponse(message="Password changed successfully")


# -------------------------------------------------------------------
# LOGOUT (tokens are stateless; the client drops its copy)
# -------------------------------------------------------------------
@router.post("/logout", response_model=ApiResponse[None])
async def logout(current_user: User = Depends(get_current_user)):
    logger.info(f"User {current_user.id} logged out")
    return ApiResponse(message="Logged out successfully")
