# taskhub/routers/auth.py
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.auth import get_current_user
from taskhub.core.errors import BadRequestError, ConflictError, UnauthorizedError
from taskhub.core.security import create_access_token
from taskhub.database import get_db
from taskhub.models import User
from taskhub.schemas.auth import AuthResponse, ChangePasswordRequest, LoginRequest, RegisterRequest
from taskhub.schemas.common import Envelope
from taskhub.schemas.user import UserUpdate, UserWithCounts
from taskhub.utils.password import hash_password, verify_password
from taskhub.utils.response import created_response, success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

AVATAR_URL = "https://api.dicebear.com/7.x/avataaars/svg?seed={seed}"


def issue_token(user: User) -> str:
    return create_access_token(user.id, user.email, user.role)


async def reload_user(db: AsyncSession, user_id) -> User:
    result = await db.execute(
        select(User).where(User.id == user_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


@router.post("/register", response_model=Envelope[AuthResponse], status_code=status.HTTP_201_CREATED)
async def register(user_in: RegisterRequest, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.email == user_in.email))
    if result.scalar_one_or_none():
        raise ConflictError("User with this email already exists")

    user = User(
        email=user_in.email,
        password=await hash_password(user_in.password),
        first_name=user_in.first_name,
        last_name=user_in.last_name,
        avatar=AVATAR_URL.format(seed=user_in.email),
    )
    db.add(user)
    await db.commit()
    user = await reload_user(db, user.id)
    logger.info("Registered user %s", user.id)

    return created_response({"user": user, "token": issue_token(user)}, "Registration successful")


@router.post("/login", response_model=Envelope[AuthResponse])
async def login(user_in: LoginRequest, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.email == user_in.email))
    user = result.scalar_one_or_none()

    # Same message for unknown email and wrong password
    if not user or not await verify_password(user_in.password, user.password):
        raise UnauthorizedError("Invalid email or password")

    return success_response({"user": user, "token": issue_token(user)}, "Login successful")


@router.get("/me", response_model=Envelope[UserWithCounts])
async def read_users_me(current_user: User = Depends(get_current_user)):
    return success_response(current_user)


@router.put("/me", response_model=Envelope[UserWithCounts])
async def update_me(
    user_in: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    changes = user_in.model_dump(exclude_unset=True, exclude_none=True)
    if "avatar" in changes:
        changes["avatar"] = str(changes["avatar"])
    for field, value in changes.items():
        setattr(current_user, field, value)

    db.add(current_user)
    await db.commit()
    user = await reload_user(db, current_user.id)
    return success_response(user, "Profile updated successfully")


@router.put("/password", response_model=Envelope)
async def change_password(
    request: ChangePasswordRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    # 1. Verify current password
    if not await verify_password(request.current_password, current_user.password):
        raise UnauthorizedError("Current password is incorrect")

    # 2. Prevent reusing same password
    if request.new_password == request.current_password:
        raise BadRequestError("New password must be different")

    # 3. Hash and update
    current_user.password = await hash_password(request.new_password)
    db.add(current_user)
    await db.commit()
    logger.info("Password changed for user %s", current_user.id)

    return success_response(None, "Password changed successfully")
