"""JSON auth endpoints (/auth/register, /auth/login).

Both return { accessToken, refreshToken, user: { id, email, name } }.
"""

from __future__ import annotations

import asyncio
import logging
import re

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from app.db.unit_of_work import uow_factory
from app.models.user import User
from app.services import auth_service, token_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# --- Request / Response schemas -------------------------------------------


class LoginIn(BaseModel):
    email: str
    password: str


class RegisterIn(BaseModel):
    name: str
    email: str
    password: str


class UserOut(BaseModel):
    id: int
    email: str
    name: str


class AuthResponse(BaseModel):
    accessToken: str
    refreshToken: str
    user: UserOut


def issue_tokens(user: User) -> AuthResponse:
    access_token = token_service.create_access_token(
        sub=str(user.id),
        roles=list(user.roles) or ["user"],
    )
    refresh_token = token_service.create_refresh_token(sub=str(user.id))
    return AuthResponse(
        accessToken=access_token,
        refreshToken=refresh_token,
        user=UserOut(id=user.id, email=user.email, name=user.name),
    )


# --- POST /auth/login -----------------------------------------------------


@router.post("/login", response_model=AuthResponse)
async def login(payload: LoginIn) -> AuthResponse:
    email = payload.email.lower().strip()

    async with uow_factory() as uow:
        user = await auth_service.authenticate_user(uow.users, email, payload.password)
    if user is None:
        logger.warning("Login failed  email=%s", email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Invalid email or password"},
        )

    logger.info("Login succeeded  user_id=%s email=%s", user.id, email)
    return issue_tokens(user)


# --- POST /auth/register --------------------------------------------------


def _conflict() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={"message": "A user with this email already exists"},
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(payload: RegisterIn) -> AuthResponse:
    email = payload.email.lower().strip()
    name = payload.name.strip()

    if not EMAIL_RE.match(email):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": "Invalid email address"},
        )

    if not name:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": "Name is required"},
        )

    if len(payload.password) < 8:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": "Password must be at least 8 characters"},
        )

    password_hash = await asyncio.to_thread(auth_service.hash_password, payload.password)
    async with uow_factory() as uow:
        if await uow.users.get_by_email(email) is not None:
            raise _conflict()
        try:
            user = await uow.users.add(
                email=email, password_hash=password_hash, name=name
            )
        except ValueError:
            # another request created the same email
            raise _conflict() from None

    logger.info("User registered  user_id=%s email=%s", user.id, email)
    return issue_tokens(user)
