from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError

from app.models.user import User
from app.repos.user_repo import UserRepo
from app.services.errors import NotFoundError

logger = logging.getLogger(__name__)

# Argon2 hash strings encode parameters + salt
_ph = PasswordHasher()


def hash_password(plain_password: str) -> str:
    if not plain_password:
        raise ValueError("password must be non-empty")
    return _ph.hash(plain_password)


# verify_password() must catch Argon2 exceptions and return False
def verify_password(plain_password: str, password_hash: str) -> bool:
    if not plain_password or not password_hash:
        return False
    try:
        return _ph.verify(password_hash, plain_password)
    except (VerifyMismatchError, VerificationError, InvalidHash):
        return False


async def authenticate_user(repo: UserRepo, email: str, password: str) -> User | None:
    """Return the active user matching the credentials, or None.

    Argon2 work runs in a worker thread so the event loop keeps serving
    other requests. Rehashes the stored password when Argon2 parameters
    have changed; the caller's unit of work persists the new hash.
    """
    user = await repo.get_by_email(email)
    if user is None:
        return None
    if not user.is_active:
        return None
    if not await asyncio.to_thread(verify_password, password, user.password_hash):
        return None

    try:
        if _ph.check_needs_rehash(user.password_hash):
            new_hash = await asyncio.to_thread(hash_password, password)
            await repo.update_password_hash(user.id, new_hash)
            logger.info("Rehashed password for user=%s", user.id)
    except InvalidHash:
        return None

    return user


async def set_user_active(repo: UserRepo, user_id: int, is_active: bool) -> User:
    """Activate or deactivate an account. Inactive users cannot log in or refresh."""
    user = await repo.get_by_id(user_id)
    if user is None:
        raise NotFoundError(f"user {user_id} not found")
    await repo.set_active(user_id, is_active)
    logger.info("User active flag changed user=%s is_active=%s", user_id, is_active)
    return replace(user, is_active=is_active)
