"""Refresh endpoint: exchange a valid refresh token for a new token pair.

Refresh tokens are single-use: each successful refresh blacklists the
presented token (rotation), so a stolen refresh token stops working as
soon as either party uses it.
"""

from __future__ import annotations

import logging

import jwt as pyjwt
from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from app.api.register import AuthResponse, issue_tokens
from app.db.unit_of_work import uow_factory
from app.services import token_service
from app.services.token_blacklist import token_blacklist

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class RefreshIn(BaseModel):
    refreshToken: str


@router.post("/refresh", response_model=AuthResponse)
async def refresh(payload: RefreshIn) -> AuthResponse:
    """Exchange a valid refresh token for a new access + refresh token pair.

    Steps:
      1. Decode and verify the refresh token (signature, expiry, audience)
      2. Check it hasn't been revoked (blacklist lookup)
      3. Look up the user to get current roles (not stale token roles)
      4. Blacklist the old refresh token (rotation: single use)
      5. Issue new access token + new refresh token
    """
    try:
        claims = token_service.decode_refresh_token(payload.refreshToken)
    except pyjwt.ExpiredSignatureError:
        logger.warning("Expired refresh token presented")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token expired",
        ) from None
    except pyjwt.InvalidTokenError as e:
        logger.warning("Invalid refresh token: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        ) from None

    jti = claims["jti"]
    if await token_blacklist.is_revoked(jti):
        logger.warning(
            "Revoked refresh token reuse detected  jti=%s sub=%s",
            jti,
            claims.get("sub"),
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token has been revoked",
        )

    sub = claims["sub"]
    user = None
    if sub.isdigit():
        async with uow_factory() as uow:
            user = await uow.users.get_by_id(int(sub))

    if user is None or not user.is_active:
        logger.warning("Refresh for unknown/inactive user  sub=%s", sub)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    await token_blacklist.revoke(jti, float(claims["exp"]))
    logger.info("Refresh token rotated  old_jti=%s user=%s", jti, sub)

    return issue_tokens(user)
