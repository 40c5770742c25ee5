"""Logout endpoint: revokes the current access token.

Blacklisting the JTI makes the token unusable wherever the client stored
it.  Clients may also send their refresh token to have it revoked too.
"""

from __future__ import annotations

import logging
from typing import Annotated

import jwt
from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from app.api.dependencies import oauth2_scheme
from app.services import token_service
from app.services.token_blacklist import token_blacklist

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


class LogoutBody(BaseModel):
    """Optional body: clients may include their refresh token for revocation."""

    refreshToken: str | None = None


@router.post("/auth/logout", status_code=204)
async def logout(
    raw_token: Annotated[str, Depends(oauth2_scheme)],
    body: LogoutBody | None = None,
) -> Response:
    """Revoke the current token (and optional refresh token).

    Idempotent: an invalid or expired token already doesn't work, so
    logout still answers 204.
    """
    try:
        claims = token_service.decode_access_token(raw_token)
    except jwt.InvalidTokenError:
        claims = None

    if claims:
        await token_blacklist.revoke(claims["jti"], float(claims["exp"]))
        logger.info("Token revoked jti=%s", claims["jti"])

    if body and body.refreshToken:
        try:
            refresh_claims = token_service.decode_refresh_token(body.refreshToken)
        except jwt.InvalidTokenError:
            logger.debug("Ignoring invalid refresh token on logout")
        else:
            await token_blacklist.revoke(
                refresh_claims["jti"], float(refresh_claims["exp"])
            )
            logger.info("Refresh token revoked on logout  jti=%s", refresh_claims["jti"])

    return Response(status_code=204)
