import logging
from collections.abc import Callable
from dataclasses import replace
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from app.db.unit_of_work import AbstractUnitOfWork
from app.models.organization import OrgRole
from app.models.principal import Principal
from app.services import token_service
from app.services.token_blacklist import token_blacklist

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_user(
    raw_token: Annotated[str, Depends(oauth2_scheme)],
) -> Principal:
    """Validate the JWT bearer token and return a Principal.

    Rejects expired, malformed and revoked (logged-out) tokens with 401.
    Used as a FastAPI dependency on any protected endpoint.
    """
    try:
        claims = token_service.decode_access_token(raw_token)
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise _unauthorized("Token expired") from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise _unauthorized("Invalid token") from None

    if await token_blacklist.is_revoked(claims["jti"]):
        logger.warning("Revoked token rejected jti=%s", claims["jti"])
        raise _unauthorized("Token has been revoked")

    principal = Principal(
        user_id=claims["sub"],
        roles=frozenset(claims.get("roles", [])),
    )
    logger.debug(
        "Token validated for user=%s roles=%s",
        principal.user_id,
        principal.roles,
    )
    return principal


def subject_id(principal: Principal) -> int:
    """Return the principal's numeric user id, or 401 if the subject isn't one."""
    try:
        return int(principal.user_id)
    except ValueError:
        logger.warning("Non-numeric token subject sub=%s", principal.user_id)
        raise _unauthorized("Invalid token subject") from None


def require_role(role: str):
    """Dependency factory: demand a specific platform role.

    Usage: Depends(require_role("admin"))
    Returns the Principal if the role is present, else 403.
    """

    def _guard(
        principal: Annotated[Principal, Depends(require_user)],
    ) -> Principal:
        if not principal.has_role(role):
            logger.warning(
                "Access denied: user=%s missing role=%s",
                principal.user_id,
                role,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return principal

    return _guard


# ---------------------------------------------------------------------------
# Org-scoped access guards
# ---------------------------------------------------------------------------


def resolve_org_principal(uow_factory: Callable[[], AbstractUnitOfWork]):
    """Dependency factory: resolve org context from the ``org_id`` path param.

    Looks up the caller's membership and returns a Principal enriched with
    org_id and org_role.  Raises 403 if the caller is not a member.
    Platform admins bypass the membership check and act as org ADMIN.

    Usage::

        _resolve = resolve_org_principal(uow_factory)

        @router.get("/v1/orgs/{org_id}")
        async def get_org(principal: Annotated[Principal, Depends(_resolve)]):
            ...
    """

    async def _resolve(
        org_id: int,
        principal: Annotated[Principal, Depends(require_user)],
    ) -> Principal:
        if principal.is_platform_admin():
            return replace(principal, org_id=org_id, org_role=OrgRole.ADMIN)

        user_id = subject_id(principal)
        async with uow_factory() as uow:
            membership = await uow.memberships.get(org_id, user_id)
        if membership is None:
            logger.warning(
                "Access denied: user=%s not a member of org=%s",
                principal.user_id,
                org_id,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not a member of this organization",
            )

        return replace(principal, org_id=org_id, org_role=membership.role)

    return _resolve


def require_any_org_role(
    roles: set[OrgRole], uow_factory: Callable[[], AbstractUnitOfWork]
):
    """Dependency factory: demand at least one of the given org roles.

    Usage::

        _require = require_any_org_role({OrgRole.ADMIN, OrgRole.MANAGER}, uow_factory)
    """
    _resolve = resolve_org_principal(uow_factory)

    def _guard(
        principal: Annotated[Principal, Depends(_resolve)],
    ) -> Principal:
        if principal.is_platform_admin():
            return principal
        if not principal.has_any_org_role(roles):
            logger.warning(
                "Access denied: user=%s org_role=%s required_any=%s org=%s",
                principal.user_id,
                principal.org_role,
                sorted(r.value for r in roles),
                principal.org_id,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient org permissions",
            )
        return principal

    return _guard
