"""Ownership and resource-level access checks.

These are plain functions (not FastAPI dependencies) because they need
both the Principal and the loaded resource's owner, which is only known
inside the endpoint body.
"""

from __future__ import annotations

from fastapi import HTTPException, status

from app.models.principal import Principal


def check_owner_or_admin(
    principal: Principal,
    resource_owner_id: int,
) -> None:
    """Raise 403 unless the principal owns the resource or is a platform admin."""
    if principal.user_id == str(resource_owner_id):
        return
    if principal.is_platform_admin():
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You can only access your own resource",
    )
