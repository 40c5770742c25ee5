"""GET /auth/me: the authenticated user's own profile."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from app.api.dependencies import require_user, subject_id
from app.db.unit_of_work import uow_factory
from app.models.principal import Principal

router = APIRouter(tags=["profile"])


class ProfileOut(BaseModel):
    id: int
    email: str
    name: str
    roles: list[str]
    is_active: bool


@router.get("/auth/me", response_model=ProfileOut)
async def get_my_profile(
    principal: Annotated[Principal, Depends(require_user)],
) -> ProfileOut:
    async with uow_factory() as uow:
        user = await uow.users.get_by_id(subject_id(principal))
    if user is None:
        raise HTTPException(status_code=404, detail="user not found")

    return ProfileOut(
        id=user.id,
        email=user.email,
        name=user.name,
        roles=list(user.roles),
        is_active=user.is_active,
    )
