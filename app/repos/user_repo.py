from __future__ import annotations

from dataclasses import replace
from typing import Protocol

from app.models.user import User


class UserRepo(Protocol):
    async def get_by_id(self, user_id: int) -> User | None: ...
    async def get_by_email(self, email: str) -> User | None: ...
    async def add(
        self,
        *,
        email: str,
        password_hash: str,
        name: str = "",
        roles: tuple[str, ...] = ("user",),
    ) -> User: ...
    async def set_active(self, user_id: int, is_active: bool) -> None: ...
    async def update_password_hash(self, user_id: int, password_hash: str) -> None: ...


class InMemoryUserRepo:
    def __init__(self) -> None:
        self._by_email: dict[str, User] = {}
        self._by_id: dict[int, User] = {}
        self._next_id = 1

    async def get_by_id(self, user_id: int) -> User | None:
        return self._by_id.get(user_id)

    async def get_by_email(self, email: str) -> User | None:
        return self._by_email.get(email)

    async def add(
        self,
        *,
        email: str,
        password_hash: str,
        name: str = "",
        roles: tuple[str, ...] = ("user",),
    ) -> User:
        if email in self._by_email:
            raise ValueError("email already exists")
        user = User(
            id=self._next_id,
            email=email,
            password_hash=password_hash,
            name=name,
            roles=roles,
        )
        self._by_email[user.email] = user
        self._by_id[user.id] = user
        self._next_id += 1
        return user

    async def set_active(self, user_id: int, is_active: bool) -> None:
        self._replace(user_id, is_active=is_active)

    async def update_password_hash(self, user_id: int, password_hash: str) -> None:
        self._replace(user_id, password_hash=password_hash)

    def _replace(self, user_id: int, **changes: object) -> None:
        u = self._by_id.get(user_id)
        if u is None:
            raise KeyError("user not found")

        updated = replace(u, **changes)  # type: ignore[arg-type]
        self._by_id[user_id] = updated
        self._by_email[updated.email] = updated

    # --- unit-of-work support ---

    def snapshot(self) -> tuple[dict[int, User], int]:
        return dict(self._by_id), self._next_id

    def restore(self, state: tuple[dict[int, User], int]) -> None:
        self._by_id, self._next_id = dict(state[0]), state[1]
        self._by_email = {u.email: u for u in self._by_id.values()}

    def clear(self) -> None:
        self._by_id.clear()
        self._by_email.clear()
        self._next_id = 1
