from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class User:
    id: int
    email: str
    password_hash: str
    name: str = ""
    roles: tuple[str, ...] = ()  # platform roles: user|admin
    is_active: bool = True

    def is_platform_admin(self) -> bool:
        return "admin" in self.roles
