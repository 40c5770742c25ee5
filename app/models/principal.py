from __future__ import annotations

from dataclasses import dataclass

from app.models.organization import OrgRole


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated identity extracted from a validated JWT.

    Carried through the request via FastAPI's dependency system.

    Platform-level fields (always set):
        user_id: subject from JWT (the numeric user id, as a string)
        roles: platform roles (admin, user)

    Org-level fields (set by resolve_org_principal when request is org-scoped):
        org_id: active organization for this request
        org_role: role within that org (ADMIN|MANAGER|VIEWER)
    """

    user_id: str
    roles: frozenset[str]
    org_id: int | None = None
    org_role: OrgRole | None = None

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def has_any_role(self, roles: set[str]) -> bool:
        return bool(self.roles & roles)

    def has_any_org_role(self, roles: set[OrgRole]) -> bool:
        return self.org_role in roles

    def is_platform_admin(self) -> bool:
        return "admin" in self.roles
