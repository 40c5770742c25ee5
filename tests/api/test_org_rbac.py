"""Table-driven org-scoped RBAC tests.

Each row describes: endpoint pattern, method, org_role, expected HTTP status.
Tests ensure that org-scoped guards (resolve_org_principal,
require_any_org_role) behave correctly across all organization endpoints.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.models.organization import OrgRole
from tests.conftest import add_test_member, auth, create_test_org, mint_token

_MEMBER_IDS = {"admin": 11, "manager": 12, "viewer": 13}


def _setup_org_with_roles() -> tuple[int, dict[str, str]]:
    """Create an org and users with every org role. Return (org_id, role->token map)."""
    org = create_test_org("rbac-org")

    tokens: dict[str, str] = {}
    for role, user_id in _MEMBER_IDS.items():
        add_test_member(org.id, user_id, OrgRole(role.upper()))
        tokens[role] = mint_token(username=str(user_id), roles=["user"])

    # non-member: valid user but no membership in this org
    tokens["non_member"] = mint_token(username="20", roles=["user"])

    # platform admin: not a member but has admin platform role
    tokens["platform_admin"] = mint_token(username="30", roles=["admin"])

    return org.id, tokens


# (endpoint_template, method, role_key, expected_status)
_ORG_RBAC_CASES: list[tuple[str, str, str | None, int]] = [
    # GET /v1/orgs/{org_id} - any member
    ("/v1/orgs/{org_id}", "GET", "admin", 200),
    ("/v1/orgs/{org_id}", "GET", "manager", 200),
    ("/v1/orgs/{org_id}", "GET", "viewer", 200),
    ("/v1/orgs/{org_id}", "GET", "platform_admin", 200),
    ("/v1/orgs/{org_id}", "GET", "non_member", 403),
    ("/v1/orgs/{org_id}", "GET", None, 401),
    # GET /v1/orgs/{org_id}/members - admin/manager
    ("/v1/orgs/{org_id}/members", "GET", "admin", 200),
    ("/v1/orgs/{org_id}/members", "GET", "manager", 200),
    ("/v1/orgs/{org_id}/members", "GET", "viewer", 403),
    ("/v1/orgs/{org_id}/members", "GET", "platform_admin", 200),
    ("/v1/orgs/{org_id}/members", "GET", "non_member", 403),
    ("/v1/orgs/{org_id}/members", "GET", None, 401),
    # GET /v1/orgs/{org_id}/dashboard - admin/manager
    ("/v1/orgs/{org_id}/dashboard", "GET", "admin", 200),
    ("/v1/orgs/{org_id}/dashboard", "GET", "manager", 200),
    ("/v1/orgs/{org_id}/dashboard", "GET", "viewer", 403),
    ("/v1/orgs/{org_id}/dashboard", "GET", "platform_admin", 200),
    ("/v1/orgs/{org_id}/dashboard", "GET", "non_member", 403),
    ("/v1/orgs/{org_id}/dashboard", "GET", None, 401),
    # GET /v1/orgs/{org_id}/plan - admin only
    ("/v1/orgs/{org_id}/plan", "GET", "admin", 200),
    ("/v1/orgs/{org_id}/plan", "GET", "manager", 403),
    ("/v1/orgs/{org_id}/plan", "GET", "viewer", 403),
    ("/v1/orgs/{org_id}/plan", "GET", "platform_admin", 200),
    ("/v1/orgs/{org_id}/plan", "GET", "non_member", 403),
    ("/v1/orgs/{org_id}/plan", "GET", None, 401),
    # POST /v1/orgs/{org_id}/plan/upgrade - admin only
    ("/v1/orgs/{org_id}/plan/upgrade", "POST", "admin", 200),
    ("/v1/orgs/{org_id}/plan/upgrade", "POST", "manager", 403),
    ("/v1/orgs/{org_id}/plan/upgrade", "POST", "viewer", 403),
    ("/v1/orgs/{org_id}/plan/upgrade", "POST", "platform_admin", 200),
    ("/v1/orgs/{org_id}/plan/upgrade", "POST", "non_member", 403),
    ("/v1/orgs/{org_id}/plan/upgrade", "POST", None, 401),
]


def _case_id(case: tuple) -> str:
    endpoint, method, role, expected = case
    role_label = role or "anon"
    return f"{method} {endpoint} [{role_label}] -> {expected}"


@pytest.mark.parametrize(
    "endpoint_tpl,method,role_key,expected",
    _ORG_RBAC_CASES,
    ids=[_case_id(c) for c in _ORG_RBAC_CASES],
)
def test_org_rbac(
    client: TestClient,
    endpoint_tpl: str,
    method: str,
    role_key: str | None,
    expected: int,
) -> None:
    org_id, tokens = _setup_org_with_roles()
    endpoint = endpoint_tpl.format(org_id=org_id)
    token = tokens.get(role_key) if role_key else None
    headers = auth(token)

    if method == "GET":
        resp = client.get(endpoint, headers=headers)
    elif method == "POST":
        resp = client.post(endpoint, headers=headers)
    else:
        pytest.fail(f"Unsupported method: {method}")

    assert resp.status_code == expected, (
        f"{method} {endpoint} role={role_key}: "
        f"expected {expected}, got {resp.status_code}"
        f"\n  body: {resp.json()}"
    )


# --- Member listing and plan changes ---


def test_members_lists_roles(client: TestClient) -> None:
    org_id, tokens = _setup_org_with_roles()

    resp = client.get(f"/v1/orgs/{org_id}/members", headers=auth(tokens["manager"]))
    assert resp.status_code == 200
    roles = {m["user_id"]: m["role"] for m in resp.json()}
    assert roles == {11: "ADMIN", 12: "MANAGER", 13: "VIEWER"}


def test_upgrade_then_cancel_plan(client: TestClient) -> None:
    org_id, tokens = _setup_org_with_roles()
    headers = auth(tokens["admin"])

    resp = client.post(f"/v1/orgs/{org_id}/plan/upgrade", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["plan_type"] == "PLUS"

    resp = client.get(f"/v1/orgs/{org_id}/plan", headers=headers)
    assert resp.json() == {"plan_type": "PLUS", "status": "APPROVED"}

    resp = client.post(f"/v1/orgs/{org_id}/plan/cancel", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["plan_type"] == "FREE"


def test_platform_admin_unknown_org_returns_404(client: TestClient, admin_token: str) -> None:
    resp = client.get("/v1/orgs/4040", headers=auth(admin_token))
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "NOT_FOUND"


# --- GET /v1/orgs ---


def test_list_my_orgs_shows_role_per_org(client: TestClient) -> None:
    first = create_test_org("First")
    second = create_test_org("Second")
    create_test_org("Elsewhere")
    add_test_member(first.id, 40, OrgRole.ADMIN)
    add_test_member(second.id, 40, OrgRole.VIEWER)

    resp = client.get("/v1/orgs", headers=auth(mint_token(username="40")))
    assert resp.status_code == 200
    got = [(e["organization"]["name"], e["role"]) for e in resp.json()]
    assert got == [("First", "ADMIN"), ("Second", "VIEWER")]


def test_list_my_orgs_requires_auth(client: TestClient) -> None:
    assert client.get("/v1/orgs").status_code == 401


# --- Dashboard and Plus-plan reports ---


def test_dashboard_shows_plan_and_member_counts(client: TestClient) -> None:
    org_id, tokens = _setup_org_with_roles()

    resp = client.get(f"/v1/orgs/{org_id}/dashboard", headers=auth(tokens["manager"]))
    assert resp.status_code == 200
    data = resp.json()
    assert data["organization"]["id"] == org_id
    assert data["plan_type"] == "FREE"
    assert data["role"] == "MANAGER"
    assert data["member_count"] == 3
    assert data["members_by_role"] == {"ADMIN": 1, "MANAGER": 1, "VIEWER": 1}


def test_reports_on_free_plan_returns_403(client: TestClient) -> None:
    org_id, tokens = _setup_org_with_roles()

    resp = client.get(f"/v1/orgs/{org_id}/reports", headers=auth(tokens["admin"]))
    assert resp.status_code == 403
    assert resp.json()["detail"] == {
        "code": "PLAN_REQUIRED",
        "message": "Plus plan required",
    }


@pytest.mark.parametrize(
    "role_key,expected",
    [
        ("admin", 200),
        ("platform_admin", 200),
        ("manager", 403),
        ("viewer", 403),
        ("non_member", 403),
        (None, 401),
    ],
)
def test_reports_on_plus_plan_rbac(
    client: TestClient, role_key: str | None, expected: int
) -> None:
    org_id, tokens = _setup_org_with_roles()
    upgraded = client.post(f"/v1/orgs/{org_id}/plan/upgrade", headers=auth(tokens["admin"]))
    assert upgraded.status_code == 200

    token = tokens.get(role_key) if role_key else None
    resp = client.get(f"/v1/orgs/{org_id}/reports", headers=auth(token))
    assert resp.status_code == expected


def test_reports_date_range(client: TestClient) -> None:
    org_id, tokens = _setup_org_with_roles()
    headers = auth(tokens["admin"])
    client.post(f"/v1/orgs/{org_id}/plan/upgrade", headers=headers)

    resp = client.get(
        f"/v1/orgs/{org_id}/reports",
        params={"start_date": "2000-01-01", "end_date": "2000-12-31"},
        headers=headers,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["start_date"] == "2000-01-01"
    assert data["end_date"] == "2000-12-31"
    assert data["total_members"] == 3
    assert data["joined_in_period"] == 0
    assert data["joined_by_role"] == {"ADMIN": 0, "MANAGER": 0, "VIEWER": 0}

    resp = client.get(
        f"/v1/orgs/{org_id}/reports", params={"start_date": "2000-01-01"}, headers=headers
    )
    assert resp.json()["joined_in_period"] == 3


def test_reports_inverted_range_returns_422(client: TestClient) -> None:
    org_id, tokens = _setup_org_with_roles()
    headers = auth(tokens["admin"])
    client.post(f"/v1/orgs/{org_id}/plan/upgrade", headers=headers)

    resp = client.get(
        f"/v1/orgs/{org_id}/reports",
        params={"start_date": "2026-02-01", "end_date": "2026-01-01"},
        headers=headers,
    )
    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == "INVALID_INPUT"
