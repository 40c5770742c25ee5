"""Token blacklist tests.

Verifies JWT revocation via the blacklist:
1. A valid token works normally before revocation
2. After POST /auth/logout, the same token is rejected (401)
3. A different user's token is unaffected by another's logout
4. Logout is idempotent (calling it twice doesn't error)
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import auth, create_test_user, mint_token


def test_token_works_before_logout(client: TestClient) -> None:
    """Baseline: a valid token reaches the protected endpoint."""
    user = create_test_user()
    token = mint_token(username=str(user.id))
    resp = client.get("/auth/me", headers=auth(token))
    assert resp.status_code == 200


def test_token_rejected_after_logout(client: TestClient) -> None:
    user = create_test_user()
    token = mint_token(username=str(user.id))

    resp = client.get("/auth/me", headers=auth(token))
    assert resp.status_code == 200

    resp = client.post("/auth/logout", headers=auth(token))
    assert resp.status_code == 204

    resp = client.get("/auth/me", headers=auth(token))
    assert resp.status_code == 401
    assert "revoked" in resp.json()["detail"].lower()


def test_revoked_token_rejected_on_workflow_routes(client: TestClient) -> None:
    token = mint_token(username="1")
    client.post("/auth/logout", headers=auth(token))

    resp = client.post(
        "/v1/org-applications", json={"org_name": "Helpers"}, headers=auth(token)
    )
    assert resp.status_code == 401


def test_other_tokens_unaffected_by_logout(client: TestClient) -> None:
    """Revoking user A's token should not affect user B's token."""
    a = create_test_user(email="a@example.com")
    b = create_test_user(email="b@example.com")
    token_a = mint_token(username=str(a.id))
    token_b = mint_token(username=str(b.id))

    resp = client.post("/auth/logout", headers=auth(token_a))
    assert resp.status_code == 204

    resp = client.get("/auth/me", headers=auth(token_b))
    assert resp.status_code == 200


def test_logout_is_idempotent(client: TestClient) -> None:
    token = mint_token(username="1")

    resp = client.post("/auth/logout", headers=auth(token))
    assert resp.status_code == 204

    # token already revoked; logout still answers 204
    resp = client.post("/auth/logout", headers=auth(token))
    assert resp.status_code == 204
