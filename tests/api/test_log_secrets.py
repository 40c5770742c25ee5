"""Assert that passwords and tokens never appear in log output.

These tests exercise endpoints that handle sensitive data and verify
the log records contain no leaked secrets.
"""

from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient

from tests.conftest import create_test_user

TEST_EMAIL = "secrets-test@example.com"
TEST_PASSWORD = "super-s3cret-p@ssw0rd!"


def _login(client: TestClient, password: str):
    return client.post("/auth/login", json={"email": TEST_EMAIL, "password": password})


def test_failed_login_does_not_log_password(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    """POST /auth/login with wrong password: password must not appear in logs."""
    create_test_user(email=TEST_EMAIL, password="a-different-password")

    with caplog.at_level(logging.DEBUG):
        resp = _login(client, TEST_PASSWORD)
    assert resp.status_code == 401

    all_log_text = " ".join(caplog.messages)
    assert TEST_PASSWORD not in all_log_text, "Password found in log output!"


def test_successful_login_does_not_log_password_or_tokens(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    create_test_user(email=TEST_EMAIL, password=TEST_PASSWORD)

    with caplog.at_level(logging.DEBUG):
        resp = _login(client, TEST_PASSWORD)
    assert resp.status_code == 200
    data = resp.json()

    all_log_text = " ".join(caplog.messages)
    assert TEST_PASSWORD not in all_log_text, "Password found in log output!"
    assert data["accessToken"] not in all_log_text, "Access token found in log output!"
    assert data["refreshToken"] not in all_log_text, "Refresh token found in log output!"


def test_register_does_not_log_password(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.DEBUG):
        resp = client.post(
            "/auth/register",
            json={"name": "Secret", "email": TEST_EMAIL, "password": TEST_PASSWORD},
        )
    assert resp.status_code == 201

    all_log_text = " ".join(caplog.messages)
    assert TEST_PASSWORD not in all_log_text, "Password found in log output!"


def test_refresh_does_not_log_tokens(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    create_test_user(email=TEST_EMAIL, password=TEST_PASSWORD)
    refresh_token = _login(client, TEST_PASSWORD).json()["refreshToken"]

    with caplog.at_level(logging.DEBUG):
        resp = client.post("/auth/refresh", json={"refreshToken": refresh_token})
    assert resp.status_code == 200

    all_log_text = " ".join(caplog.messages)
    assert refresh_token not in all_log_text, "Refresh token found in log output!"
    assert resp.json()["accessToken"] not in all_log_text
