# tests/v1/test_users.py
"""Tests for user profile and balance endpoints."""

from collections.abc import Callable

from fastapi import status
from fastapi.testclient import TestClient

from tests.conftest import auth_headers_for
from vote_vision.core.settings import settings
from vote_vision.models import User, WeightTier


def test_get_my_profile(client: TestClient, auth_token: dict[str, str], test_user: User) -> None:
    response = client.get("/api/v1/users/me", headers=auth_token)

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["id"] == test_user.id
    assert body["display_name"] == "Test User"
    assert body["vote_balance"] == 10
    assert body["vote_weight"] == 1


def test_profile_reports_tier_weight(client: TestClient, make_user: Callable[..., User]) -> None:
    vip = make_user(tier=WeightTier.VIP)
    response = client.get("/api/v1/users/me", headers=auth_headers_for(vip))

    assert response.json()["weight_tier"] == "vip"
    assert response.json()["vote_weight"] == 5


def test_admin_grants_balance(client: TestClient, test_user: User) -> None:
    response = client.post(
        f"/api/v1/users/{test_user.address}/balance",
        json={"amount": 5},
        headers={"X-Admin-Key": settings.admin_api_key or ""},
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["vote_balance"] == 15


def test_balance_grant_accepts_prefixed_address(client: TestClient, test_user: User) -> None:
    response = client.post(
        f"/api/v1/users/0x{test_user.address.upper()}/balance",
        json={"amount": 1},
        headers={"X-Admin-Key": settings.admin_api_key or ""},
    )
    assert response.status_code == status.HTTP_200_OK


def test_balance_grant_requires_admin_key(client: TestClient, test_user: User) -> None:
    missing = client.post(f"/api/v1/users/{test_user.address}/balance", json={"amount": 5})
    wrong = client.post(
        f"/api/v1/users/{test_user.address}/balance",
        json={"amount": 5},
        headers={"X-Admin-Key": "guess"},
    )
    assert missing.status_code == status.HTTP_403_FORBIDDEN
    assert wrong.status_code == status.HTTP_403_FORBIDDEN


def test_balance_grant_unknown_user(client: TestClient) -> None:
    response = client.post(
        "/api/v1/users/deadbeef/balance",
        json={"amount": 5},
        headers={"X-Admin-Key": settings.admin_api_key or ""},
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_balance_grant_rejects_non_positive_amount(client: TestClient, test_user: User) -> None:
    response = client.post(
        f"/api/v1/users/{test_user.address}/balance",
        json={"amount": 0},
        headers={"X-Admin-Key": settings.admin_api_key or ""},
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
