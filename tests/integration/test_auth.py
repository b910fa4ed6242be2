"""Integration tests for the authentication endpoints."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from django.urls import resolve
from rest_framework.throttling import ScopedRateThrottle

from modules.accounts.models import User
from modules.accounts.views import AuthViewSet
from modules.customers.models import Customer

pytestmark = pytest.mark.integration

PASSWORD = "Passw0rd!"

LOGIN_URL = "/api/v1/auth/login"


def login(client, email, password=PASSWORD):
    return client.post(LOGIN_URL, {"email": email, "password": password}, format="json")


@pytest.fixture()
def bearer(api_client, manager):
    """APIClient carrying a real access token for ``manager``."""
    token = login(api_client, manager.email).json()["token"]
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return api_client


class TestLogin:
    def test_returns_token_and_user(self, api_client, manager, store):
        response = login(api_client, manager.email)

        assert response.status_code == 200
        data = response.json()
        assert data["token"]
        assert data["user"]["email"] == manager.email
        assert data["user"]["role"] == "STORE_MANAGER"
        assert data["user"]["store_id"] == str(store.id)
        assert "password" not in data["user"]

    def test_trailing_slash_accepted(self, api_client, manager):
        response = api_client.post(
            f"{LOGIN_URL}/", {"email": manager.email, "password": PASSWORD}, format="json"
        )
        assert response.status_code == 200

    def test_email_is_case_insensitive(self, api_client, manager):
        assert login(api_client, manager.email.upper()).status_code == 200

    def test_wrong_password(self, api_client, manager):
        response = login(api_client, manager.email, "not-the-password")

        assert response.status_code == 401
        assert response.json()["type"] == "authentication_error"

    def test_unknown_email_same_error(self, api_client, manager):
        wrong = login(api_client, manager.email, "not-the-password").json()
        unknown = login(api_client, "nobody@example.com").json()
        assert wrong == unknown

    def test_inactive_user_rejected(self, api_client, inactive_delivery_boy):
        assert login(api_client, inactive_delivery_boy.email).status_code == 401

    def test_records_last_login(self, api_client, manager):
        login(api_client, manager.email)
        manager.refresh_from_db()
        assert manager.last_login is not None

    def test_missing_fields(self, api_client):
        response = api_client.post(LOGIN_URL, {}, format="json")

        assert response.status_code == 400
        attrs = {error["attr"] for error in response.json()["errors"]}
        assert attrs == {"email", "password"}


class TestTokenUse:
    def test_me(self, bearer, manager):
        response = bearer.get("/api/v1/auth/me")

        assert response.status_code == 200
        assert response.json()["id"] == str(manager.id)

    def test_no_token_is_401(self, api_client):
        response = api_client.get("/api/v1/auth/me")
        assert response.status_code == 401

    def test_garbage_token_is_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer not.a.jwt")
        assert api_client.get("/api/v1/auth/me").status_code == 401

    def test_logout_revokes_token(self, bearer):
        assert bearer.post("/api/v1/auth/logout").status_code == 204

        response = bearer.get("/api/v1/auth/me")

        assert response.status_code == 401


class TestChangePassword:
    def test_changes_password(self, bearer, api_client, manager):
        response = bearer.post(
            "/api/v1/auth/change-password",
            {"current_password": PASSWORD, "new_password": "N3wSecret!"},
            format="json",
        )

        assert response.status_code == 204
        api_client.credentials()
        assert login(api_client, manager.email, "N3wSecret!").status_code == 200

    def test_wrong_current_password(self, bearer):
        response = bearer.post(
            "/api/v1/auth/change-password",
            {"current_password": "nope", "new_password": "N3wSecret!"},
            format="json",
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "current_password"

    def test_too_short(self, bearer):
        response = bearer.post(
            "/api/v1/auth/change-password",
            {"current_password": PASSWORD, "new_password": "abc"},
            format="json",
        )
        assert response.status_code == 400


class TestRegister:
    def test_admin_registers_customer_with_profile(self, admin_client, store):
        response = admin_client.post(
            "/api/v1/auth/register",
            {
                "email": "Meera@Example.com",
                "password": "Secret12",
                "name": "Meera Nair",
                "phone": "9800000055",
                "role": "CUSTOMER",
                "store_id": str(store.id),
                "apartment": "D-204",
            },
            format="json",
        )

        assert response.status_code == 201
        user = User.objects.get(email="meera@example.com")
        profile = Customer.objects.get(user=user)
        assert profile.store_id == store.id
        assert profile.apartment == "D-204"

    def test_store_required_for_bound_roles(self, admin_client):
        response = admin_client.post(
            "/api/v1/auth/register",
            {
                "email": "rider5@example.com",
                "password": "Secret12",
                "name": "Rider Five",
                "role": "DELIVERY_BOY",
            },
            format="json",
        )
        assert response.status_code == 400

    def test_duplicate_email(self, admin_client, manager, store):
        response = admin_client.post(
            "/api/v1/auth/register",
            {
                "email": manager.email,
                "password": "Secret12",
                "name": "Copy",
                "role": "STORE_MANAGER",
                "store_id": str(store.id),
            },
            format="json",
        )

        assert response.status_code == 409
        assert response.json()["type"] == "already_exists"

    def test_manager_cannot_register(self, manager_client, store):
        response = manager_client.post(
            "/api/v1/auth/register",
            {"email": "x@example.com", "password": "Secret12", "name": "X", "role": "ADMIN"},
            format="json",
        )
        assert response.status_code == 403


class TestRouting:
    @pytest.mark.parametrize(
        "path", ["login", "logout", "me", "change-password", "register"]
    )
    def test_paths_resolve_with_and_without_slash(self, path):
        assert resolve(f"/api/v1/auth/{path}").url_name == f"auth-{path}"
        assert resolve(f"/api/v1/auth/{path}/").url_name == f"auth-{path}"

    def test_login_without_slash_is_not_redirected(self, api_client, manager):
        response = api_client.post(
            LOGIN_URL, {"email": manager.email, "password": PASSWORD}, format="json"
        )
        assert response.status_code == 200


class TestLoginThrottle:
    def _view(self, action_name):
        view = AuthViewSet()
        view.action = action_name
        return view

    def test_login_uses_login_scope(self):
        view = self._view("login")

        with patch.object(AuthViewSet, "throttle_classes", [ScopedRateThrottle]):
            throttles = view.get_throttles()

        assert view.throttle_scope == "login"
        assert isinstance(throttles[0], ScopedRateThrottle)

    def test_other_actions_have_no_scope(self):
        view = self._view("me")
        view.get_throttles()
        assert getattr(view, "throttle_scope", None) is None

    def test_login_is_rate_limited(self, api_client, manager):
        with patch.object(AuthViewSet, "throttle_classes", [ScopedRateThrottle]), patch.object(
            ScopedRateThrottle, "THROTTLE_RATES", {"login": "2/minute"}
        ):
            statuses = [
                login(api_client, manager.email, "wrong").status_code for _ in range(3)
            ]

        assert statuses == [401, 401, 429]
