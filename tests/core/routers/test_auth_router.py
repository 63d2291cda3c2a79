"""
Integration tests for the /auth router.

Requests go through the ASGI app with the stores, mailer, primitives and
clock swapped for the test doubles from conftest.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from credgate.core.config import settings
from credgate.core.services.auth import drain_deliveries

EMAIL = "alice@example.com"
PASSWORD = "Str0ngPassw0rd"
NEW_PASSWORD = "N3wPassw0rdX"


async def obtain_otp_token(client, mailer, email: str = EMAIL) -> str:
    response = await client.post("/auth/otp/request", json={"email": email})
    assert response.status_code == 202

    response = await client.post(
        "/auth/otp/verify", json={"email": email, "otp_code": mailer.last_otp()}
    )
    assert response.status_code == 200
    return response.json()["otp_token"]


async def register(client, mailer, email: str = EMAIL, password: str = PASSWORD) -> dict:
    otp_token = await obtain_otp_token(client, mailer, email)
    response = await client.post(
        "/auth/register",
        json={"email": email, "password": password, "otp_token": otp_token},
    )
    assert response.status_code == 201
    return response.json()


async def forgot_password(client, email: str = EMAIL):
    response = await client.post("/auth/forgot-password", json={"email": email})
    await drain_deliveries()
    return response


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestOtpEndpoints:

    async def test_request_otp(self, client, mailer):
        response = await client.post("/auth/otp/request", json={"email": EMAIL})

        assert response.status_code == 202
        assert response.json() == {
            "message": "Verification code sent to your email",
            "success": True,
        }
        assert mailer.last("otp")[0] == EMAIL

    async def test_request_otp_invalid_email(self, client):
        response = await client.post("/auth/otp/request", json={"email": "not-an-email"})

        assert response.status_code == 422

    async def test_request_otp_mailer_failure(self, client, mailer):
        mailer.fail = True

        response = await client.post("/auth/otp/request", json={"email": EMAIL})

        assert response.status_code == 502
        assert response.json()["detail"] == (
            "Failed to send verification code. Please try again."
        )

    async def test_verify_otp_without_request(self, client):
        response = await client.post(
            "/auth/otp/verify", json={"email": EMAIL, "otp_code": "123456"}
        )

        assert response.status_code == 404
        assert response.json()["detail"] == (
            "No verification code was requested for this email."
        )

    async def test_verify_otp_expired(self, client, mailer, clock):
        await client.post("/auth/otp/request", json={"email": EMAIL})
        clock.advance(minutes=61)

        response = await client.post(
            "/auth/otp/verify", json={"email": EMAIL, "otp_code": mailer.last_otp()}
        )

        assert response.status_code == 400
        assert "expired" in response.json()["detail"]

    @pytest.mark.parametrize("otp_code", ["12345", "1234567", "abcdef"])
    async def test_verify_otp_malformed_code(self, client, otp_code):
        response = await client.post(
            "/auth/otp/verify", json={"email": EMAIL, "otp_code": otp_code}
        )

        assert response.status_code == 422


class TestRegister:

    async def test_register(self, client, mailer):
        body = await register(client, mailer)

        assert body["message"] == "Registration successful"
        assert body["user"]["email"] == EMAIL
        assert body["user"]["is_verified"] is True
        assert body["token_type"] == "bearer"
        assert body["expires_in"] == 3600
        assert "password_hash" not in body["user"]

    async def test_register_duplicate(self, client, mailer):
        await register(client, mailer)
        otp_token = await obtain_otp_token(client, mailer)

        response = await client.post(
            "/auth/register",
            json={"email": EMAIL, "password": PASSWORD, "otp_token": otp_token},
        )

        assert response.status_code == 409

    async def test_register_invalid_token(self, client):
        response = await client.post(
            "/auth/register",
            json={"email": EMAIL, "password": PASSWORD, "otp_token": "garbage"},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid or expired OTP token."

    async def test_register_token_for_other_email(self, client, mailer):
        otp_token = await obtain_otp_token(client, mailer, "bob@example.com")

        response = await client.post(
            "/auth/register",
            json={"email": EMAIL, "password": PASSWORD, "otp_token": otp_token},
        )

        assert response.status_code == 400

    @pytest.mark.parametrize(
        "password", ["short1A", "alllowercase1", "ALLUPPERCASE1", "NoDigitsHere"]
    )
    async def test_register_weak_password(self, client, mailer, password):
        otp_token = await obtain_otp_token(client, mailer)

        response = await client.post(
            "/auth/register",
            json={"email": EMAIL, "password": password, "otp_token": otp_token},
        )

        assert response.status_code == 422


class TestLogin:

    async def test_login(self, client, mailer):
        registered = await register(client, mailer)

        response = await client.post(
            "/auth/login", json={"email": EMAIL, "password": PASSWORD}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Login successful"
        assert body["user"]["id"] == registered["user"]["id"]
        assert body["access_token"]

    async def test_login_wrong_password(self, client, mailer):
        await register(client, mailer)

        response = await client.post(
            "/auth/login", json={"email": EMAIL, "password": "WrongPassw0rd"}
        )

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"
        assert response.json()["detail"] == "Invalid email or password."

    async def test_login_unknown_email(self, client):
        response = await client.post(
            "/auth/login", json={"email": "nobody@example.com", "password": PASSWORD}
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "User not found."


class TestPasswordReset:

    async def test_forgot_password_returns_token_when_enabled(self, client, mailer):
        await register(client, mailer)

        response = await forgot_password(client)

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "If the email exists, a reset token has been sent."
        assert body["reset_token"] == mailer.last_reset_token()

    async def test_forgot_password_unknown_email(self, client, mailer):
        response = await client.post(
            "/auth/forgot-password", json={"email": "nobody@example.com"}
        )

        assert response.status_code == 200
        assert response.json() == {
            "message": "If the email exists, a reset token has been sent."
        }
        assert mailer.sent == []

    async def test_forgot_password_hides_token_when_disabled(
        self, client, mailer, monkeypatch
    ):
        monkeypatch.setattr(settings, "RETURN_RESET_TOKEN", False)
        await register(client, mailer)

        response = await forgot_password(client)

        assert response.json() == {
            "message": "If the email exists, a reset token has been sent."
        }
        assert mailer.last_reset_token()

    async def test_reset_password_flow(self, client, mailer):
        await register(client, mailer)
        await forgot_password(client)
        token = mailer.last_reset_token()

        response = await client.post(
            "/auth/reset-password", json={"token": token, "new_password": NEW_PASSWORD}
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Password successfully reset"

        old_login = await client.post(
            "/auth/login", json={"email": EMAIL, "password": PASSWORD}
        )
        new_login = await client.post(
            "/auth/login", json={"email": EMAIL, "password": NEW_PASSWORD}
        )
        assert old_login.status_code == 401
        assert new_login.status_code == 200

        reused = await client.post(
            "/auth/reset-password", json={"token": token, "new_password": "Th1rdPassword"}
        )
        assert reused.status_code == 400
        assert reused.json()["detail"] == "Invalid or expired token."

    async def test_reset_password_expired_token(self, client, mailer, clock):
        await register(client, mailer)
        await forgot_password(client)
        clock.advance(minutes=61)

        response = await client.post(
            "/auth/reset-password",
            json={"token": mailer.last_reset_token(), "new_password": NEW_PASSWORD},
        )

        assert response.status_code == 400

    async def test_reset_password_weak_password(self, client, mailer):
        await register(client, mailer)
        await forgot_password(client)

        response = await client.post(
            "/auth/reset-password",
            json={"token": mailer.last_reset_token(), "new_password": "weak"},
        )

        assert response.status_code == 422


class TestAuthenticatedEndpoints:

    async def test_me(self, client, mailer):
        registered = await register(client, mailer)

        response = await client.get(
            "/auth/me", headers=bearer(registered["access_token"])
        )

        assert response.status_code == 200
        assert response.json()["id"] == registered["user"]["id"]
        assert response.json()["email"] == EMAIL

    async def test_me_without_token(self, client):
        response = await client.get("/auth/me")

        assert response.status_code == 401
        assert response.json()["detail"] == "Not authenticated."
        assert response.headers["www-authenticate"] == "Bearer"

    async def test_me_with_invalid_token(self, client):
        response = await client.get("/auth/me", headers=bearer("garbage"))

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired access token."

    async def test_me_with_expired_token(self, client, mailer, clock):
        registered = await register(client, mailer)
        clock.advance(minutes=61)

        response = await client.get(
            "/auth/me", headers=bearer(registered["access_token"])
        )

        assert response.status_code == 401

    async def test_me_with_otp_token(self, client, mailer):
        otp_token = await obtain_otp_token(client, mailer)

        response = await client.get("/auth/me", headers=bearer(otp_token))

        assert response.status_code == 401

    async def test_change_password(self, client, mailer):
        registered = await register(client, mailer)

        response = await client.post(
            "/auth/change-password",
            json={"current_password": PASSWORD, "new_password": NEW_PASSWORD},
            headers=bearer(registered["access_token"]),
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Password changed successfully"
        login = await client.post(
            "/auth/login", json={"email": EMAIL, "password": NEW_PASSWORD}
        )
        assert login.status_code == 200

    async def test_change_password_wrong_current(self, client, mailer):
        registered = await register(client, mailer)

        response = await client.post(
            "/auth/change-password",
            json={"current_password": "WrongPassw0rd", "new_password": NEW_PASSWORD},
            headers=bearer(registered["access_token"]),
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Current password is incorrect."

    async def test_change_password_expired_session(self, client, mailer, clock):
        registered = await register(client, mailer)
        clock.advance(minutes=61)

        response = await client.post(
            "/auth/change-password",
            json={"current_password": PASSWORD, "new_password": NEW_PASSWORD},
            headers=bearer(registered["access_token"]),
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired access token."

    async def test_change_password_without_token(self, client):
        response = await client.post(
            "/auth/change-password",
            json={"current_password": PASSWORD, "new_password": NEW_PASSWORD},
        )

        assert response.status_code == 401


class TestAppEndpoints:

    async def test_root(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["message"] == f"Welcome to {settings.APP_NAME}"

    async def test_health_with_memory_backend(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "database": "not used"}

    async def test_health_with_sql_backend(self, client, monkeypatch):
        monkeypatch.setattr(settings, "STORE_BACKEND", "sql")

        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "database": "ok"}

    async def test_health_database_down(self, app, client, monkeypatch):
        from credgate.core.dependencies import get_async_session

        monkeypatch.setattr(settings, "STORE_BACKEND", "sql")
        session = MagicMock()
        session.execute = AsyncMock(side_effect=OperationalError("SELECT 1", {}, None))

        async def broken_session():
            yield session

        app.dependency_overrides[get_async_session] = broken_session
        try:
            response = await client.get("/health")
        finally:
            app.dependency_overrides.pop(get_async_session, None)

        assert response.status_code == 503
        assert response.json() == {
            "detail": "One or more health checks failed.",
            "details": {"status": "degraded", "database": "unhealthy"},
        }

    async def test_openapi_lists_auth_routes(self, client):
        response = await client.get("/openapi.json")

        paths = response.json()["paths"]
        for path in [
            "/auth/otp/request",
            "/auth/otp/verify",
            "/auth/register",
            "/auth/login",
            "/auth/forgot-password",
            "/auth/reset-password",
            "/auth/change-password",
            "/auth/me",
        ]:
            assert path in paths
