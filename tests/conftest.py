"""
Pytest configuration and core fixtures.

The credential core runs against in-memory stores, a fake mailer and a
manually driven clock so OTP steps and token expiry are deterministic.
SQL store tests build their own in-memory SQLite engine.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

TEST_SIGNING_KEY = "test-signing-key-that-is-at-least-32-bytes-long"
TEST_PASSWORD = "Str0ngPassw0rd"


def pytest_configure(config):
    """Configure the environment before any credgate module is imported."""
    os.environ["ENVIRONMENT"] = "test"
    os.environ["DEBUG"] = "false"
    os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
    os.environ["STORE_BACKEND"] = "memory"
    os.environ["JWT_SECRET_KEY"] = TEST_SIGNING_KEY
    os.environ["BCRYPT_ROUNDS"] = "4"
    os.environ["RETURN_RESET_TOKEN"] = "true"
    os.environ["SENTRY_DSN"] = ""

    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (require real database)",
    )


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


class FakeMailer:
    """Mailer that records every message instead of sending it."""

    def __init__(self):
        self.sent: list[tuple[str, str, dict[str, Any]]] = []
        self.fail = False

    async def send(
        self, to_email: str, template_name: str, context: dict[str, Any]
    ) -> bool:
        if self.fail:
            return False
        self.sent.append((to_email, template_name, dict(context)))
        return True

    def last(self, template_name: str) -> tuple[str, dict[str, Any]]:
        """Return ``(to_email, context)`` of the latest message for a template."""
        for to_email, name, context in reversed(self.sent):
            if name == template_name:
                return to_email, context
        raise AssertionError(f"No '{template_name}' email was sent")

    def last_otp(self) -> str:
        return self.last("otp")[1]["otp_code"]

    def last_reset_token(self) -> str:
        return self.last("password_reset")[1]["reset_token"]


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def hasher():
    from credgate.core.services.password import PasswordHasher

    return PasswordHasher(rounds=4)


@pytest.fixture
def otp_engine(clock):
    from credgate.core.services.otp import OTPEngine

    return OTPEngine(step_seconds=3600, digits=6, window=3, clock=clock)


@pytest.fixture
def token_issuer(clock):
    from credgate.core.services.tokens import TokenIssuer

    return TokenIssuer(TEST_SIGNING_KEY, clock=clock)


@pytest.fixture
def identity_store(clock):
    from credgate.core.stores.memory import InMemoryIdentityStore

    return InMemoryIdentityStore(clock=clock)


@pytest.fixture
def otp_store():
    from credgate.core.stores.memory import InMemoryOtpChallengeStore

    return InMemoryOtpChallengeStore()


@pytest.fixture
def auth_service(
    identity_store, otp_store, mailer, hasher, otp_engine, token_issuer, clock
):
    from credgate.core.services.auth import AuthService

    return AuthService(
        identity_store=identity_store,
        otp_store=otp_store,
        mailer=mailer,
        hasher=hasher,
        otp_engine=otp_engine,
        token_issuer=token_issuer,
        clock=clock,
    )


@pytest.fixture
def register_user(auth_service, mailer):
    """Return a coroutine that runs the full OTP registration flow."""

    async def _register(email: str = "alice@example.com", password: str = TEST_PASSWORD):
        (await auth_service.request_otp(email)).unwrap()
        proof = (await auth_service.verify_otp(email, mailer.last_otp())).unwrap()
        return (await auth_service.register(email, password, proof)).unwrap()

    return _register


@pytest.fixture
def app():
    """Create FastAPI application for testing."""
    from credgate.main import app as fastapi_app

    return fastapi_app


@pytest.fixture
async def client(
    app, identity_store, otp_store, mailer, hasher, otp_engine, token_issuer, clock
) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client wired to the test collaborators."""
    from credgate.core.dependencies import (
        get_clock,
        get_identity_store,
        get_mailer,
        get_otp_engine,
        get_otp_store,
        get_password_hasher,
        get_token_issuer,
    )

    overrides = {
        get_identity_store: lambda: identity_store,
        get_otp_store: lambda: otp_store,
        get_mailer: lambda: mailer,
        get_password_hasher: lambda: hasher,
        get_otp_engine: lambda: otp_engine,
        get_token_issuer: lambda: token_issuer,
        get_clock: lambda: clock,
    }
    app.dependency_overrides.update(overrides)

    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        for dependency in overrides:
            app.dependency_overrides.pop(dependency, None)
