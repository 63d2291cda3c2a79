"""
Integration tests for the SQLAlchemy-backed stores.

Each test gets a fresh in-memory SQLite database with the schema created
from the model metadata.
"""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from credgate.core.db import Base
from credgate.core.db.crud import otp_challenge_db, user_db
import credgate.core.db.models  # noqa: F401
from credgate.core.domain import Identity, OtpChallenge
from credgate.core.enums import AuthError
from credgate.core.exceptions.types import (
    DatabaseException,
    UserAlreadyExistsException,
    UserNotFoundException,
)
from credgate.core.stores.sql import SQLIdentityStore, SQLOtpChallengeStore

EXPIRY = datetime(2026, 1, 15, 13, 0, tzinfo=timezone.utc)


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def sql_identity_store(db_session) -> SQLIdentityStore:
    return SQLIdentityStore(db_session)


@pytest.fixture
def sql_otp_store(db_session) -> SQLOtpChallengeStore:
    return SQLOtpChallengeStore(db_session)


def make_identity(email: str = "alice@example.com") -> Identity:
    return Identity(email=email, password_hash="$2b$04$hash", is_verified=True)


def make_challenge(secret: str = "A" * 32) -> OtpChallenge:
    return OtpChallenge(
        email="alice@example.com",
        secret=secret,
        issued_token="123456",
        expires_at=EXPIRY,
    )


class TestSQLIdentityStore:

    async def test_create_and_find(self, sql_identity_store):
        identity = make_identity()

        created = await sql_identity_store.create(identity)
        found = await sql_identity_store.find_by_email("alice@example.com")

        assert created.id == identity.id
        assert found.id == identity.id
        assert found.email == "alice@example.com"
        assert found.is_verified is True
        assert found.created_at.tzinfo is not None

    async def test_find_unknown_returns_none(self, sql_identity_store):
        assert await sql_identity_store.find_by_email("nobody@example.com") is None

    async def test_duplicate_email_raises_conflict(self, sql_identity_store):
        await sql_identity_store.create(make_identity())

        with pytest.raises(UserAlreadyExistsException):
            await sql_identity_store.create(make_identity())

        # Session was rolled back and is still usable
        assert await sql_identity_store.find_by_email("alice@example.com") is not None

    async def test_save_reset_window(self, sql_identity_store):
        created = await sql_identity_store.create(make_identity())

        saved = await sql_identity_store.save(created.with_reset("reset-token", EXPIRY))
        found = await sql_identity_store.find_by_email("alice@example.com")

        assert saved.reset_token == "reset-token"
        assert found.reset_token == "reset-token"
        assert found.reset_token_expiry == EXPIRY

    async def test_save_password_clears_reset_window(self, sql_identity_store):
        created = await sql_identity_store.create(make_identity())
        with_reset = await sql_identity_store.save(created.with_reset("tok", EXPIRY))

        await sql_identity_store.save(with_reset.with_password("$2b$04$new"))
        found = await sql_identity_store.find_by_email("alice@example.com")

        assert found.password_hash == "$2b$04$new"
        assert found.reset_token is None
        assert found.reset_token_expiry is None

    async def test_save_unknown_identity(self, sql_identity_store):
        with pytest.raises(UserNotFoundException):
            await sql_identity_store.save(make_identity())


class TestSQLOtpChallengeStore:

    async def test_upsert_and_find(self, sql_otp_store):
        await sql_otp_store.upsert(make_challenge())

        found = await sql_otp_store.find_by_email("alice@example.com")

        assert found == make_challenge()

    async def test_upsert_replaces_previous_challenge(self, sql_otp_store, db_session):
        await sql_otp_store.upsert(make_challenge(secret="A" * 32))
        stored = await sql_otp_store.upsert(make_challenge(secret="B" * 32))

        found = await sql_otp_store.find_by_email("alice@example.com")

        assert stored.secret == "B" * 32
        assert found.secret == "B" * 32
        assert await otp_challenge_db.get_one_by_filters(db_session, {"secret": "A" * 32}) is None

    async def test_delete(self, sql_otp_store):
        await sql_otp_store.upsert(make_challenge())

        assert await sql_otp_store.delete("alice@example.com") is True
        assert await sql_otp_store.delete("alice@example.com") is False
        assert await sql_otp_store.find_by_email("alice@example.com") is None


class TestBaseDB:

    async def test_unknown_filter_column_raises_database_exception(self, db_session):
        with pytest.raises(DatabaseException):
            await user_db.get_one_by_filters(db_session, {"no_such_column": 1})

    async def test_upsert_requires_unique_fields(self, db_session):
        with pytest.raises(ValueError, match="Unique field"):
            await otp_challenge_db.upsert(
                db_session, {"secret": "A" * 32}, unique_fields=["email"]
            )


class TestAuthServiceOverSQL:

    @pytest.fixture
    def sql_auth_service(
        self, sql_identity_store, sql_otp_store, mailer, hasher, otp_engine, token_issuer, clock
    ):
        from credgate.core.services.auth import AuthService

        return AuthService(
            identity_store=sql_identity_store,
            otp_store=sql_otp_store,
            mailer=mailer,
            hasher=hasher,
            otp_engine=otp_engine,
            token_issuer=token_issuer,
            clock=clock,
        )

    async def test_registration_login_and_reset(self, sql_auth_service, mailer, clock):
        assert (await sql_auth_service.request_otp("Alice@Example.com")).ok
        proof = await sql_auth_service.verify_otp("alice@example.com", mailer.last_otp())
        session = await sql_auth_service.register("alice@example.com", "Passw0rd1", proof.value)

        assert session.ok
        assert session.value.identity.is_verified is True

        reset_token = (await sql_auth_service.request_password_reset("alice@example.com")).value
        assert (await sql_auth_service.reset_password(reset_token, "NewPassw0rd1")).ok

        assert (await sql_auth_service.login("alice@example.com", "Passw0rd1")).error == (
            AuthError.INVALID_CREDENTIALS
        )
        assert (await sql_auth_service.login("alice@example.com", "NewPassw0rd1")).ok
        assert (await sql_auth_service.reset_password(reset_token, "Other0ne1")).error == (
            AuthError.INVALID_OR_EXPIRED_TOKEN
        )

    async def test_expired_challenge_over_sql(self, sql_auth_service, mailer, clock):
        await sql_auth_service.request_otp("alice@example.com")
        clock.advance(minutes=61)

        result = await sql_auth_service.verify_otp("alice@example.com", mailer.last_otp())

        assert result.error == AuthError.EXPIRED
