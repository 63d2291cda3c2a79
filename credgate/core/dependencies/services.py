"""
Service wiring for FastAPI endpoints.

Primitives (hasher, OTP engine, token issuer) are built once from settings.
Stores are chosen by ``STORE_BACKEND``: ``sql`` binds them to the request's
session, ``memory`` uses process-wide singletons.

Tests swap any of these through ``app.dependency_overrides``.
"""

from datetime import timedelta
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from credgate.core.clock import Clock, system_clock
from credgate.core.config import settings
from credgate.core.dependencies.db import get_async_session
from credgate.core.services.auth import AuthService
from credgate.core.services.email_manager import EmailManagerService
from credgate.core.services.otp import OTPEngine
from credgate.core.services.password import PasswordHasher
from credgate.core.services.tokens import TokenIssuer
from credgate.core.stores.base import IdentityStore, Mailer, OtpChallengeStore
from credgate.core.stores.memory import InMemoryIdentityStore, InMemoryOtpChallengeStore
from credgate.core.stores.sql import SQLIdentityStore, SQLOtpChallengeStore

memory_identity_store = InMemoryIdentityStore()
memory_otp_store = InMemoryOtpChallengeStore()


def get_clock() -> Clock:
    return system_clock


@lru_cache()
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=settings.BCRYPT_ROUNDS)


@lru_cache()
def get_otp_engine() -> OTPEngine:
    return OTPEngine(
        step_seconds=settings.OTP_STEP_SECONDS,
        digits=settings.OTP_DIGITS,
        window=settings.OTP_VALID_WINDOW,
    )


@lru_cache()
def get_token_issuer() -> TokenIssuer:
    return TokenIssuer(settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def get_mailer() -> Mailer:
    return EmailManagerService


def get_identity_store(
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> IdentityStore:
    if settings.STORE_BACKEND == "memory":
        return memory_identity_store
    return SQLIdentityStore(session)


def get_otp_store(
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> OtpChallengeStore:
    if settings.STORE_BACKEND == "memory":
        return memory_otp_store
    return SQLOtpChallengeStore(session)


def get_auth_service(
    identity_store: Annotated[IdentityStore, Depends(get_identity_store)],
    otp_store: Annotated[OtpChallengeStore, Depends(get_otp_store)],
    mailer: Annotated[Mailer, Depends(get_mailer)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    otp_engine: Annotated[OTPEngine, Depends(get_otp_engine)],
    token_issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> AuthService:
    """
    Build the orchestrator for one request.

    Returns:
        AuthService: Orchestrator wired to the configured stores and primitives.
    """
    return AuthService(
        identity_store=identity_store,
        otp_store=otp_store,
        mailer=mailer,
        hasher=hasher,
        otp_engine=otp_engine,
        token_issuer=token_issuer,
        clock=clock,
        otp_expiry=timedelta(minutes=settings.OTP_EXPIRY_MINUTES),
        session_ttl=timedelta(minutes=settings.SESSION_TOKEN_EXPIRE_MINUTES),
        otp_proof_ttl=timedelta(minutes=settings.OTP_PROOF_TOKEN_EXPIRE_MINUTES),
        reset_ttl=timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES),
    )


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
