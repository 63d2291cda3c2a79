"""
Dependencies for FastAPI endpoints.
"""

from credgate.core.dependencies.auth import (
    CurrentIdentity,
    SessionToken,
    bearer_scheme,
    get_current_identity,
    get_session_token,
)
from credgate.core.dependencies.db import get_async_session
from credgate.core.dependencies.services import (
    AuthServiceDep,
    get_auth_service,
    get_clock,
    get_identity_store,
    get_mailer,
    get_otp_engine,
    get_otp_store,
    get_password_hasher,
    get_token_issuer,
    memory_identity_store,
    memory_otp_store,
)

__all__ = [
    "CurrentIdentity",
    "SessionToken",
    "bearer_scheme",
    "get_current_identity",
    "get_session_token",
    "get_async_session",
    "AuthServiceDep",
    "get_auth_service",
    "get_clock",
    "get_identity_store",
    "get_mailer",
    "get_otp_engine",
    "get_otp_store",
    "get_password_hasher",
    "get_token_issuer",
    "memory_identity_store",
    "memory_otp_store",
]
