"""
Signed claim-bearing tokens.

- HS256 JWTs via PyJWT, signed with an explicitly injected key
- Every token carries ``iat``, ``exp`` and a random ``jti``
- Expiry is checked against the injected clock, not the wall clock
- Verification returns a ``Result`` instead of raising
"""

from datetime import datetime, timedelta, timezone
from typing import Any
import uuid

import jwt

from credgate.core.clock import Clock, system_clock
from credgate.core.config import security_logger
from credgate.core.domain import VerifiedToken
from credgate.core.enums import AuthError, TokenPurpose
from credgate.core.results import Result

RESERVED_CLAIMS = frozenset({"iat", "exp", "jti"})


class TokenIssuer:
    """
    Issues and verifies short-lived signed tokens.

    Rotating the key means constructing a new issuer; tokens signed with the
    previous key stop verifying.

    Args:
        secret_key: HMAC signing key.
        algorithm: JWT algorithm name.
        clock: Time source for ``iat``/``exp`` and expiry checks.

    Raises:
        ValueError: If ``secret_key`` is empty.

    Example:
        >>> issuer = TokenIssuer("a-signing-key-of-at-least-32-bytes!!")
        >>> token = issuer.issue({"purpose": "session", "sub": "1"}, timedelta(hours=1))
        >>> issuer.verify(token, TokenPurpose.SESSION).ok
        True
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        clock: Clock | None = None,
    ):
        if not secret_key:
            raise ValueError("Token signing key cannot be empty")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.clock = clock or system_clock

    def issue(self, claims: dict[str, Any], ttl: timedelta) -> str:
        """
        Sign a token carrying ``claims``.

        Args:
            claims: JSON-serialisable claims. Must not contain ``iat``,
                ``exp`` or ``jti``.
            ttl: Lifetime of the token.

        Returns:
            str: Compact JWT string (header.payload.signature).

        Raises:
            ValueError: If ``claims`` contains a reserved claim.
        """
        token, _ = self.issue_with_expiry(claims, ttl)
        return token

    def issue_with_expiry(
        self, claims: dict[str, Any], ttl: timedelta
    ) -> tuple[str, datetime]:
        """Sign a token and return it with the ``exp`` it carries."""
        reserved = RESERVED_CLAIMS.intersection(claims)
        if reserved:
            raise ValueError(
                f"Reserved claim(s) cannot be set by callers: {', '.join(sorted(reserved))}"
            )

        issued_at = int(self.clock.now().timestamp())
        expires_at = issued_at + int(ttl.total_seconds())
        to_encode = dict(claims)
        to_encode["iat"] = issued_at
        to_encode["exp"] = expires_at
        to_encode["jti"] = str(uuid.uuid4())

        token = jwt.encode(to_encode, self._secret_key, algorithm=self.algorithm)
        security_logger.info(
            f"Token issued: purpose={claims.get('purpose')}, ttl={int(ttl.total_seconds())}s"
        )
        return token, datetime.fromtimestamp(expires_at, tz=timezone.utc)

    def verify(
        self, token: str | None, purpose: TokenPurpose | str | None = None
    ) -> Result[VerifiedToken]:
        """
        Verify a token's signature, expiry and purpose.

        Args:
            token: The token string.
            purpose: Required ``purpose`` claim. Not checked when None.

        Returns:
            Result[VerifiedToken]: The verified claims, or one of
            ``INVALID_SIGNATURE``, ``EXPIRED``, ``WRONG_PURPOSE``.
        """
        if not token:
            return Result.failure(AuthError.INVALID_SIGNATURE, "empty token")

        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": ["exp", "iat"],
                },
            )
            issued_at = datetime.fromtimestamp(payload.pop("iat"), tz=timezone.utc)
            expires_at = datetime.fromtimestamp(payload.pop("exp"), tz=timezone.utc)
        except jwt.InvalidTokenError as e:
            security_logger.warning(
                f"Token verification failed: invalid token - {type(e).__name__}"
            )
            return Result.failure(AuthError.INVALID_SIGNATURE, type(e).__name__)
        except (TypeError, ValueError, OverflowError) as e:
            security_logger.warning(
                f"Token verification failed: malformed timing claims - {type(e).__name__}"
            )
            return Result.failure(AuthError.INVALID_SIGNATURE, "malformed timing claims")

        payload.pop("jti", None)

        if self.clock.now() > expires_at:
            security_logger.warning("Token verification failed: token has expired")
            return Result.failure(AuthError.EXPIRED, "token has expired")

        if purpose is not None:
            expected = purpose.value if isinstance(purpose, TokenPurpose) else purpose
            if payload.get("purpose") != expected:
                security_logger.warning(
                    f"Token verification failed: purpose {payload.get('purpose')!r} "
                    f"used where {expected!r} was required"
                )
                return Result.failure(AuthError.WRONG_PURPOSE, "purpose mismatch")

        return Result.success(
            VerifiedToken(claims=payload, issued_at=issued_at, expires_at=expires_at)
        )


__all__ = ["TokenIssuer", "RESERVED_CLAIMS"]
