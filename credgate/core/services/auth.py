"""
Authentication orchestrator.

Coordinates the password hasher, OTP engine and token issuer with the
identity store, OTP challenge store and mailer to implement:
- Registration gated behind an emailed one-time code
- Email/password login issuing session tokens
- Token-based password reset
- Password change and session resolution for authenticated callers

Every public coroutine returns a ``Result``. Expected outcomes (unknown
email, wrong code, expired token...) are error kinds, not exceptions, and
store or mailer failures come back as ``UPSTREAM_FAILURE``.

Example usage:
    from credgate.core.services.auth import AuthService

    auth = AuthService(
        identity_store=SQLIdentityStore(session),
        otp_store=SQLOtpChallengeStore(session),
        mailer=EmailManagerService,
        hasher=PasswordHasher(),
        otp_engine=OTPEngine(),
        token_issuer=TokenIssuer(settings.JWT_SECRET_KEY),
    )

    await auth.request_otp("user@example.com")
    proof = (await auth.verify_otp("user@example.com", "123456")).unwrap()
    session = (await auth.register("user@example.com", "S3cure!pass", proof)).unwrap()
"""

import asyncio
from datetime import timedelta
from functools import wraps
import hmac
from typing import Any, Awaitable, Callable, Coroutine, ParamSpec, TypeVar

from credgate.core.clock import Clock, system_clock
from credgate.core.config import auth_logger
from credgate.core.domain import AuthSession, Identity, OtpChallenge, PublicIdentity
from credgate.core.enums import AuthError, MailTemplate, TokenPurpose
from credgate.core.exceptions.types import (
    DatabaseException,
    UserAlreadyExistsException,
    UserNotFoundException,
)
from credgate.core.results import Result
from credgate.core.services.otp import OTPEngine
from credgate.core.services.password import PasswordHasher
from credgate.core.services.tokens import TokenIssuer
from credgate.core.stores.base import IdentityStore, Mailer, OtpChallengeStore
from credgate.core.utils import mask_email, mask_otp, normalize_email

P = ParamSpec("P")
T = TypeVar("T")

# Strong references to fire-and-forget deliveries until they finish
_pending_deliveries: set[asyncio.Task] = set()


def _on_delivery_done(task: asyncio.Task) -> None:
    _pending_deliveries.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        auth_logger.error(f"Background delivery failed: {type(exc).__name__} - {exc}")


def deliver_later(coro: Coroutine[Any, Any, None]) -> asyncio.Task:
    """Run a mail delivery without holding up the caller."""
    task = asyncio.get_running_loop().create_task(coro)
    _pending_deliveries.add(task)
    task.add_done_callback(_on_delivery_done)
    return task


async def drain_deliveries() -> None:
    """Wait for every delivery scheduled with ``deliver_later``."""
    while pending := [task for task in _pending_deliveries if not task.done()]:
        await asyncio.gather(*pending, return_exceptions=True)


def upstream_guard(
    func: Callable[P, Awaitable[Result[T]]],
) -> Callable[P, Awaitable[Result[T]]]:
    """
    Turn store and mailer failures into ``UPSTREAM_FAILURE`` results.

    A save that finds no row (identity deleted mid-flow) becomes ``NOT_FOUND``.
    """

    @wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result[T]:
        try:
            return await func(*args, **kwargs)
        except (DatabaseException, TimeoutError) as e:
            auth_logger.error(
                f"{func.__name__} failed on a collaborator: {type(e).__name__} - {e}"
            )
            return Result.failure(AuthError.UPSTREAM_FAILURE, type(e).__name__)
        except UserNotFoundException:
            auth_logger.warning(f"{func.__name__} failed: identity vanished before save")
            return Result.failure(AuthError.NOT_FOUND, "identity no longer exists")

    return wrapper


class AuthService:
    """
    Credential flows over injected stores, mailer and primitives.

    Holds no per-user state between calls; the stores are the source of truth.

    Args:
        identity_store: Persistence for identities.
        otp_store: Persistence for OTP challenges.
        mailer: Delivers the ``otp`` and ``password_reset`` emails.
        hasher: Password hasher.
        otp_engine: One-time code engine.
        token_issuer: Signs and verifies session/proof tokens.
        clock: Time source. Defaults to the system clock.
        otp_expiry: Lifetime of an OTP challenge.
        session_ttl: Lifetime of session tokens.
        otp_proof_ttl: Lifetime of OTP proof tokens.
        reset_ttl: Lifetime of password reset tokens.
    """

    def __init__(
        self,
        identity_store: IdentityStore,
        otp_store: OtpChallengeStore,
        mailer: Mailer,
        hasher: PasswordHasher,
        otp_engine: OTPEngine,
        token_issuer: TokenIssuer,
        clock: Clock | None = None,
        otp_expiry: timedelta = timedelta(minutes=60),
        session_ttl: timedelta = timedelta(minutes=60),
        otp_proof_ttl: timedelta = timedelta(minutes=60),
        reset_ttl: timedelta = timedelta(minutes=60),
    ):
        self.identity_store = identity_store
        self.otp_store = otp_store
        self.mailer = mailer
        self.hasher = hasher
        self.otp_engine = otp_engine
        self.token_issuer = token_issuer
        self.clock = clock or system_clock
        self.otp_expiry = otp_expiry
        self.session_ttl = session_ttl
        self.otp_proof_ttl = otp_proof_ttl
        self.reset_ttl = reset_ttl

    def _open_session(self, identity: Identity) -> AuthSession:
        token = self.token_issuer.issue(
            {
                "purpose": TokenPurpose.SESSION.value,
                "sub": str(identity.id),
                "email": identity.email,
            },
            self.session_ttl,
        )
        return AuthSession(
            identity=identity.to_public(),
            access_token=token,
            expires_in=int(self.session_ttl.total_seconds()),
        )

    # =========================================================================
    # Registration with OTP
    # =========================================================================

    @upstream_guard
    async def request_otp(self, email: str) -> Result[None]:
        """
        Issue a fresh OTP challenge for ``email`` and mail the code.

        Any previous challenge for the email is replaced. If the mailer fails
        the challenge stays stored and ``UPSTREAM_FAILURE`` is returned.

        Args:
            email: Address to send the code to.

        Returns:
            Result[None]: Success, or ``UPSTREAM_FAILURE``.
        """
        email = normalize_email(email)
        now = self.clock.now()
        secret = self.otp_engine.new_secret()
        code = self.otp_engine.code(secret, at=now)

        await self.otp_store.upsert(
            OtpChallenge(
                email=email,
                secret=secret,
                issued_token=code,
                expires_at=now + self.otp_expiry,
            )
        )

        sent = await self.mailer.send(
            email,
            MailTemplate.OTP.value,
            {
                "otp_code": code,
                "expiry_minutes": int(self.otp_expiry.total_seconds() // 60),
            },
        )
        if not sent:
            auth_logger.error(f"OTP email delivery failed: email={mask_email(email)}")
            return Result.failure(AuthError.UPSTREAM_FAILURE, "mailer rejected OTP email")

        auth_logger.info(
            f"OTP issued: email={mask_email(email)}, code={mask_otp(code)}"
        )
        return Result.success()

    @upstream_guard
    async def verify_otp(self, email: str, code: str) -> Result[str]:
        """
        Check a submitted code against the live challenge.

        On success the challenge is deleted and an ``otp-proof`` token bound to
        the email is returned.

        Returns:
            Result[str]: The proof token, or ``NOT_FOUND``, ``EXPIRED``,
            ``INVALID_CODE``.
        """
        email = normalize_email(email)
        challenge = await self.otp_store.find_by_email(email)
        if challenge is None:
            auth_logger.warning(f"OTP verification failed: no challenge for {mask_email(email)}")
            return Result.failure(AuthError.NOT_FOUND, "no live challenge")

        now = self.clock.now()
        if now > challenge.expires_at:
            auth_logger.warning(f"OTP verification failed: challenge expired for {mask_email(email)}")
            return Result.failure(AuthError.EXPIRED, "challenge expired")

        if not self.otp_engine.verify(challenge.secret, code, at=now):
            auth_logger.warning(f"OTP verification failed: invalid code for {mask_email(email)}")
            return Result.failure(AuthError.INVALID_CODE, "code rejected")

        await self.otp_store.delete(email)

        proof = self.token_issuer.issue(
            {"purpose": TokenPurpose.OTP_PROOF.value, "sub": email, "email": email},
            self.otp_proof_ttl,
        )
        auth_logger.info(f"OTP verified: email={mask_email(email)}")
        return Result.success(proof)

    @upstream_guard
    async def register(
        self, email: str, password: str, otp_proof_token: str
    ) -> Result[AuthSession]:
        """
        Create an identity for an email that passed the OTP challenge.

        Args:
            email: Email to register. Must match the proof's ``email`` claim.
            password: Plaintext password to hash.
            otp_proof_token: Token returned by ``verify_otp``.

        Returns:
            Result[AuthSession]: Public identity plus session token, or
            ``INVALID_OR_EXPIRED_PROOF``, ``CONFLICT``.
        """
        email = normalize_email(email)

        proof = self.token_issuer.verify(otp_proof_token, TokenPurpose.OTP_PROOF)
        if not proof.ok:
            auth_logger.warning(
                f"Registration failed: proof rejected ({proof.error.value}) for {mask_email(email)}"
            )
            return Result.failure(AuthError.INVALID_OR_EXPIRED_PROOF, proof.detail)
        if proof.value.email != email:
            auth_logger.warning(
                f"Registration failed: proof issued for another email, got {mask_email(email)}"
            )
            return Result.failure(AuthError.INVALID_OR_EXPIRED_PROOF, "proof email mismatch")

        if await self.identity_store.find_by_email(email) is not None:
            auth_logger.warning(f"Registration failed: email already exists {mask_email(email)}")
            return Result.failure(AuthError.CONFLICT, "email already registered")

        try:
            identity = await self.identity_store.create(
                Identity(
                    email=email,
                    password_hash=self.hasher.hash(password),
                    is_verified=True,
                )
            )
        except UserAlreadyExistsException:
            auth_logger.warning(f"Registration failed: concurrent duplicate {mask_email(email)}")
            return Result.failure(AuthError.CONFLICT, "email already registered")

        auth_logger.info(f"User registered: email={mask_email(email)}")
        return Result.success(self._open_session(identity))

    # =========================================================================
    # Login
    # =========================================================================

    @upstream_guard
    async def login(self, email: str, password: str) -> Result[AuthSession]:
        """
        Authenticate with email and password.

        Returns:
            Result[AuthSession]: Public identity plus session token, or
            ``NOT_FOUND``, ``INVALID_CREDENTIALS``.
        """
        email = normalize_email(email)
        identity = await self.identity_store.find_by_email(email)
        if identity is None:
            auth_logger.warning(f"Login failed: user not found {mask_email(email)}")
            return Result.failure(AuthError.NOT_FOUND, "unknown email")

        if not self.hasher.verify(password, identity.password_hash):
            auth_logger.warning(f"Login failed: wrong password {mask_email(email)}")
            return Result.failure(AuthError.INVALID_CREDENTIALS, "password mismatch")

        auth_logger.info(f"User login: email={mask_email(email)}")
        return Result.success(self._open_session(identity))

    # =========================================================================
    # Password reset
    # =========================================================================

    @upstream_guard
    async def request_password_reset(self, email: str) -> Result[str | None]:
        """
        Open a password reset window.

        Unknown emails succeed with ``None`` so callers cannot tell whether an
        account exists. For a known email a ``reset-proof`` token is stored on
        the identity and returned. The email is delivered in the background;
        delivery failures are only logged.

        Returns:
            Result[str | None]: The reset token, or None for unknown emails.
        """
        email = normalize_email(email)
        identity = await self.identity_store.find_by_email(email)
        if identity is None:
            auth_logger.info(f"Password reset requested for unknown email {mask_email(email)}")
            return Result.success(None)

        token, expires_at = self.token_issuer.issue_with_expiry(
            {
                "purpose": TokenPurpose.RESET_PROOF.value,
                "sub": str(identity.id),
                "email": identity.email,
            },
            self.reset_ttl,
        )
        await self.identity_store.save(identity.with_reset(token, expires_at))
        deliver_later(self._send_reset_mail(email, token))

        auth_logger.info(f"Password reset window opened: email={mask_email(email)}")
        return Result.success(token)

    async def _send_reset_mail(self, email: str, token: str) -> None:
        sent = await self.mailer.send(
            email,
            MailTemplate.PASSWORD_RESET.value,
            {
                "reset_token": token,
                "expiry_minutes": int(self.reset_ttl.total_seconds() // 60),
            },
        )
        if not sent:
            auth_logger.error(f"Password reset email delivery failed: email={mask_email(email)}")

    @upstream_guard
    async def reset_password(self, token: str, new_password: str) -> Result[None]:
        """
        Set a new password using a reset token.

        The token must verify, match the token stored on the identity and be
        within the stored expiry. A stale stored token is cleared. On success
        the reset window is closed, so a token works once.

        Returns:
            Result[None]: Success, or ``INVALID_OR_EXPIRED_TOKEN``, ``NOT_FOUND``.
        """
        verified = self.token_issuer.verify(token, TokenPurpose.RESET_PROOF)
        if not verified.ok:
            auth_logger.warning(f"Password reset failed: token rejected ({verified.error.value})")
            return Result.failure(AuthError.INVALID_OR_EXPIRED_TOKEN, verified.detail)

        email = normalize_email(verified.value.email or "")
        identity = await self.identity_store.find_by_email(email)
        if identity is None:
            auth_logger.warning(f"Password reset failed: user not found {mask_email(email)}")
            return Result.failure(AuthError.NOT_FOUND, "identity no longer exists")

        if identity.reset_token is None or not hmac.compare_digest(
            identity.reset_token.encode("utf-8"), token.encode("utf-8")
        ):
            auth_logger.warning(f"Password reset failed: token not current for {mask_email(email)}")
            return Result.failure(AuthError.INVALID_OR_EXPIRED_TOKEN, "token not current")

        if self.clock.now() > identity.reset_token_expiry:
            await self.identity_store.save(identity.without_reset())
            auth_logger.warning(f"Password reset failed: stored window expired for {mask_email(email)}")
            return Result.failure(AuthError.INVALID_OR_EXPIRED_TOKEN, "reset window expired")

        await self.identity_store.save(
            identity.with_password(self.hasher.hash(new_password))
        )
        auth_logger.info(f"Password reset: email={mask_email(email)}")
        return Result.success()

    # =========================================================================
    # Authenticated callers
    # =========================================================================

    async def _identity_for_session(self, session_token: str) -> Result[Identity]:
        verified = self.token_issuer.verify(session_token, TokenPurpose.SESSION)
        if not verified.ok:
            return Result.failure(verified.error, verified.detail)

        identity = await self.identity_store.find_by_email(
            normalize_email(verified.value.email or "")
        )
        if identity is None or str(identity.id) != verified.value.subject:
            return Result.failure(AuthError.NOT_FOUND, "identity no longer exists")
        return Result.success(identity)

    @upstream_guard
    async def authenticate(self, session_token: str) -> Result[PublicIdentity]:
        """
        Resolve a session token to the identity it names.

        Returns:
            Result[PublicIdentity]: The identity, or ``INVALID_SIGNATURE``,
            ``EXPIRED``, ``WRONG_PURPOSE``, ``NOT_FOUND``.
        """
        resolved = await self._identity_for_session(session_token)
        if not resolved.ok:
            return Result.failure(resolved.error, resolved.detail)
        return Result.success(resolved.value.to_public())

    @upstream_guard
    async def change_password(
        self, session_token: str, current_password: str, new_password: str
    ) -> Result[None]:
        """
        Replace the password of the session's identity.

        Any open reset window is closed as well.

        Returns:
            Result[None]: Success, or a token error kind, ``NOT_FOUND``,
            ``INVALID_CREDENTIALS``.
        """
        resolved = await self._identity_for_session(session_token)
        if not resolved.ok:
            auth_logger.warning(f"Password change failed: {resolved.error.value}")
            return Result.failure(resolved.error, resolved.detail)

        identity = resolved.value
        if not self.hasher.verify(current_password, identity.password_hash):
            auth_logger.warning(
                f"Password change failed: wrong current password {mask_email(identity.email)}"
            )
            return Result.failure(AuthError.INVALID_CREDENTIALS, "password mismatch")

        await self.identity_store.save(
            identity.with_password(self.hasher.hash(new_password))
        )

        auth_logger.info(f"Password changed: email={mask_email(identity.email)}")
        return Result.success()


__all__ = ["AuthService", "deliver_later", "drain_deliveries", "upstream_guard"]
