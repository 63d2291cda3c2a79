"""
Time-based one-time codes.

- TOTP (RFC 6238 style) on top of ``pyotp``
- Step length, digit count and drift window are configurable
- All time reads go through the injected clock
"""

from datetime import datetime

import pyotp
from pyotp.utils import strings_equal

from credgate.core.clock import Clock, ensure_utc, system_clock
from credgate.core.config import security_logger

# 32 base32 characters encode 20 bytes (160 bits)
SECRET_LENGTH = 32


class OTPEngine:
    """
    Generates and verifies time-step codes against a per-email secret.

    Args:
        step_seconds: Length of one time step.
        digits: Number of digits in a code.
        window: Default number of steps accepted on either side of ``at``.
        clock: Time source used when ``at`` is not given.

    Example:
        >>> engine = OTPEngine(step_seconds=3600, digits=6, window=3)
        >>> secret = engine.new_secret()
        >>> engine.verify(secret, engine.code(secret))
        True
    """

    def __init__(
        self,
        step_seconds: int = 3600,
        digits: int = 6,
        window: int = 3,
        clock: Clock | None = None,
    ):
        if step_seconds <= 0:
            raise ValueError("step_seconds must be positive")
        if window < 0:
            raise ValueError("window cannot be negative")
        self.step_seconds = step_seconds
        self.digits = digits
        self.window = window
        self.clock = clock or system_clock

    def _totp(self, secret: str) -> pyotp.TOTP:
        return pyotp.TOTP(secret, digits=self.digits, interval=self.step_seconds)

    def _resolve(self, at: datetime | None) -> datetime:
        return ensure_utc(at) if at is not None else self.clock.now()

    def new_secret(self) -> str:
        """Return a fresh random base32 secret (160 bits of entropy)."""
        return pyotp.random_base32(length=SECRET_LENGTH)

    def code(self, secret: str, at: datetime | None = None) -> str:
        """
        Compute the code for the step containing ``at``.

        Args:
            secret: Base32 secret.
            at: Moment to compute the code for. Defaults to the clock's now.

        Returns:
            str: A zero-padded code of ``digits`` digits.
        """
        return self._totp(secret).at(self._resolve(at))

    def verify(
        self,
        secret: str,
        candidate: str | None,
        at: datetime | None = None,
        window: int | None = None,
    ) -> bool:
        """
        Check a candidate code.

        The candidate is accepted when it equals the code of any step within
        ``window`` steps of ``at``. Each comparison is constant time.

        Args:
            secret: Base32 secret.
            candidate: Code submitted by the user.
            at: Moment to verify against. Defaults to the clock's now.
            window: Overrides the engine's default window.

        Returns:
            bool: True when accepted. False for a wrong, empty or
            out-of-window code and for a malformed secret.
        """
        if not candidate or not secret:
            return False

        valid_window = self.window if window is None else window
        try:
            totp = self._totp(secret)
            moment = self._resolve(at)
            for offset in range(-valid_window, valid_window + 1):
                if strings_equal(
                    str(candidate), totp.at(moment, counter_offset=offset)
                ):
                    return True
        except ValueError as e:
            security_logger.warning(
                f"OTP verification failed due to malformed secret: {type(e).__name__}"
            )
        return False


__all__ = ["OTPEngine", "SECRET_LENGTH"]
