"""
Password hashing.

- bcrypt with a random salt per hash and a configurable cost factor
- Inputs longer than bcrypt's 72-byte limit are truncated (hash and verify alike)
- Verification never raises
"""

import bcrypt

from credgate.core.config import security_logger

BCRYPT_MAX_BYTES = 72


class PasswordHasher:
    """
    One-way salted password hashing with constant-time verification.

    Args:
        rounds: bcrypt cost factor (log2 of the number of iterations).

    Example:
        >>> hasher = PasswordHasher(rounds=10)
        >>> digest = hasher.hash("MySecurePassword123")
        >>> hasher.verify("MySecurePassword123", digest)
        True
    """

    def __init__(self, rounds: int = 10):
        if not 4 <= rounds <= 31:
            raise ValueError("bcrypt rounds must be between 4 and 31")
        self.rounds = rounds

    @staticmethod
    def _encode(plaintext: str) -> bytes:
        password_bytes = plaintext.encode("utf-8")
        if len(password_bytes) > BCRYPT_MAX_BYTES:
            security_logger.debug(
                f"Password exceeds {BCRYPT_MAX_BYTES} bytes "
                f"({len(password_bytes)} bytes), truncating"
            )
            password_bytes = password_bytes[:BCRYPT_MAX_BYTES]
        return password_bytes

    def hash(self, plaintext: str) -> str:
        """
        Hash a password.

        Args:
            plaintext: The password to hash.

        Returns:
            str: The bcrypt digest (60 characters, ``$2b$`` prefix).

        Raises:
            ValueError: If the password is empty or None.
        """
        if not plaintext:
            security_logger.error("Attempted to hash an empty password")
            raise ValueError("Password cannot be empty")

        salt = bcrypt.gensalt(rounds=self.rounds)
        hashed = bcrypt.hashpw(self._encode(plaintext), salt)
        return hashed.decode("utf-8")

    def verify(self, plaintext: str | None, digest: str | None) -> bool:
        """
        Check a password against a digest.

        Args:
            plaintext: The candidate password.
            digest: A digest previously produced by ``hash``.

        Returns:
            bool: True on match. False on mismatch, empty input or a malformed
            digest.
        """
        if not plaintext or not digest:
            security_logger.warning(
                "Password verification attempted with empty value(s)"
            )
            return False

        try:
            return bcrypt.checkpw(self._encode(plaintext), digest.encode("utf-8"))
        except (ValueError, TypeError) as e:
            security_logger.warning(
                f"Password verification failed due to invalid digest: {type(e).__name__}"
            )
            return False


__all__ = ["PasswordHasher", "BCRYPT_MAX_BYTES"]
