"""
Collaborator contracts of the credential core.

The orchestrator only talks to persistence and mail through these
protocols; ``credgate.core.stores.sql`` and ``credgate.core.stores.memory``
provide the implementations.
"""

from typing import Any, Protocol

from credgate.core.domain import Identity, OtpChallenge


class IdentityStore(Protocol):
    async def find_by_email(self, email: str) -> Identity | None:
        """Return the identity with the normalised ``email``, if any."""
        ...

    async def create(self, identity: Identity) -> Identity:
        """
        Persist a new identity.

        Raises:
            UserAlreadyExistsException: If the email is already registered.
        """
        ...

    async def save(self, identity: Identity) -> Identity:
        """Overwrite the mutable fields of an existing identity (matched by id)."""
        ...


class OtpChallengeStore(Protocol):
    async def find_by_email(self, email: str) -> OtpChallenge | None: ...

    async def upsert(self, challenge: OtpChallenge) -> OtpChallenge:
        """Store ``challenge``, replacing any previous challenge for its email."""
        ...

    async def delete(self, email: str) -> bool: ...


class Mailer(Protocol):
    async def send(
        self, to_email: str, template_name: str, context: dict[str, Any]
    ) -> bool:
        """Deliver a templated email. Returns False when delivery failed."""
        ...


__all__ = ["IdentityStore", "OtpChallengeStore", "Mailer"]
