"""
In-process stores.

Records live in dicts keyed by normalised email and are held as immutable
snapshots. Suitable for tests and single-worker deployments only.
"""

from dataclasses import replace

from credgate.core.clock import Clock, system_clock
from credgate.core.domain import Identity, OtpChallenge
from credgate.core.exceptions.types import (
    UserAlreadyExistsException,
    UserNotFoundException,
)


class InMemoryIdentityStore:
    def __init__(self, clock: Clock | None = None):
        self.clock = clock or system_clock
        self._by_email: dict[str, Identity] = {}

    async def find_by_email(self, email: str) -> Identity | None:
        return self._by_email.get(email)

    async def create(self, identity: Identity) -> Identity:
        if identity.email in self._by_email:
            raise UserAlreadyExistsException()
        now = self.clock.now()
        stored = replace(identity, created_at=now, updated_at=now)
        self._by_email[stored.email] = stored
        return stored

    async def save(self, identity: Identity) -> Identity:
        current = self._by_email.get(identity.email)
        if current is None or current.id != identity.id:
            raise UserNotFoundException()
        stored = replace(
            identity, created_at=current.created_at, updated_at=self.clock.now()
        )
        self._by_email[stored.email] = stored
        return stored

    def clear(self) -> None:
        self._by_email.clear()


class InMemoryOtpChallengeStore:
    def __init__(self):
        self._by_email: dict[str, OtpChallenge] = {}

    async def find_by_email(self, email: str) -> OtpChallenge | None:
        return self._by_email.get(email)

    async def upsert(self, challenge: OtpChallenge) -> OtpChallenge:
        self._by_email[challenge.email] = challenge
        return challenge

    async def delete(self, email: str) -> bool:
        return self._by_email.pop(email, None) is not None

    def clear(self) -> None:
        self._by_email.clear()


__all__ = ["InMemoryIdentityStore", "InMemoryOtpChallengeStore"]
