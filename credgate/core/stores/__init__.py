from credgate.core.stores.base import IdentityStore, Mailer, OtpChallengeStore
from credgate.core.stores.memory import InMemoryIdentityStore, InMemoryOtpChallengeStore
from credgate.core.stores.sql import SQLIdentityStore, SQLOtpChallengeStore

__all__ = [
    "IdentityStore",
    "Mailer",
    "OtpChallengeStore",
    "InMemoryIdentityStore",
    "InMemoryOtpChallengeStore",
    "SQLIdentityStore",
    "SQLOtpChallengeStore",
]
