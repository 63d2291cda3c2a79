from credgate.core.db.crud.base import BaseDB
from credgate.core.db.crud.otp import OTPChallengeDB
from credgate.core.db.crud.user import UserDB

# Global CRUD instances - use these instead of creating new instances
user_db = UserDB()
otp_challenge_db = OTPChallengeDB()

__all__ = [
    "BaseDB",
    "OTPChallengeDB",
    "UserDB",
    # Global instances (for actual usage)
    "otp_challenge_db",
    "user_db",
]
