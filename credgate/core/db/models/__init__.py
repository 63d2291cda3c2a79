from credgate.core.db.models.otp import OTPChallenge
from credgate.core.db.models.user import User

__all__ = ["OTPChallenge", "User"]
