from credgate.core.services.auth import AuthService, drain_deliveries
from credgate.core.services.brevo import BrevoService
from credgate.core.services.email_manager import EmailManagerService
from credgate.core.services.otp import OTPEngine
from credgate.core.services.password import PasswordHasher
from credgate.core.services.template import Renderer
from credgate.core.services.tokens import TokenIssuer

__all__ = [
    "AuthService",
    "BrevoService",
    "EmailManagerService",
    "OTPEngine",
    "PasswordHasher",
    "Renderer",
    "TokenIssuer",
    "drain_deliveries",
]
