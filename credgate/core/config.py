from functools import lru_cache
import logging
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from credgate.core.logger import setup_logger, init_sentry


class Settings(BaseSettings):
    # Application settings
    ENVIRONMENT: str = "development"  # Options: development, test, production
    APP_NAME: str = "credgate"
    APP_VERSION: str = "1.0.0"
    APP_DESCRIPTION: str = """
credgate issues and validates user credentials.

## Flows

- **Registration**: request an emailed one-time code, exchange it for a proof token, register with the proof.
- **Login**: email/password login returning a bearer session token.
- **Password reset**: request a reset token, then set a new password with it.
"""
    DEBUG: bool = False
    ROOT_PATH: str = ""

    # CORS settings
    CORS_ALLOW_ORIGINS: list[str] = ["http://localhost:3000"]
    CORS_ALLOW_CREDENTIALS: bool = True

    # Database settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./credgate.db"
    TEST_DATABASE_URL: str = "sqlite+aiosqlite:///:memory:"

    # Store backend: "sql" persists through SQLAlchemy, "memory" keeps
    # identities and challenges in process (single-worker deployments only)
    STORE_BACKEND: Literal["sql", "memory"] = "sql"

    # Signed token settings
    JWT_SECRET_KEY: str = "another_supersecret_key_change_in_production"
    JWT_ALGORITHM: str = "HS256"
    SESSION_TOKEN_EXPIRE_MINUTES: int = Field(default=60, gt=0)
    OTP_PROOF_TOKEN_EXPIRE_MINUTES: int = Field(default=60, gt=0)
    RESET_TOKEN_EXPIRE_MINUTES: int = Field(default=60, gt=0)
    RETURN_RESET_TOKEN: bool = True

    # Password hashing settings
    BCRYPT_ROUNDS: int = Field(default=10, ge=4, le=31)

    # OTP settings
    OTP_DIGITS: int = Field(default=6, ge=6, le=10)
    OTP_STEP_SECONDS: int = Field(default=3600, gt=0)
    OTP_VALID_WINDOW: int = Field(default=3, ge=0)
    OTP_EXPIRY_MINUTES: int = Field(default=60, gt=0)

    # Brevo settings
    BREVO_API_KEY: str = "your_brevo_api_key"
    BREVO_BASE_URL: str = "https://api.brevo.com/v3"
    BREVO_SENDER_EMAIL: str = "your_brevo_sender_email"
    BREVO_SENDER_NAME: str = "your_brevo_sender_name"

    # Email templates
    TEMPLATE_DIR: str = str(Path(__file__).resolve().parent.parent / "templates")

    # Sentry settings
    SENTRY_DSN: str = ""
    SENTRY_ENVIRONMENT: str = "development"
    SENTRY_TRACES_SAMPLE_RATE: float = 0.1

    model_config: SettingsConfigDict = SettingsConfigDict(  # type: ignore
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _validate_production_secrets(self) -> "Settings":
        """Ensure insecure defaults are overridden in production."""
        if self.ENVIRONMENT != "production":
            return self

        insecure_defaults: dict[str, str] = {
            "JWT_SECRET_KEY": "another_supersecret_key_change_in_production",
            "BREVO_API_KEY": "your_brevo_api_key",
        }

        still_default = [
            name
            for name, default_val in insecure_defaults.items()
            if getattr(self, name) == default_val
        ]

        if still_default:
            raise ValueError(
                f"ENVIRONMENT is 'production' but the following secrets still "
                f"have their insecure default values: {', '.join(still_default)}. "
                f"Set them via environment variables or .env file."
            )

        if self.RETURN_RESET_TOKEN:
            raise ValueError(
                "RETURN_RESET_TOKEN must be disabled in production; "
                "reset tokens are delivered by email only."
            )

        return self


@lru_cache()
def get_settings() -> Settings:
    return Settings()  # type: ignore


settings = get_settings()

if not settings.DEBUG:
    init_sentry(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
    )

# Each logger gets its own log file and Sentry tag for easy filtering
app_logger = setup_logger(
    name="app_logger",
    log_file="logs/app.log",
    level=logging.INFO,
    sentry_tag="app",
)
database_logger = setup_logger(
    name="database_logger",
    log_file="logs/database.log",
    level=logging.INFO,
    sentry_tag="database",
)
request_logger = setup_logger(
    name="request_logger",
    log_file="logs/requests.log",
    level=logging.INFO,
    sentry_tag="request",
)
auth_logger = setup_logger(
    name="auth_logger",
    log_file="logs/auth.log",
    level=logging.INFO,
    sentry_tag="auth",
)
security_logger = setup_logger(
    name="security_logger",
    log_file="logs/security.log",
    level=logging.INFO,
    sentry_tag="security",
)
brevo_logger = setup_logger(
    name="brevo_logger",
    log_file="logs/brevo.log",
    level=logging.INFO,
    sentry_tag="email",
)
email_manager_logger = setup_logger(
    name="email_manager_logger",
    log_file="logs/email_manager.log",
    level=logging.INFO,
    sentry_tag="email_manager",
)

__all__ = [
    "settings",
    "get_settings",
    "app_logger",
    "database_logger",
    "request_logger",
    "auth_logger",
    "security_logger",
    "brevo_logger",
    "email_manager_logger",
]
