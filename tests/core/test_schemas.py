from datetime import datetime, timezone
import uuid

from pydantic import ValidationError
import pytest

from credgate.core.domain import PublicIdentity
from credgate.core.schemas.auth import (
    ForgotPasswordResponse,
    OTPVerifyRequest,
    RegisterRequest,
    UserResponse,
    validate_password_complexity,
)


class TestPasswordComplexity:

    def test_accepts_complex_password(self):
        assert validate_password_complexity("Passw0rd") == "Passw0rd"

    @pytest.mark.parametrize(
        "password,message",
        [
            ("passw0rd", "uppercase"),
            ("PASSW0RD", "lowercase"),
            ("Password", "digit"),
        ],
    )
    def test_rejects_weak_password(self, password, message):
        with pytest.raises(ValueError, match=message):
            validate_password_complexity(password)


class TestRegisterRequest:

    def test_valid(self):
        request = RegisterRequest(
            email="alice@example.com", password="Passw0rd1", otp_token="tok"
        )

        assert request.email == "alice@example.com"

    @pytest.mark.parametrize("password", ["Sh0rt", "A1" + "a" * 127])
    def test_password_length_bounds(self, password):
        with pytest.raises(ValidationError):
            RegisterRequest(email="alice@example.com", password=password, otp_token="tok")

    def test_empty_token_rejected(self):
        with pytest.raises(ValidationError):
            RegisterRequest(email="alice@example.com", password="Passw0rd1", otp_token="")


class TestOTPVerifyRequest:

    def test_valid(self):
        request = OTPVerifyRequest(email="alice@example.com", otp_code="012345")

        assert request.otp_code == "012345"

    @pytest.mark.parametrize("otp_code", ["", "12345", "1234567", "12a456"])
    def test_code_must_be_six_digits(self, otp_code):
        with pytest.raises(ValidationError):
            OTPVerifyRequest(email="alice@example.com", otp_code=otp_code)


class TestResponses:

    def test_user_response_from_public_identity(self):
        identity = PublicIdentity(
            id=uuid.uuid4(),
            email="alice@example.com",
            is_verified=True,
            created_at=datetime(2026, 1, 15, tzinfo=timezone.utc),
        )

        response = UserResponse.model_validate(identity)

        assert response.id == identity.id
        assert response.is_verified is True

    def test_forgot_password_response_token_optional(self):
        response = ForgotPasswordResponse(message="ok")

        assert response.model_dump(exclude_none=True) == {"message": "ok"}
