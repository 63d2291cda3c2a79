"""
Utility functions for the application.

- Email normalisation for case-insensitive lookups
- Masking of OTP codes and emails for log output
- OpenAPI schema export
"""

import json

from fastapi import FastAPI

from credgate.core.config import app_logger


def normalize_email(email: str) -> str:
    """
    Normalise an email address for storage and lookup.

    Args:
        email: The raw email address.

    Returns:
        str: The address with surrounding whitespace removed, lowercased.

    Examples:
        >>> normalize_email("  Alice@Example.COM ")
        'alice@example.com'
    """
    return email.strip().lower()


def mask_otp(otp: str) -> str:
    """
    Mask an OTP code for logging purposes, showing only first and last digit.

    Args:
        otp: The OTP code to mask.

    Returns:
        A masked version of the OTP (e.g., "123456" -> "1****6").

    Examples:
        >>> mask_otp("123456")
        '1****6'
        >>> mask_otp("12")
        '12'
    """
    if len(otp) <= 2:
        return otp

    return f"{otp[0]}{'*' * (len(otp) - 2)}{otp[-1]}"


def mask_email(email: str) -> str:
    """
    Mask the local part of an email address for logging.

    Examples:
        >>> mask_email("alice@example.com")
        'a***e@example.com'
        >>> mask_email("bo@example.com")
        'b*@example.com'
    """
    local, sep, domain = email.partition("@")
    if not sep:
        return mask_otp(email)
    if len(local) <= 2:
        masked = f"{local[:1]}{'*' * (len(local) - 1)}"
    else:
        masked = f"{local[0]}***{local[-1]}"
    return f"{masked}@{domain}"


def generate_openapi_json(app: FastAPI) -> str:
    """
    Generate OpenAPI JSON schema for the given FastAPI application.

    Args:
        app: The FastAPI application instance.

    Returns:
        A pretty-printed JSON string of the OpenAPI schema.
    """
    openapi_schema = app.openapi()

    openapi_json = json.dumps(openapi_schema, indent=4)
    app_logger.info("OpenAPI JSON schema generated successfully")
    return openapi_json


__all__ = ["normalize_email", "mask_otp", "mask_email", "generate_openapi_json"]
