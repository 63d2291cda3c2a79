"""
Brevo transactional email client.

- Single shared ``httpx.AsyncClient`` per process
- Bounded retries with exponential backoff and jitter on 5xx, 429 and
  network errors; Brevo's ``x-sib-ratelimit-reset`` header wins when present
- Non-retriable 4xx responses fail immediately
"""

import asyncio
import random
from typing import Any

from fastapi import status as http_status
import httpx
from pydantic import BaseModel

from credgate.core.config import brevo_logger, settings
from credgate.core.exceptions.types import AppException


class Contact(BaseModel):
    email: str
    name: str | None = None


class TransactionalEmail(BaseModel):
    """Body of ``POST /smtp/email`` for a single message."""

    sender: Contact
    to: list[Contact]
    subject: str
    htmlContent: str | None = None
    textContent: str | None = None


class BrevoService:
    _base_url: str = settings.BREVO_BASE_URL
    _api_key: str = settings.BREVO_API_KEY
    _sender_email: str = settings.BREVO_SENDER_EMAIL
    _sender_name: str = settings.BREVO_SENDER_NAME
    _client: httpx.AsyncClient | None = None

    _BACKOFF_BASE: float = 3.0
    _BACKOFF_MAX: float = 60.0
    _JITTER: float = 0.2
    _TIMEOUT: float = 30.0

    @classmethod
    def _init_client(cls) -> None:
        if cls._client is None:
            cls._client = httpx.AsyncClient(
                base_url=cls._base_url,
                timeout=httpx.Timeout(cls._TIMEOUT),
            )
            brevo_logger.info("Brevo HTTP client initialized")

    @classmethod
    async def aclose(cls) -> None:
        """Close the shared HTTP client, if open."""
        if cls._client is not None:
            try:
                await cls._client.aclose()
            finally:
                cls._client = None
                brevo_logger.info("Brevo HTTP client closed")

    @classmethod
    async def init(
        cls,
        api_key: str | None = None,
        sender_email: str | None = None,
        sender_name: str | None = None,
    ) -> None:
        """
        Configure credentials and (re)create the HTTP client.

        Args:
            api_key: Brevo API key. Unchanged when None.
            sender_email: Default sender address. Unchanged when None.
            sender_name: Default sender display name. Unchanged when None.
        """
        if api_key is not None:
            cls._api_key = api_key
        if sender_email is not None:
            cls._sender_email = sender_email
        if sender_name is not None:
            cls._sender_name = sender_name
        await cls.aclose()
        cls._init_client()

    @classmethod
    def _compute_backoff(
        cls, attempt: int, err_headers: httpx.Headers | None = None
    ) -> float:
        """
        Seconds to wait before retry number ``attempt`` (1-based).

        Uses ``x-sib-ratelimit-reset`` when the response carries a parseable
        value, otherwise ``_BACKOFF_BASE * 2**(attempt-1)`` capped at
        ``_BACKOFF_MAX`` with +/-``_JITTER`` multiplicative jitter.
        """
        if err_headers and "x-sib-ratelimit-reset" in err_headers:
            try:
                return float(err_headers["x-sib-ratelimit-reset"])
            except ValueError:
                brevo_logger.debug("Unparseable x-sib-ratelimit-reset header")
        base = min(cls._BACKOFF_BASE * (2 ** (attempt - 1)), cls._BACKOFF_MAX)
        return base * random.uniform(1 - cls._JITTER, 1 + cls._JITTER)

    @classmethod
    def _auth_headers(cls) -> dict[str, str]:
        return {
            "api-key": cls._api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    @staticmethod
    def _body(resp: httpx.Response) -> dict[str, Any] | str:
        try:
            return resp.json()
        except ValueError:
            return resp.text

    @classmethod
    async def _request(
        cls,
        method: str,
        endpoint: str,
        *,
        json: dict[str, Any] | None = None,
        max_attempts: int = 3,
    ) -> dict[str, Any] | str:
        """
        Call the Brevo API with retries.

        Args:
            method: HTTP method.
            endpoint: Path relative to ``BREVO_BASE_URL``.
            json: JSON body.
            max_attempts: Initial try plus retries.

        Returns:
            dict[str, Any] | str: Parsed JSON body, or the raw text when the
            body is not JSON.

        Raises:
            AppException: On a non-retriable 4xx, or once retries are
                exhausted (status 5xx as received, 429, or 503 for network
                errors).
        """
        if cls._client is None:
            cls._init_client()
        assert cls._client is not None

        for attempt in range(1, max_attempts + 1):
            last_attempt = attempt == max_attempts
            try:
                resp = await cls._client.request(
                    method, endpoint, headers=cls._auth_headers(), json=json
                )
                resp.raise_for_status()
                body = cls._body(resp)
                brevo_logger.info(f"Brevo response: {body}")
                return body

            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                err_body = cls._body(exc.response)

                if status == 429:
                    error = AppException(
                        message="Brevo rate limit exceeded after retries",
                        status_code=http_status.HTTP_429_TOO_MANY_REQUESTS,
                    )
                    wait = cls._compute_backoff(attempt, exc.response.headers)
                elif status >= 500:
                    error = AppException(
                        message=f"Server error after retries: {status}",
                        status_code=status,
                    )
                    wait = cls._compute_backoff(attempt)
                else:
                    brevo_logger.error(f"4xx error {status}: {err_body}")
                    raise AppException(
                        message=f"HTTP error {status}: {err_body}", status_code=status
                    ) from exc

                if last_attempt:
                    brevo_logger.error(
                        f"Brevo error {status} after {max_attempts} attempts: {err_body}"
                    )
                    raise error from exc
                brevo_logger.warning(
                    f"Brevo error {status}; attempt {attempt}/{max_attempts}; "
                    f"wait={wait:.1f}s; body={err_body}"
                )
                await asyncio.sleep(wait)

            except (httpx.TimeoutException, httpx.TransportError) as exc:
                if last_attempt:
                    brevo_logger.error(f"Network error after retries: {exc}")
                    raise AppException(
                        message="Brevo network error after retries",
                        status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE,
                    ) from exc
                wait = cls._compute_backoff(attempt)
                brevo_logger.warning(
                    f"Timeout/transport error; attempt {attempt}/{max_attempts}; "
                    f"wait={wait:.1f}s; err={exc}"
                )
                await asyncio.sleep(wait)

        raise AppException(
            message="Unexpected state: no response after all attempts",
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    @classmethod
    async def send_transactional_email(
        cls,
        to: Contact,
        subject: str,
        html_content: str | None = None,
        text_content: str | None = None,
        sender: Contact | None = None,
    ) -> dict[str, Any] | str:
        """
        Send one transactional email.

        Args:
            to: Recipient.
            subject: Subject line.
            html_content: HTML body.
            text_content: Plain-text body.
            sender: Overrides the configured default sender.

        Returns:
            dict[str, Any] | str: The Brevo API response (contains ``messageId``).

        Raises:
            ValueError: If neither body is provided.
            AppException: If the API call fails.
        """
        if not html_content and not text_content:
            raise ValueError("Either html_content or text_content must be provided")

        message = TransactionalEmail(
            sender=sender or Contact(email=cls._sender_email, name=cls._sender_name),
            to=[to],
            subject=subject,
            htmlContent=html_content,
            textContent=text_content,
        )
        return await cls._request(
            "POST", "/smtp/email", json=message.model_dump(exclude_none=True)
        )


__all__ = ["BrevoService", "Contact", "TransactionalEmail"]
