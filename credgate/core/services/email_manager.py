"""
Email Manager Service.

Implements the mailer used by the credential core: renders the named
template with the Renderer and delivers it through BrevoService. Delivery
problems never raise; ``send`` reports them as ``False``.

Example usage:
    Renderer.initialize(settings.TEMPLATE_DIR)
    EmailManagerService.init()

    sent = await EmailManagerService.send(
        "user@example.com", "otp", {"otp_code": "123456", "expiry_minutes": 60}
    )
"""

from typing import Any

from credgate.core.config import email_manager_logger, settings
from credgate.core.enums import MailTemplate
from credgate.core.services.brevo import BrevoService, Contact
from credgate.core.services.template import Renderer
from credgate.core.utils import mask_email


class EmailManagerService:
    """
    Template-driven transactional mailer.

    Attributes:
        _initialized: Whether ``init`` has been called.
    """

    _initialized: bool = False

    @classmethod
    def init(cls) -> None:
        """Mark the service ready. Call after Renderer and BrevoService are set up."""
        cls._initialized = True
        email_manager_logger.info("EmailManagerService initialized")

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._initialized

    @classmethod
    def _subject_for(cls, template_name: str) -> str:
        subject_map = {
            MailTemplate.OTP.value: f"Your verification code - {settings.APP_NAME}",
            MailTemplate.PASSWORD_RESET.value: f"Password Reset - {settings.APP_NAME}",
        }
        return subject_map.get(template_name, f"Notification - {settings.APP_NAME}")

    @classmethod
    async def send(
        cls, to_email: str, template_name: str, context: dict[str, Any]
    ) -> bool:
        """
        Render and send an email.

        Args:
            to_email: Recipient address.
            template_name: Template base name (see ``MailTemplate``).
            context: Template variables. ``app_name`` is added automatically.

        Returns:
            bool: True if Brevo accepted the message, False otherwise,
            including when the service or the Renderer was never initialized.
        """
        name = (
            template_name.value
            if isinstance(template_name, MailTemplate)
            else template_name
        )
        if not (cls._initialized and Renderer.is_initialized()):
            email_manager_logger.error(
                f"Email not sent: mailer not initialized, template='{name}', "
                f"to='{mask_email(to_email)}'"
            )
            return False

        subject = cls._subject_for(name)
        try:
            html_content, text_content = await Renderer.render_email(
                name, {"app_name": settings.APP_NAME, **context}
            )
            await BrevoService.send_transactional_email(
                to=Contact(email=to_email),
                subject=subject,
                html_content=html_content,
                text_content=text_content,
            )
        except Exception as e:
            email_manager_logger.error(
                f"Failed to send email: template='{name}', "
                f"to='{mask_email(to_email)}', error={type(e).__name__}: {e}"
            )
            return False

        email_manager_logger.info(
            f"Email sent successfully: template='{name}', to='{mask_email(to_email)}'"
        )
        return True


__all__ = ["EmailManagerService"]
