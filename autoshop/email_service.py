"""
Email Service using Resend
Compiles MJML templates to HTML and delivers appointment notifications and staff reset codes
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml2html as mjml_to_html

from .config import (
    ADMIN_NOTIFICATION_EMAIL,
    EMAIL_FROM_ADDRESS,
    PASSWORD_RESET_CODE_MINUTES,
    RESEND_API_KEY,
)
from .email_templates import password_reset_code_template, render_appointment_email, with_admin_banner

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class EmailDeliveryError(Exception):
    """Raised when an email could not be handed to Resend"""


class EmailRateLimitedError(EmailDeliveryError):
    """Resend answered 429; the send can be retried after a short delay"""


def is_rate_limit_error(error: Exception) -> bool:
    """Detect Resend's 429 responses across SDK versions"""
    code = getattr(error, "code", None) or getattr(error, "status_code", None)
    if str(code) == "429":
        return True
    error_type = str(getattr(error, "error_type", "") or "")
    return error_type == "rate_limit_exceeded" or "rate limit" in str(error).lower()


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # Some mjml releases return a dict with 'html' and 'errors', others an object or a string
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        if hasattr(result, "html"):
            if getattr(result, "errors", None):
                logger.warning(f"MJML compilation warnings: {result.errors}")
            return result.html
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise EmailDeliveryError(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: Optional[str] = None,
    html_content: Optional[str] = None,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (compiled to HTML)
        html_content: Already compiled HTML, used when mjml_content is not given
        from_address: Optional custom from address

    Returns:
        Send response dict

    Raises:
        EmailRateLimitedError: Resend rate limit hit
        EmailDeliveryError: Any other delivery failure
    """
    if mjml_content is not None:
        html_content = compile_mjml_to_html(mjml_content)

    recipients = [to] if isinstance(to, str) else to
    sender = from_address or EMAIL_FROM_ADDRESS

    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise EmailDeliveryError("Email service not configured")

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(
            {
                "from": sender,
                "to": recipients,
                "subject": subject,
                "html": html_content or "",
            }
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        if is_rate_limit_error(e):
            logger.warning(f"⚠️ Resend rate limit hit sending to {recipients}: {e}")
            raise EmailRateLimitedError(f"Rate limited: {str(e)}") from e
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise EmailDeliveryError(f"Failed to send email: {str(e)}") from e


async def send_appointment_email(payload: dict) -> dict:
    """
    Send an appointment notification to the customer, then a copy to the shop.

    Args:
        payload: AppointmentEmailPayload dumped to JSON-compatible dict

    Returns:
        dict with the customer and admin send responses (admin is None when not configured)

    Raises:
        EmailRateLimitedError / EmailDeliveryError: Customer email could not be sent
    """
    subject, mjml_content = render_appointment_email(payload)
    html_content = compile_mjml_to_html(mjml_content)

    customer_response = await send_email(
        to=payload["to"], subject=subject, html_content=html_content
    )

    admin_response = None
    if ADMIN_NOTIFICATION_EMAIL:
        try:
            admin_response = await send_email(
                to=ADMIN_NOTIFICATION_EMAIL,
                subject=f"[Admin] {subject}",
                html_content=compile_mjml_to_html(with_admin_banner(mjml_content)),
            )
        except EmailDeliveryError as e:
            # Customer already has their email; the shop copy is not retried
            logger.warning(f"⚠️ Admin copy of '{payload['action']}' email failed: {e}")

    return {"customer": customer_response, "admin": admin_response}


async def send_password_reset_email(to: str, code: str) -> dict:
    """Send a staff password-reset verification code"""
    mjml_content = password_reset_code_template(code, PASSWORD_RESET_CODE_MINUTES)
    return await send_email(
        to=to,
        subject="Password Reset Verification Code",
        mjml_content=mjml_content,
    )
