"""
Email Service using Resend

Send primitive and transports for applicant emails.

Exactly one transport is active per process. It is chosen once at startup by
``init_email_transport()``:
- ResendTransport: delivers through the Resend API (primary provider)
- LoggingTransport: logs the message instead of sending it (inert fallback)

``send_email`` never retries. A rejected or timed-out send raises
``TransportError`` and the caller decides what that failure means.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from html import escape
from typing import Protocol

import resend

from app.core.config import Settings, settings

logger = logging.getLogger(__name__)

DEFAULT_SUBJECT = "Message from Admissions Team"


class TransportError(Exception):
    """Raised when the email provider rejects a message or does not answer in time."""

    def __init__(self, message: str, provider: str, diagnostic: str | None = None):
        self.message = message
        self.provider = provider
        self.diagnostic = diagnostic
        super().__init__(f"{message}: {diagnostic}" if diagnostic else message)


@dataclass(frozen=True)
class DeliveryReceipt:
    """Result of a successful hand-off to the transport."""

    message_id: str
    provider: str
    to_email: str


class EmailTransport(Protocol):
    """A provider that can deliver one rendered message."""

    name: str

    async def send(
        self,
        to_email: str,
        from_display: str,
        subject: str,
        text: str,
        html: str,
    ) -> str:
        """Deliver the message and return the provider's message id."""
        ...


class ResendTransport:
    """Primary transport backed by the Resend API."""

    name = "resend"

    def __init__(self, api_key: str, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        # The Resend SDK reads its key from module state
        resend.api_key = api_key

    async def send(
        self,
        to_email: str,
        from_display: str,
        subject: str,
        text: str,
        html: str,
    ) -> str:
        params: resend.Emails.SendParams = {
            "from": from_display,
            "to": [to_email],
            "subject": subject,
            "text": text,
            "html": html,
        }

        try:
            # Run sync Resend call in thread pool to avoid blocking event loop
            email = await asyncio.wait_for(
                asyncio.to_thread(resend.Emails.send, params),
                timeout=self.timeout_seconds,
            )
        except TimeoutError as e:
            raise TransportError(
                "Email provider timed out",
                provider=self.name,
                diagnostic=f"no response within {self.timeout_seconds:g}s",
            ) from e
        except Exception as e:
            raise TransportError(
                "Email provider rejected the message",
                provider=self.name,
                diagnostic=str(e),
            ) from e

        message_id = email.get("id") if isinstance(email, dict) else None
        if not message_id:
            raise TransportError(
                "Email provider returned no message id",
                provider=self.name,
                diagnostic=f"unexpected response: {email!r}",
            )
        return message_id


class LoggingTransport:
    """Inert transport: logs the message instead of sending it."""

    name = "log"

    async def send(
        self,
        to_email: str,
        from_display: str,
        subject: str,
        text: str,
        html: str,
    ) -> str:
        message_id = f"log-{uuid.uuid4().hex}"
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject} | id: {message_id}")
        return message_id


# Active transport, resolved once at startup
_transport: EmailTransport | None = None


def select_transport(config: Settings) -> EmailTransport:
    """
    Build the transport named by the configuration.

    ``auto`` uses Resend when an API key is configured and the logging
    transport otherwise.

    Raises:
        ValueError: If ``resend`` is requested without an API key
    """
    mode = config.email_transport

    if mode == "log":
        return LoggingTransport()

    if mode == "resend" and not config.resend_api_key:
        raise ValueError("EMAIL_TRANSPORT=resend requires RESEND_API_KEY")

    if config.resend_api_key:
        return ResendTransport(config.resend_api_key, config.email_timeout_seconds)

    logger.warning("RESEND_API_KEY not set - logging emails instead of sending")
    return LoggingTransport()


def init_email_transport(config: Settings | None = None) -> EmailTransport:
    """
    Resolve and install the process-wide email transport.

    Call this on application startup.
    """
    global _transport
    _transport = select_transport(config or settings)
    logger.info(f"Email transport: {_transport.name}")
    return _transport


def get_email_transport() -> EmailTransport:
    """Get the active transport, resolving it on first use outside the app lifespan."""
    if _transport is None:
        return init_email_transport()
    return _transport


def close_email_transport() -> None:
    """Forget the active transport."""
    global _transport
    _transport = None


def render_email(body_text: str, recipient_name: str) -> tuple[str, str]:
    """
    Render the plain-text and HTML variants of a message.

    Args:
        body_text: Message body (plain text, newlines preserved)
        recipient_name: Name used in the greeting

    Returns:
        Tuple of (text, html)
    """
    text = f"Dear {recipient_name},\n\n{body_text}\n\nBest regards,\nAdmissions Team"

    # Escape user inputs to prevent XSS
    safe_name = escape(recipient_name)
    safe_body = escape(body_text).replace("\n", "<br>")

    html = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>
            body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
            .container {{ max-width: 600px; margin: 0 auto; padding: 24px 20px; }}
            .message {{ color: #555; }}
            .footer {{ margin-top: 20px; padding-top: 20px; border-top: 1px solid #ddd; color: #777; font-size: 14px; }}
        </style>
    </head>
    <body>
        <div class="container">
            <h2>Dear {safe_name},</h2>

            <p class="message">{safe_body}</p>

            <div class="footer">
                <p>Best regards,<br><strong>Admissions Team</strong></p>
            </div>
        </div>
    </body>
    </html>
    """
    return text, html


async def send_email(
    to_email: str,
    subject: str | None,
    body_text: str,
    recipient_name: str = "Applicant",
    transport: EmailTransport | None = None,
) -> DeliveryReceipt:
    """
    Render a message and hand it to exactly one transport.

    Args:
        to_email: Recipient email address
        subject: Subject line (falls back to a generic subject when blank)
        body_text: Message body
        recipient_name: Name used in the greeting
        transport: Transport override (defaults to the active transport)

    Returns:
        DeliveryReceipt with the provider's message id

    Raises:
        TransportError: If the provider rejects the message or times out
    """
    active = transport or get_email_transport()
    text, html = render_email(body_text, recipient_name)
    from_display = f"{settings.email_from_name} <{settings.email_from}>"

    try:
        message_id = await active.send(
            to_email=to_email,
            from_display=from_display,
            subject=subject or DEFAULT_SUBJECT,
            text=text,
            html=html,
        )
    except TransportError as e:
        logger.error(f"Failed to send email to {to_email} via {active.name}: {e}")
        raise

    logger.info(f"Email sent to {to_email} via {active.name}, id: {message_id}")
    return DeliveryReceipt(message_id=message_id, provider=active.name, to_email=to_email)
