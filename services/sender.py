"""Outbound email dispatch through Resend or an SMTP relay."""

from __future__ import annotations

import importlib
import importlib.util
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Any, Protocol

from config import AppConfig
from models import ContactError, EmailProvider, OutboundMessage, Submission
from services.sanitizer import escape_for_html, message_to_html

SUBJECT_TEMPLATE = "New message from {name}"

_HTML_TEMPLATE = """\
<h2>New message from the website</h2>
<p><strong>Name:</strong> {name}</p>
<p><strong>Email:</strong> {email}</p>
<p><strong>Message:</strong><br/>{message}</p>
"""

_TEXT_TEMPLATE = """\
Name: {name}
Email: {email}

{message}
"""


class DispatchError(ContactError):
    """Raised when the email provider rejects or fails a send."""

    status_code = 502


class EmailSender(Protocol):
    def send(self, message: OutboundMessage) -> str: ...


def build_outbound_message(submission: Submission, config: AppConfig) -> OutboundMessage:
    """Project a validated submission into a sanitized email."""
    name = submission.name.strip()
    email = submission.email.strip()
    message = submission.message.strip()

    clean_name = escape_for_html(name)
    return OutboundMessage(
        from_email=config.contact_from_email,
        to_email=config.contact_to_email,
        reply_to=email,
        # Header values must stay on one line.
        subject=SUBJECT_TEMPLATE.format(name=" ".join(clean_name.split())),
        html=_HTML_TEMPLATE.format(
            name=clean_name,
            email=escape_for_html(email),
            message=message_to_html(message),
        ),
        text=_TEXT_TEMPLATE.format(name=name, email=email, message=message),
    )


class ResendEmailSender:
    """Send transactional email through the Resend API."""

    def __init__(
        self,
        api_key: str,
        *,
        client: Any | None = None,
        timeout_seconds: float = 8.0,
    ) -> None:
        self._client = client or self._build_default_client(api_key, timeout_seconds)

    @staticmethod
    def _build_default_client(api_key: str, timeout_seconds: float) -> Any:
        resend_module = importlib.import_module("resend")
        # Resend SDK v2.x uses module-level api_key + module-level resources
        resend_module.api_key = api_key
        if importlib.util.find_spec("resend.http_client_requests") is not None:
            http_client_module = importlib.import_module("resend.http_client_requests")
            resend_module.default_http_client = http_client_module.RequestsClient(
                timeout=timeout_seconds
            )
        return resend_module

    def send(self, message: OutboundMessage) -> str:
        params: dict[str, Any] = {
            "from": message.from_email,
            "to": [message.to_email],
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
        }
        if message.reply_to:
            params["reply_to"] = message.reply_to

        try:
            response = self._client.Emails.send(params)
        except Exception as exc:  # noqa: BLE001
            raise DispatchError(f"resend send failed: {exc}") from exc

        return _extract_id(response)


class SmtpEmailSender:
    """Deliver one message per SMTP session (STARTTLS or implicit TLS)."""

    def __init__(
        self,
        *,
        host: str,
        port: int,
        username: str,
        password: str,
        use_ssl: bool = False,
        timeout_seconds: float = 8.0,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._use_ssl = use_ssl
        self._timeout_seconds = timeout_seconds

    def send(self, message: OutboundMessage) -> str:
        email_message = _to_email_message(message)
        context = ssl.create_default_context()

        try:
            if self._use_ssl:
                with smtplib.SMTP_SSL(
                    self._host, self._port, timeout=self._timeout_seconds, context=context
                ) as server:
                    server.ehlo()
                    server.login(self._username, self._password)
                    refused = server.send_message(email_message)
            else:
                with smtplib.SMTP(self._host, self._port, timeout=self._timeout_seconds) as server:
                    server.ehlo()
                    server.starttls(context=context)
                    server.ehlo()
                    server.login(self._username, self._password)
                    refused = server.send_message(email_message)
        except (smtplib.SMTPException, OSError) as exc:
            raise DispatchError(f"smtp send failed: {exc}") from exc

        if refused:
            raise DispatchError(f"smtp recipients refused: {sorted(refused)}")
        return str(email_message["Message-ID"])


class DryRunEmailSender:
    """Record messages instead of sending them."""

    def __init__(self) -> None:
        self.sent: list[OutboundMessage] = []

    def send(self, message: OutboundMessage) -> str:
        self.sent.append(message)
        return "dry-run-message"


def build_sender(config: AppConfig) -> EmailSender:
    """Select the configured provider."""
    if config.enable_dry_run:
        return DryRunEmailSender()

    if config.email_provider == EmailProvider.SMTP:
        return SmtpEmailSender(
            host=config.smtp_host or "",
            port=config.smtp_port,
            username=config.smtp_username or "",
            password=config.smtp_password or "",
            use_ssl=config.smtp_use_ssl,
            timeout_seconds=config.outbound_timeout_seconds,
        )

    return ResendEmailSender(
        config.resend_api_key or "",
        timeout_seconds=config.outbound_timeout_seconds,
    )


def _to_email_message(message: OutboundMessage) -> EmailMessage:
    email_message = EmailMessage()
    email_message["Subject"] = message.subject
    email_message["From"] = message.from_email
    email_message["To"] = message.to_email
    if message.reply_to:
        email_message["Reply-To"] = message.reply_to
    email_message["Message-ID"] = make_msgid()
    email_message.set_content(message.text)
    email_message.add_alternative(message.html, subtype="html")
    return email_message


def _extract_id(response: Any) -> str:
    as_dict = _to_dict(response)
    if "id" not in as_dict:
        raise DispatchError("Resend response missing id")
    return str(as_dict["id"])


def _to_dict(response: Any) -> dict[str, Any]:
    if isinstance(response, dict):
        return response
    if hasattr(response, "model_dump"):
        return response.model_dump()
    if hasattr(response, "__dict__"):
        return {k: v for k, v in vars(response).items() if not k.startswith("_")}
    return {"raw": str(response)}
