import logging
import smtplib
from email.message import EmailMessage

import resend
from flask import current_app

from utils.retry import call_with_retries

logger = logging.getLogger(__name__)


class EmailError(Exception):
    pass


class EmailSender:
    """Sends through Resend when an API key is set, otherwise through SMTP."""

    def __init__(self, from_email=None, resend_api_key=None, smtp_host=None, smtp_port=587,
                 smtp_username=None, smtp_password=None, smtp_use_tls=True, timeout=10):
        self.from_email = from_email or smtp_username
        self.resend_api_key = resend_api_key
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_username = smtp_username
        self.smtp_password = smtp_password
        self.smtp_use_tls = smtp_use_tls
        self.timeout = timeout

    @classmethod
    def from_config(cls, config):
        return cls(
            from_email=config.get("EMAIL_FROM"),
            resend_api_key=config.get("RESEND_API_KEY"),
            smtp_host=config.get("SMTP_HOST"),
            smtp_port=config.get("SMTP_PORT", 587),
            smtp_username=config.get("SMTP_USERNAME"),
            smtp_password=config.get("SMTP_PASSWORD"),
            smtp_use_tls=config.get("SMTP_USE_TLS", True),
            timeout=config.get("EXTERNAL_TIMEOUT_SECONDS", 10),
        )

    @property
    def configured(self) -> bool:
        return bool(self.from_email and (self.resend_api_key or self.smtp_host))

    def send(self, to_email: str, subject: str, html: str, text: str = None):
        if self.resend_api_key:
            return self._send_resend(to_email, subject, html)
        return self._send_smtp(to_email, subject, html, text)

    def _send_resend(self, to_email, subject, html):
        resend.api_key = self.resend_api_key
        try:
            result = resend.Emails.send({
                "from": self.from_email,
                "to": [to_email],
                "subject": subject,
                "html": html,
            })
        except Exception as exc:
            raise EmailError(f"Resend error: {exc}") from exc
        return (result or {}).get("id")

    def _send_smtp(self, to_email, subject, html, text):
        msg = EmailMessage()
        msg["From"] = self.from_email
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.set_content(text or "This message requires an HTML-capable email client.")
        msg.add_alternative(html, subtype="html")

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                if self.smtp_use_tls:
                    server.starttls()
                if self.smtp_username and self.smtp_password:
                    server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise EmailError(f"SMTP error: {exc}") from exc
        return None


def get_mailer():
    mailer = current_app.extensions.get("mailer")
    if mailer is None:
        mailer = EmailSender.from_config(current_app.config)
    return mailer


def send_email(to_email: str, subject: str, html: str, text: str = None):
    """Returns (sent, error). Never raises for delivery problems."""
    if not to_email:
        return False, "No recipient"

    mailer = get_mailer()
    if not mailer.configured:
        return False, "Email not configured"

    try:
        call_with_retries(
            lambda: mailer.send(to_email, subject, html, text),
            attempts=current_app.config.get("EXTERNAL_RETRY_ATTEMPTS", 3),
            backoff_seconds=current_app.config.get("EXTERNAL_RETRY_BACKOFF_SECONDS", 0.5),
            retry_on=(EmailError,),
            label="Email send",
        )
        return True, None
    except EmailError as exc:
        logger.warning("Email to %s failed: %s", to_email, exc)
        return False, str(exc)
