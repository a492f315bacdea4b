# campaign_panel/infrastructure/mail/smtp_mail_sender.py
from __future__ import annotations

import smtplib
import ssl
from email.message import EmailMessage

from campaign_panel.config.settings import Settings
from campaign_panel.core.interfaces.mail_sender import MailMessage
from campaign_panel.core.logging import get_logger

logger = get_logger(__name__)


class SmtpMailSender:
    """Sends transactional mail over SMTP.

    Without an SMTP host (local development) the message is only logged and
    reported as delivered.
    """

    def __init__(
        self,
        *,
        host: str | None,
        port: int = 587,
        user: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        from_email: str | None = None,
        from_name: str = "Campaign Panel",
        timeout: int = 30,
    ) -> None:
        self._host = host
        self._port = port
        self._user = user
        self._password = password
        self._use_tls = use_tls
        self._from_email = from_email or user
        self._from_name = from_name
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpMailSender":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            user=settings.smtp_user,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            from_email=settings.smtp_from,
            from_name=settings.smtp_from_name,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._host and self._from_email)

    def _build(self, message: MailMessage) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = message.subject
        msg["From"] = f"{self._from_name} <{self._from_email}>"
        msg["To"] = message.to
        msg.set_content(message.text or "")
        msg.add_alternative(message.html, subtype="html")
        return msg

    def send(self, message: MailMessage) -> bool:
        if not self.is_configured:
            logger.info("mail_dev_mode", to_email=message.to, subject=message.subject)
            return True

        msg = self._build(message)
        context = ssl.create_default_context()

        try:
            if self._use_tls:
                with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
                    server.starttls(context=context)
                    if self._user and self._password:
                        server.login(self._user, self._password)
                    server.send_message(msg)
            else:
                with smtplib.SMTP_SSL(self._host, self._port, context=context, timeout=self._timeout) as server:
                    if self._user and self._password:
                        server.login(self._user, self._password)
                    server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("mail_send_failed", to_email=message.to, subject=message.subject, error=str(e))
            return False

        logger.info("mail_sent", to_email=message.to, subject=message.subject)
        return True
