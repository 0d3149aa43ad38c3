"""SMTP email delivery of back-in-stock alerts."""
from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from ..config import EmailConfig
from ..errors import NotifyError
from ..models import StepResult
from .base import Notifier, StockAlert

logger = logging.getLogger(__name__)


class EmailNotifier(Notifier):
    """Sends alerts as HTML email through an authenticated SMTP server."""

    def __init__(self, config: EmailConfig, timeout: float = 30.0) -> None:
        self._config = config
        self._timeout = timeout

    def build_message(self, alert: StockAlert) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["From"] = self._config.sender or ""
        message["To"] = self._config.recipient or ""
        message["Subject"] = alert.subject
        message.attach(MIMEText(alert.html_body(), "html"))
        return message

    def send(self, alert: StockAlert) -> StepResult:
        config = self._config
        if not config.enabled:
            logger.info("Email not configured, skipping notification")
            return StepResult.skip()

        message = self.build_message(alert)
        try:
            with smtplib.SMTP(config.smtp_host, config.smtp_port, timeout=self._timeout) as server:
                server.starttls()
                server.login(config.sender, config.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError, ValueError) as exc:
            # ValueError covers credentials smtplib cannot encode for AUTH.
            error = NotifyError(f"Could not email {config.recipient}: {exc}")
            logger.error("Error sending notification: %s", error)
            return StepResult.failure(error)

        logger.info("Notification email sent to %s for %s", config.recipient, alert.product.product_id)
        return StepResult.success()
