"""Configuration settings for the stock monitor."""
from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .models import Product

DEFAULT_PRODUCTS: tuple[Product, ...] = (
    Product(
        product_id="akaza-buzzmod",
        name="Akaza - Demon Slayer: Kimetsu no Yaiba [BUZZmod.]",
        url="https://www.bigbadtoystore.com/Product/VariationDetails/186410",
        store="BigBadToyStore",
        reference_price="$154.99",
    ),
)


@dataclass(slots=True, frozen=True)
class EmailConfig:
    """SMTP settings for back-in-stock emails."""

    sender: Optional[str] = None
    password: Optional[str] = None
    recipient: Optional[str] = None
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587

    @property
    def enabled(self) -> bool:
        """Notifications are only sent when credentials and a recipient exist."""

        return bool(self.sender and self.password and self.recipient)


@dataclass(slots=True, frozen=True)
class AppConfig:
    """Top-level configuration for the application."""

    products: tuple[Product, ...] = DEFAULT_PRODUCTS
    status_file: Path = field(default_factory=lambda: Path("status.json"))
    request_timeout: float = 10.0
    """Seconds before a product page request is abandoned."""

    poll_interval_seconds: int = 900
    """Delay between passes in watch mode."""

    email: EmailConfig = field(default_factory=EmailConfig)


def load_config(env: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Build an :class:`AppConfig` from environment variables.

    When ``env`` is omitted the process environment is used, after loading a
    ``.env`` file if one is present.
    """

    if env is None:
        load_dotenv()
        env = os.environ

    email = EmailConfig(
        sender=env.get("EMAIL_USER") or None,
        password=env.get("EMAIL_PASS") or None,
        recipient=env.get("NOTIFICATION_EMAIL") or None,
        smtp_host=env.get("SMTP_SERVER") or "smtp.gmail.com",
        smtp_port=int(env.get("SMTP_PORT") or 587),
    )
    return AppConfig(
        status_file=Path(env.get("STATUS_FILE") or "status.json"),
        request_timeout=float(env.get("REQUEST_TIMEOUT") or 10.0),
        poll_interval_seconds=int(env.get("POLL_INTERVAL_SECONDS") or 900),
        email=email,
    )
