"""Notification abstractions for back-in-stock alerts."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from html import escape

from ..models import Product, StepResult, StockStatus

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StockAlert:
    """A product that has just come back in stock."""

    product: Product
    status: StockStatus

    @property
    def subject(self) -> str:
        return f"{self.product.name} is BACK IN STOCK!"

    def html_body(self) -> str:
        """Render the email body with a link back to the store."""

        product = self.product
        checked_at = self.status.timestamp.strftime("%Y-%m-%d %H:%M:%S %Z")
        return f"""
<h2>Great news! Your monitored item is back in stock!</h2>
<div style="background: #f0f8ff; padding: 20px; border-radius: 8px; margin: 20px 0;">
    <h3>{escape(product.name)}</h3>
    <p><strong>Price:</strong> {escape(self.status.price)}</p>
    <p><strong>Store:</strong> {escape(product.store)}</p>
    <p><strong>Status:</strong> {escape(self.status.message)}</p>
    <p><strong>Checked at:</strong> {checked_at}</p>
</div>
<div style="text-align: center; margin: 30px 0;">
    <a href="{escape(product.url)}"
       style="background: #3182ce; color: white; padding: 12px 24px; text-decoration: none; border-radius: 8px; font-weight: bold;">
        Buy Now on {escape(product.store)}
    </a>
</div>
<p style="color: #666; font-size: 14px;">This notification was sent by your stock monitor.</p>
"""


class Notifier(ABC):
    """Base class for delivering alerts to the user.

    Implementations report failures through the returned :class:`StepResult`
    and must not raise.
    """

    @abstractmethod
    def send(self, alert: StockAlert) -> StepResult:
        """Dispatch ``alert``."""


class NullNotifier(Notifier):
    """Notifier used when notifications are disabled."""

    def send(self, alert: StockAlert) -> StepResult:
        logger.info("Notifications disabled, not sending alert for %s", alert.product.product_id)
        return StepResult.skip()
