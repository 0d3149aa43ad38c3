"""Coordinates fetching, classification, persistence and alerting."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Iterable, Optional

from ..api.client import ProductPageClient
from ..errors import NotifyError
from ..models import Product, StepResult, StockStatus
from ..notifications.base import Notifier, StockAlert
from ..storage.repository import JsonStatusRepository
from .classifier import classify_page

logger = logging.getLogger(__name__)


def is_back_in_stock(previous: Optional[StockStatus], current: StockStatus) -> bool:
    """``True`` only for a known out-of-stock to in-stock transition.

    The first check of a product never fires, and neither do repeated
    in-stock checks since the stored status is already in stock by then.
    """

    return previous is not None and not previous.in_stock and current.in_stock


@dataclass(slots=True)
class ProductReport:
    """Result of checking one product during a pass."""

    product: Product
    status: StockStatus
    previous: Optional[StockStatus]
    back_in_stock: bool
    saved: StepResult
    notified: Optional[StepResult] = None

    @property
    def failures(self) -> list[Exception]:
        results = [self.saved, self.notified]
        return [result.error for result in results if result is not None and result.error is not None]


@dataclass(slots=True)
class RunReport:
    """Aggregated outcome of one monitoring pass."""

    started_at: datetime
    finished_at: Optional[datetime] = None
    reports: list[ProductReport] = field(default_factory=list)

    @property
    def notifications_sent(self) -> int:
        return sum(
            1
            for report in self.reports
            if report.notified is not None and report.notified.ok and not report.notified.skipped
        )

    @property
    def failures(self) -> list[Exception]:
        return [error for report in self.reports for error in report.failures]


@dataclass(slots=True)
class MonitoringService:
    """Runs monitoring passes over a fixed product list."""

    client: ProductPageClient
    repository: JsonStatusRepository
    notifier: Notifier
    products: tuple[Product, ...] = ()

    def check_product(self, product: Product) -> ProductReport:
        """Fetch, classify and record ``product``, alerting on a restock.

        Fetch errors propagate. Save and notification failures are returned
        in the report, and a failed save does not prevent the alert.
        """

        html = self.client.fetch_page(product.url)
        status = classify_page(html, product)
        previous = self.repository.load(product.product_id)
        logger.info("%s: %s", product.name, "IN STOCK" if status.in_stock else "OUT OF STOCK")

        saved = self.repository.save(product.product_id, status)
        back_in_stock = is_back_in_stock(previous, status)
        report = ProductReport(
            product=product,
            status=status,
            previous=previous,
            back_in_stock=back_in_stock,
            saved=saved,
        )
        if back_in_stock:
            logger.info("%s is back in stock, sending notification", product.name)
            report.notified = self._notify(StockAlert(product=product, status=status))
        return report

    def _notify(self, alert: StockAlert) -> StepResult:
        try:
            return self.notifier.send(alert)
        except Exception as exc:
            # Notifier failures never abort a pass.
            error = NotifyError(f"Notifier {type(self.notifier).__name__} raised: {exc}")
            logger.error("Error sending notification for %s: %s", alert.product.product_id, error)
            return StepResult.failure(error)

    def run_pass(self, products: Optional[Iterable[Product]] = None) -> RunReport:
        """Check each product in turn and return the aggregated outcome."""

        items = list(self.products if products is None else products)
        run = RunReport(started_at=datetime.now(UTC))
        logger.info("Starting stock monitoring for %s products", len(items))
        for product in items:
            logger.info("Checking %s...", product.name)
            run.reports.append(self.check_product(product))
        run.finished_at = datetime.now(UTC)

        for error in run.failures:
            logger.warning("Non-fatal failure during pass: %s", error)
        logger.info(
            "Monitoring complete: %s checked, %s notifications sent, %s failures",
            len(run.reports),
            run.notifications_sent,
            len(run.failures),
        )
        return run

    def status_snapshot(self) -> dict[str, Any]:
        """Stored statuses as they appear in the status file."""

        return self.repository.load_raw()
