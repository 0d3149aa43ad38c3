from __future__ import annotations

import smtplib
from datetime import UTC, datetime
from pathlib import Path

import pytest

from stock_monitor.config import EmailConfig
from stock_monitor.errors import NotifyError
from stock_monitor.models import Product, StockState, StockStatus
from stock_monitor.notifications.base import NullNotifier, StockAlert
from stock_monitor.notifications import email_notifier
from stock_monitor.notifications.email_notifier import EmailNotifier
from stock_monitor.services.monitoring_service import MonitoringService
from stock_monitor.storage.repository import JsonStatusRepository


@pytest.fixture
def alert() -> StockAlert:
    product = Product(
        product_id="akaza-buzzmod",
        name="Akaza Figure",
        url="https://example.com/akaza",
        store="BigBadToyStore",
        reference_price="$154.99",
    )
    status = StockStatus.from_state(
        StockState.IN_STOCK,
        price="$149.99",
        title="Akaza",
        description="A figure",
        timestamp=datetime(2024, 5, 1, 12, 30, tzinfo=UTC),
    )
    return StockAlert(product=product, status=status)


@pytest.fixture
def email_config() -> EmailConfig:
    return EmailConfig(sender="me@example.com", password="secret", recipient="you@example.com")


class FakeSMTP:
    instances: list["FakeSMTP"] = []

    def __init__(self, host: str, port: int, timeout: float) -> None:
        self.host = host
        self.port = port
        self.sent: list[object] = []
        self.logged_in: tuple[str, str] | None = None
        self.started_tls = False
        FakeSMTP.instances.append(self)

    def __enter__(self) -> "FakeSMTP":
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None

    def starttls(self) -> None:
        self.started_tls = True

    def login(self, user: str, password: str) -> None:
        self.logged_in = (user, password)

    def send_message(self, message: object) -> None:
        self.sent.append(message)


def test_alert_body_contains_details(alert: StockAlert) -> None:
    body = alert.html_body()

    assert alert.subject == "Akaza Figure is BACK IN STOCK!"
    assert "$149.99" in body
    assert "BigBadToyStore" in body
    assert "In Stock" in body
    assert "2024-05-01 12:30:00" in body
    assert 'href="https://example.com/akaza"' in body


def test_email_notifier_skips_without_configuration(alert: StockAlert, caplog) -> None:
    caplog.set_level("INFO")
    notifier = EmailNotifier(EmailConfig(sender="me@example.com"))

    result = notifier.send(alert)

    assert result.ok and result.skipped
    assert "Email not configured" in caplog.text


def test_email_notifier_sends_over_smtp(
    monkeypatch: pytest.MonkeyPatch, alert: StockAlert, email_config: EmailConfig
) -> None:
    FakeSMTP.instances = []
    monkeypatch.setattr(email_notifier.smtplib, "SMTP", FakeSMTP)

    result = EmailNotifier(email_config).send(alert)

    assert result.ok and not result.skipped
    server = FakeSMTP.instances[0]
    assert (server.host, server.port) == ("smtp.gmail.com", 587)
    assert server.started_tls
    assert server.logged_in == ("me@example.com", "secret")
    message = server.sent[0]
    assert message["To"] == "you@example.com"
    assert message["Subject"] == "Akaza Figure is BACK IN STOCK!"


def test_email_notifier_reports_smtp_failure(
    monkeypatch: pytest.MonkeyPatch, alert: StockAlert, email_config: EmailConfig
) -> None:
    class BrokenSMTP(FakeSMTP):
        def login(self, user: str, password: str) -> None:
            raise smtplib.SMTPAuthenticationError(535, b"bad credentials")

    monkeypatch.setattr(email_notifier.smtplib, "SMTP", BrokenSMTP)

    result = EmailNotifier(email_config).send(alert)

    assert not result.ok
    assert isinstance(result.error, NotifyError)


class AsciiAuthSMTP(FakeSMTP):
    def login(self, user: str, password: str) -> None:
        # smtplib encodes AUTH PLAIN/LOGIN credentials as ASCII.
        password.encode("ascii")
        super().login(user, password)


def test_email_notifier_reports_unencodable_password(monkeypatch: pytest.MonkeyPatch, alert: StockAlert) -> None:
    monkeypatch.setattr(email_notifier.smtplib, "SMTP", AsciiAuthSMTP)
    config = EmailConfig(sender="me@example.com", password="pässwörd", recipient="you@example.com")

    result = EmailNotifier(config).send(alert)

    assert not result.ok
    assert isinstance(result.error, NotifyError)


def test_unencodable_password_does_not_abort_pass(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(email_notifier.smtplib, "SMTP", AsciiAuthSMTP)
    products = tuple(
        Product(
            product_id=product_id,
            name=product_id.title(),
            url=f"https://example.com/{product_id}",
            store="Demo Store",
            reference_price="$10.00",
        )
        for product_id in ("first", "second")
    )
    repository = JsonStatusRepository(tmp_path / "status.json")
    for product in products:
        repository.save(
            product.product_id,
            StockStatus.from_state(StockState.OUT_OF_STOCK, price="$10.00", title="t", description="d"),
        )

    class InStockClient:
        def __init__(self) -> None:
            self.urls: list[str] = []

        def fetch_page(self, url: str) -> str:
            self.urls.append(url)
            return "<button>Add to Cart</button>"

    client = InStockClient()
    config = EmailConfig(sender="me@example.com", password="pässwörd", recipient="you@example.com")
    service = MonitoringService(
        client=client,
        repository=repository,
        notifier=EmailNotifier(config),
        products=products,
    )

    run = service.run_pass()

    assert len(run.reports) == 2
    assert len(client.urls) == 2
    assert run.notifications_sent == 0
    assert len(run.failures) == 2
    assert all(isinstance(error, NotifyError) for error in run.failures)
    assert all(repository.load(product.product_id).in_stock for product in products)


def test_null_notifier_skips(alert: StockAlert) -> None:
    result = NullNotifier().send(alert)

    assert result.skipped
