from __future__ import annotations

import pytest

from stock_monitor.errors import FetchError
from stock_monitor.models import Product, StepResult
from stock_monitor.notifications.base import Notifier, StockAlert
from stock_monitor.services.monitoring_service import MonitoringService
from stock_monitor.storage.repository import JsonStatusRepository
from stock_monitor.web.app import create_app


class SilentNotifier(Notifier):
    def __init__(self) -> None:
        self.sent_alerts: list[StockAlert] = []

    def send(self, alert: StockAlert) -> StepResult:
        self.sent_alerts.append(alert)
        return StepResult.success()


class DummyClient:
    def __init__(self, page: str | None) -> None:
        self.page = page

    def fetch_page(self, url: str) -> str:
        if self.page is None:
            raise FetchError("connection refused")
        return self.page


@pytest.fixture
def web_app(tmp_path):
    product = Product(
        product_id="demo",
        name="Demo Product",
        url="https://example.com/demo",
        store="Demo Store",
        reference_price="$10.00",
    )
    client = DummyClient("<h1>Demo Product</h1><button>Add to Cart</button>")
    service = MonitoringService(
        client=client,
        repository=JsonStatusRepository(tmp_path / "status.json"),
        notifier=SilentNotifier(),
        products=(product,),
    )
    app = create_app(service)
    app.config.update(TESTING=True)
    return app, client


def test_check_status_runs_pass_and_returns_store(web_app) -> None:
    app, _ = web_app

    response = app.test_client().post("/api/check-status")

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["success"] is True
    assert payload["status"]["demo"]["inStock"] is True
    assert payload["status"]["demo"]["title"] == "Demo Product"
    assert "timestamp" in payload
    assert response.headers["Access-Control-Allow-Origin"] == "*"


def test_check_status_failure_returns_error(web_app) -> None:
    app, client = web_app
    client.page = None

    response = app.test_client().post("/api/check-status")

    assert response.status_code == 500
    payload = response.get_json()
    assert payload == {"success": False, "error": "connection refused"}


def test_stored_status_does_not_fetch(web_app) -> None:
    app, client = web_app
    client.page = None

    response = app.test_client().get("/api/status")

    assert response.status_code == 200
    assert response.get_json()["status"] == {}


def test_preflight_request_allowed(web_app) -> None:
    app, _ = web_app

    response = app.test_client().options("/api/check-status")

    assert response.status_code == 204
    assert "POST" in response.headers["Access-Control-Allow-Methods"]
