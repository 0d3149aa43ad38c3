"""Domain models used throughout the stock monitor."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Optional


class StockState(str, Enum):
    """Availability classification of a product page."""

    IN_STOCK = "in-stock"
    OUT_OF_STOCK = "out-of-stock"
    UNKNOWN = "unknown"

    @property
    def label(self) -> str:
        return _STATE_LABELS[self]


_STATE_LABELS = {
    StockState.IN_STOCK: "In Stock",
    StockState.OUT_OF_STOCK: "Out of Stock",
    StockState.UNKNOWN: "Status Unknown",
}


@dataclass(slots=True, frozen=True)
class Product:
    """A monitored catalog item loaded from configuration."""

    product_id: str
    name: str
    url: str
    store: str
    reference_price: str


@dataclass(slots=True)
class StockStatus:
    """Snapshot of a product's availability at one point in time."""

    in_stock: bool
    status: StockState
    message: str
    timestamp: datetime
    price: str
    title: str
    description: str

    @classmethod
    def from_state(
        cls,
        state: StockState,
        *,
        price: str,
        title: str,
        description: str,
        timestamp: Optional[datetime] = None,
    ) -> StockStatus:
        """Build a status whose ``in_stock`` flag and message follow ``state``."""

        return cls(
            in_stock=state is StockState.IN_STOCK,
            status=state,
            message=state.label,
            timestamp=timestamp or datetime.now(UTC),
            price=price,
            title=title,
            description=description,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the status file representation."""

        return {
            "inStock": self.in_stock,
            "status": self.status.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "price": self.price,
            "title": self.title,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> StockStatus:
        """Parse a status file entry. Unknown keys are ignored.

        Raises ``KeyError`` for missing fields and ``ValueError`` for values
        that cannot be interpreted.
        """

        in_stock = payload["inStock"]
        if not isinstance(in_stock, bool):
            raise ValueError(f"inStock must be a boolean, got {in_stock!r}")
        status = StockState(payload["status"])
        if in_stock != (status is StockState.IN_STOCK):
            raise ValueError(f"inStock={in_stock} contradicts status {status.value!r}")

        timestamp = datetime.fromisoformat(str(payload["timestamp"]).replace("Z", "+00:00"))
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=UTC)

        return cls(
            in_stock=in_stock,
            status=status,
            message=str(payload["message"]),
            timestamp=timestamp,
            price=str(payload["price"]),
            title=str(payload["title"]),
            description=str(payload["description"]),
        )


@dataclass(slots=True)
class StepResult:
    """Outcome of a non-fatal step such as saving a status or sending an alert."""

    ok: bool
    skipped: bool = False
    error: Optional[Exception] = None

    @classmethod
    def success(cls) -> StepResult:
        return cls(ok=True)

    @classmethod
    def skip(cls) -> StepResult:
        return cls(ok=True, skipped=True)

    @classmethod
    def failure(cls, error: Exception) -> StepResult:
        return cls(ok=False, error=error)
