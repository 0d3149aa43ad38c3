"""JSON file storage for the latest stock status of each product."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from ..errors import StoreReadError, StoreWriteError
from ..models import StepResult, StockStatus

logger = logging.getLogger(__name__)


class JsonStatusRepository:
    """Persists the most recent :class:`StockStatus` per product id.

    The whole file is read, modified and rewritten on every save without any
    locking, so only one monitoring pass may use a given file at a time.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _read_raw(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise StoreReadError(f"Could not read {self._path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise StoreReadError(f"{self._path} does not contain a JSON object")
        return payload

    def load_raw(self) -> dict[str, Any]:
        """Return the stored mapping exactly as it appears in the file.

        Missing or unreadable files yield an empty mapping.
        """

        try:
            return self._read_raw()
        except StoreReadError as exc:
            logger.warning("Could not read previous status: %s", exc)
            return {}

    def load_all(self) -> dict[str, StockStatus]:
        """Return every parseable status in the file keyed by product id."""

        statuses: dict[str, StockStatus] = {}
        for product_id, entry in self.load_raw().items():
            if not isinstance(entry, dict):
                logger.warning("Ignoring malformed status entry for %s", product_id)
                continue
            try:
                statuses[product_id] = StockStatus.from_dict(entry)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Ignoring malformed status entry for %s: %s", product_id, exc)
        return statuses

    def load(self, product_id: str) -> Optional[StockStatus]:
        """Return the last saved status for ``product_id`` if there is one."""

        return self.load_all().get(product_id)

    def save(self, product_id: str, status: StockStatus) -> StepResult:
        """Store ``status`` for ``product_id`` and rewrite the whole file."""

        try:
            statuses = self._read_raw()
        except StoreReadError as exc:
            logger.warning("Replacing unreadable status file: %s", exc)
            statuses = {}

        statuses[product_id] = status.to_dict()
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(statuses, indent=2), encoding="utf-8")
        except OSError as exc:
            error = StoreWriteError(f"Could not write {self._path}: {exc}")
            logger.error("Error saving status for %s: %s", product_id, error)
            return StepResult.failure(error)

        logger.info("Status saved for %s", product_id)
        return StepResult.success()
