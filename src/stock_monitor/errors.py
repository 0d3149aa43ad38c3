"""Error taxonomy for the stock monitor.

Only :class:`FetchError` is fatal to a monitoring pass. Every other error has
a documented fallback and is reported through :class:`StepResult` values
instead of propagating.
"""
from __future__ import annotations


class StockMonitorError(Exception):
    """Base class for all stock monitor errors."""


class FetchError(StockMonitorError):
    """The product page could not be retrieved."""


class FetchTimeoutError(FetchError):
    """The product page request exceeded its timeout."""


class ParseError(StockMonitorError):
    """The page gave no usable stock signal."""


class ExtractionError(StockMonitorError):
    """A title, description or price could not be extracted."""


class StoreReadError(StockMonitorError):
    """The status file exists but could not be read or decoded."""


class StoreWriteError(StockMonitorError):
    """The status file could not be written."""


class NotifyError(StockMonitorError):
    """A notification could not be delivered."""
