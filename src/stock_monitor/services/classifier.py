"""Heuristic stock classification of product page HTML.

The classifier works on plain text with substring and regular expression
matching rather than a DOM tree. It is tuned for a single known storefront
and is fragile to markup changes.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Optional

from ..errors import ExtractionError, ParseError
from ..models import Product, StockState, StockStatus

logger = logging.getLogger(__name__)

# Checked before the in-stock phrases: many pages keep a disabled
# "Add to Cart" button next to "Sold Out".
OUT_OF_STOCK_PHRASES: tuple[str, ...] = (
    "out of stock",
    "out-of-stock",
    "sold out",
    "sold-out",
    "pre-order",
)

IN_STOCK_PHRASES: tuple[str, ...] = (
    "add to cart",
    "add-to-cart",
    "in stock",
    "in-stock",
)

PRICE_PATTERN = re.compile(r"\$[\d,]+\.?\d*")

TITLE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r'<h1[^>]*class="[^"]*product-title[^"]*"[^>]*>([^<]+)</h1>', re.IGNORECASE),
    re.compile(r"<h1[^>]*>([^<]+)</h1>", re.IGNORECASE),
    re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE),
    re.compile(r'<meta[^>]*property="og:title"[^>]*content="([^"]+)"', re.IGNORECASE),
)

DESCRIPTION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r'<div[^>]*class="[^"]*product-description[^"]*"[^>]*>(.*?)</div>', re.IGNORECASE | re.DOTALL),
    re.compile(r'<div[^>]*class="[^"]*description[^"]*"[^>]*>(.*?)</div>', re.IGNORECASE | re.DOTALL),
    re.compile(r'<p[^>]*class="[^"]*product-description[^"]*"[^>]*>(.*?)</p>', re.IGNORECASE | re.DOTALL),
    re.compile(r'<meta[^>]*name="description"[^>]*content="([^"]+)"', re.IGNORECASE),
    re.compile(r'<meta[^>]*property="og:description"[^>]*content="([^"]+)"', re.IGNORECASE),
)

# Applied in order, so "&amp;lt;" decodes all the way to "<".
_ENTITIES: tuple[tuple[str, str], ...] = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
)
_TAG_PATTERN = re.compile(r"<[^>]*>")
_WHITESPACE_PATTERN = re.compile(r"\s+")

DESCRIPTION_LIMIT = 200
DESCRIPTION_PLACEHOLDER = "Product description not available"


def detect_state(html: str) -> StockState:
    """Return the stock state signalled by ``html``.

    Raises :class:`ParseError` when the page contains none of the known
    phrases.
    """

    lowered = html.lower()
    for phrase in OUT_OF_STOCK_PHRASES:
        if phrase in lowered:
            logger.debug("Matched out-of-stock phrase %r", phrase)
            return StockState.OUT_OF_STOCK
    for phrase in IN_STOCK_PHRASES:
        if phrase in lowered:
            logger.debug("Matched in-stock phrase %r", phrase)
            return StockState.IN_STOCK
    raise ParseError("No stock phrase found in page")


def extract_price(html: str) -> Optional[str]:
    """First dollar amount found in ``html``, or ``None``."""

    match = PRICE_PATTERN.search(html)
    return match.group(0) if match else None


def decode_entities(text: str) -> str:
    for entity, replacement in _ENTITIES:
        text = text.replace(entity, replacement)
    return text


def extract_title(html: str) -> Optional[str]:
    """Product title from the page headings, ``<title>`` or Open Graph data."""

    for candidate in _candidates(html, TITLE_PATTERNS):
        title = decode_entities(candidate.strip())
        if title:
            return title
    return None


def extract_description(html: str) -> Optional[str]:
    """Plain-text product description truncated to ``DESCRIPTION_LIMIT`` characters."""

    for candidate in _candidates(html, DESCRIPTION_PATTERNS):
        description = _TAG_PATTERN.sub(" ", candidate.strip())
        description = decode_entities(description)
        description = _WHITESPACE_PATTERN.sub(" ", description).strip()
        if not description:
            continue
        if len(description) > DESCRIPTION_LIMIT:
            description = description[:DESCRIPTION_LIMIT] + "..."
        return description
    return None


def classify_page(html: str, product: Product, checked_at: Optional[datetime] = None) -> StockStatus:
    """Derive a :class:`StockStatus` for ``product`` from its page HTML."""

    try:
        state = detect_state(html)
    except ParseError:
        logger.info("Could not determine stock status for %s", product.product_id)
        state = StockState.UNKNOWN

    title = _safe_extract(extract_title, html, "title") or product.name
    description = _safe_extract(extract_description, html, "description") or DESCRIPTION_PLACEHOLDER
    if state is StockState.UNKNOWN:
        price = product.reference_price
    else:
        price = _safe_extract(extract_price, html, "price") or product.reference_price

    return StockStatus.from_state(
        state,
        price=price,
        title=title,
        description=description,
        timestamp=checked_at,
    )


def _candidates(html: str, patterns: tuple[re.Pattern[str], ...]):
    for pattern in patterns:
        try:
            match = pattern.search(html)
        except TypeError as exc:
            raise ExtractionError(f"Cannot search {type(html).__name__} for {pattern.pattern!r}") from exc
        if match and match.group(1):
            yield match.group(1)


def _safe_extract(extractor, html: str, field_name: str) -> Optional[str]:
    try:
        return extractor(html)
    except (ExtractionError, TypeError, ValueError) as exc:
        logger.warning("Error extracting product %s: %s", field_name, exc)
        return None
