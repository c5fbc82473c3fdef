"""
Stock-status inference.

Extractors collect whatever availability evidence the page offers into a
:class:`StockSignals` and :func:`infer_stock` resolves it with a fixed
precedence:

  1. any size marked available          -> in stock
  2. explicit structured availability   -> use it
  3. negative text ("sold out", ...)    -> out of stock
  4. positive signal (add-to-cart, ...) -> in stock
  5. otherwise the caller's default (optimistic for the generic path,
     pessimistic for sites that only ever show explicit signals)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable

from models import SizeInfo

# Textual / markup patterns that mean the product cannot be bought.
_NEGATIVE_PATTERNS = [
    re.compile(r"out of stock", re.IGNORECASE),
    re.compile(r"sold out", re.IGNORECASE),
    re.compile(r"currently unavailable", re.IGNORECASE),
    re.compile(r"not available", re.IGNORECASE),
    re.compile(r"no longer available", re.IGNORECASE),
    re.compile(r"discontinued", re.IGNORECASE),
    re.compile(r'"availability"\s*:\s*"(?:https?://schema\.org/)?(?:OutOfStock|SoldOut)"', re.IGNORECASE),
    re.compile(r'class="[^"]*\b(?:out-of-stock|sold-out|unavailable)', re.IGNORECASE),
    re.compile(r'"inStock"\s*:\s*false', re.IGNORECASE),
    re.compile(r'"available"\s*:\s*false', re.IGNORECASE),
]

_POSITIVE_PATTERNS = [
    re.compile(r'"availability"\s*:\s*"(?:https?://schema\.org/)?InStock"', re.IGNORECASE),
    re.compile(r'"inStock"\s*:\s*true', re.IGNORECASE),
    re.compile(r'"available"\s*:\s*true', re.IGNORECASE),
    re.compile(r"add to (?:cart|bag|basket)", re.IGNORECASE),
]

_IN_STOCK_VALUES = {"instock", "limitedavailability", "instoreonly", "onlineonly", "preorder", "presale"}
_OUT_OF_STOCK_VALUES = {"outofstock", "soldout", "discontinued", "backorder"}


@dataclass
class StockSignals:
    """Availability evidence gathered from one page.

    ``structured`` is the schema.org availability when the page has one,
    ``text`` is the markup or visible text to scan, and
    ``add_to_cart_enabled`` is ``None`` when no purchase control was found.
    """

    structured: bool | None = None
    text: str = ""
    add_to_cart_enabled: bool | None = None


def availability_from_schema(value: Any) -> bool | None:
    """Map a schema.org ``availability`` value (URL or bare token) to a bool."""
    if not isinstance(value, str) or not value.strip():
        return None
    token = value.strip().rsplit("/", 1)[-1].lower()
    if token in _IN_STOCK_VALUES:
        return True
    if token in _OUT_OF_STOCK_VALUES:
        return False
    return None


def has_negative_signal(text: str) -> bool:
    return any(p.search(text) for p in _NEGATIVE_PATTERNS)


def has_positive_signal(text: str) -> bool:
    return any(p.search(text) for p in _POSITIVE_PATTERNS)


def any_size_in_stock(sizes: Iterable[SizeInfo]) -> bool:
    return any(s.in_stock for s in sizes)


def infer_stock(
    sizes: Iterable[SizeInfo],
    signals: StockSignals | None = None,
    *,
    default: bool = True,
) -> bool:
    """Resolve the in-stock flag from sizes and page signals."""
    if any_size_in_stock(sizes):
        return True

    signals = signals or StockSignals()
    if signals.structured is not None:
        return signals.structured

    if signals.text and has_negative_signal(signals.text):
        return False

    if signals.add_to_cart_enabled:
        return True
    if signals.text and has_positive_signal(signals.text):
        return True

    return default
