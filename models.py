"""
Value types shared by the extractors, the router and the worker.

``ScrapedProduct`` is the transient result of one extraction.  Items and
price-history rows are plain dicts because that is what the item store
hands back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NamedTuple

# Item lifecycle states.
PENDING = "pending"
PROCESSED = "processed"
FAILED = "failed"
LINK_DEAD = "link_dead"


class PriceInfo(NamedTuple):
    """Price in integer minor units (cents, pence) plus ISO currency code."""

    amount_minor_units: int
    currency_code: str


class SizeInfo(NamedTuple):
    name: str
    in_stock: bool


class ColorInfo(NamedTuple):
    name: str
    swatch_url: str | None = None


@dataclass
class ScrapedProduct:
    name: str
    price_info: PriceInfo | None
    available_sizes: list[SizeInfo] = field(default_factory=list)
    available_colors: list[ColorInfo] = field(default_factory=list)
    images: list[str] = field(default_factory=list)
    in_stock: bool = True
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Item fields mirrored from this extraction."""
        return {
            "name": self.name,
            "price": self.price_info.amount_minor_units if self.price_info else None,
            "currency": self.price_info.currency_code if self.price_info else None,
            "images": list(self.images),
            "available_sizes": [
                {"name": s.name, "in_stock": s.in_stock} for s in self.available_sizes
            ],
            "available_colors": [
                {"name": c.name, "swatch_url": c.swatch_url} for c in self.available_colors
            ],
            "in_stock": self.in_stock,
            "description": self.description,
        }
