"""
Extractor for Etsy listings.

Etsy has no fixed size/color model: each listing declares its own
variations ("Size", "Dimensions", "Color", "Style", ...) as labelled
``<select>`` elements.  Sizes and colors are picked out of those by label.
"""

from __future__ import annotations

import logging

from playwright.async_api import Page

import pricing
from models import ColorInfo, PriceInfo, ScrapedProduct, SizeInfo
from stock import StockSignals, infer_stock
from .base import Document, assemble, element_text, last_srcset_url

logger = logging.getLogger(__name__)

_TITLE = 'h1[data-buy-box-listing-title="true"]'
_PRICE = 'div[data-selector="price-only"] p.wt-text-title-larger'
_VARIATIONS = 'div[data-selector="listing-page-variation"]'
_GALLERY = "ul[data-carousel-pane-list] li[data-carousel-pane] img"
_UNAVAILABLE = 'div[data-appears-component-name*="unavailable"]'
_ADD_TO_CART = "button[data-add-to-cart-button]"

_SIZE_LABELS = ("size", "dimension")
_COLOR_LABELS = ("color", "colour", "style")


class EtsyExtractor:
    requires_browser = False
    slug = "etsy"

    def __init__(self, html: str, url: str, page: Page | None = None) -> None:
        self.url = url
        self.page = page
        self.doc = Document(html, url)
        self.variations = self._parse_variations()

    def _parse_variations(self) -> list[tuple[str, list[SizeInfo]]]:
        variations = []
        for block in self.doc.select(_VARIATIONS):
            label = self.doc.text("label span[data-label]", root=block)
            select = block.select_one("select")
            if not label or select is None:
                continue
            options = []
            for option in select.select("option"):
                value = option.get("value")
                text = element_text(option)
                if not value or value == "0" or "select" in text.lower():
                    continue
                # "Large (+ $2.00)" -> "Large"
                name = text.split("(")[0].strip()
                lowered = text.lower()
                in_stock = (
                    not option.has_attr("disabled")
                    and "sold out" not in lowered
                    and "unavailable" not in lowered
                )
                if name:
                    options.append(SizeInfo(name, in_stock))
            if options:
                variations.append((label.lower(), options))
        return variations

    def _variation(self, keywords: tuple[str, ...]) -> list[SizeInfo]:
        for label, options in self.variations:
            if any(k in label for k in keywords):
                return options
        return []

    def get_name(self) -> str | None:
        return self.doc.text(_TITLE) or None

    def get_price(self) -> PriceInfo | None:
        currency = self.doc.meta("og:price:currency", "product:price:currency")
        price = pricing.parse(self.doc.text(_PRICE))
        if price and currency:
            # The meta tag is more reliable than the rendered symbol.
            return PriceInfo(price.amount_minor_units, pricing.currency_code(currency))
        return price

    def get_sizes(self) -> list[SizeInfo]:
        return self._variation(_SIZE_LABELS)

    def get_colors(self) -> list[ColorInfo]:
        return [ColorInfo(option.name) for option in self._variation(_COLOR_LABELS)]

    def get_images(self) -> list[str]:
        images = []
        for img in self.doc.select(_GALLERY):
            src = last_srcset_url(img.get("srcset")) or img.get("src")
            if src:
                images.append(src)
        return images

    def get_in_stock(self) -> bool:
        if self.variations:
            return any(o.in_stock for _, options in self.variations for o in options)
        unavailable = self.doc.exists(_UNAVAILABLE) or "Sorry, this item is unavailable." in self.doc.visible_text()
        if unavailable:
            return False
        signals = StockSignals(add_to_cart_enabled=self.doc.exists(_ADD_TO_CART) or None)
        return infer_stock([], signals, default=False)

    def get_description(self) -> str | None:
        return (
            self.doc.meta("og:description")
            or self.doc.meta("description")
            or self.doc.text("#listing-page-description p")
            or None
        )

    async def scrape(self) -> ScrapedProduct:
        return assemble(self)
