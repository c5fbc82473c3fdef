"""
Extractor for The RealReal.

Consignment listings are usually single items, so an enabled add-to-bag
button is the primary stock signal; sizes only decide when there is no
button at all.
"""

from __future__ import annotations

import logging

from playwright.async_api import Page

import pricing
from models import ColorInfo, PriceInfo, ScrapedProduct, SizeInfo
from stock import any_size_in_stock
from .base import Document, assemble, element_text, is_disabled

logger = logging.getLogger(__name__)

_NAMES = ("h1[data-test='productName']", "h1.product-title", "h1")
_PRICES = ("span[data-test='productPrice']", "span.price", "div.product-price")
_SIZE_BUTTONS = "button[data-test='sizeButton'], .size-selector button"
_COLOR_BUTTONS = "button[data-test='colorButton'], .color-selector button"
_IMAGES = "img[data-test='productImage'], .product-gallery img, .product-images img"
_ADD_TO_BAG = "button[data-test='addToBag'], button.add-to-cart, button.add-to-bag"
_SOLD_OUT = "div.sold-out, span.sold-out"
_DESCRIPTION = "div[data-test='productDescription'], .product-description, .product-details"


class TheRealRealExtractor:
    requires_browser = False
    slug = "therealreal"

    def __init__(self, html: str, url: str, page: Page | None = None) -> None:
        self.url = url
        self.page = page
        self.doc = Document(html, url)

    def _first_text(self, selectors: tuple[str, ...]) -> str:
        for css in selectors:
            text = self.doc.text(css)
            if text:
                return text
        return ""

    def get_name(self) -> str | None:
        return self._first_text(_NAMES) or None

    def get_price(self) -> PriceInfo | None:
        return pricing.parse(self._first_text(_PRICES))

    def get_sizes(self) -> list[SizeInfo]:
        sizes = []
        for button in self.doc.select(_SIZE_BUTTONS):
            name = element_text(button)
            if name:
                unavailable = "disabled" in (button.get("class") or []) or is_disabled(button)
                sizes.append(SizeInfo(name, not unavailable))
        return sizes

    def get_colors(self) -> list[ColorInfo]:
        colors = []
        for button in self.doc.select(_COLOR_BUTTONS):
            name = (button.get("aria-label") or button.get("title") or element_text(button)).strip()
            if name:
                colors.append(ColorInfo(name, self.doc.attr("img", "src", root=button)))
        return colors

    def get_images(self) -> list[str]:
        images = []
        for img in self.doc.select(_IMAGES):
            src = img.get("src") or img.get("data-src")
            if src and "placeholder" not in src:
                images.append(src)
        return images

    def get_in_stock(self) -> bool:
        sold_out = " ".join(self.doc.texts(_SOLD_OUT)).lower()
        if "sold out" in sold_out or "unavailable" in sold_out:
            return False
        if self.doc.control_enabled(_ADD_TO_BAG):
            return True
        return any_size_in_stock(self.get_sizes())

    def get_description(self) -> str | None:
        return (
            self.doc.meta("og:description")
            or self.doc.meta("description")
            or self.doc.text(_DESCRIPTION)
            or None
        )

    async def scrape(self) -> ScrapedProduct:
        return assemble(self)
