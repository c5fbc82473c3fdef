"""Extractor for Max Mara."""

from __future__ import annotations

import logging

from playwright.async_api import Page

import pricing
from models import ColorInfo, PriceInfo, ScrapedProduct, SizeInfo
from stock import StockSignals, any_size_in_stock, infer_stock
from .base import Document, assemble

logger = logging.getLogger(__name__)

_BRAND = "span.product-labels__label.--uppercase"
_NAME = "div.pdp__info__header__name h1"
_SIZE_SELECTORS = (
    "div.pdp__info__header__sizes__selectors "
    "div.pdp__info__header__sizes__selectors__selector"
)
_COLOR_SWATCHES = "div.pdp-colors__swatches a.pdp-colors__swatches__color"
_GALLERY = "div.pdp__images__wrapper div.slick-track div.slick-slide:not(.slick-cloned) img"


class MaxMaraExtractor:
    requires_browser = False
    slug = "maxmara"

    def __init__(self, html: str, url: str, page: Page | None = None) -> None:
        self.url = url
        self.page = page
        self.doc = Document(html, url)

    def get_name(self) -> str | None:
        brand = self.doc.text(_BRAND)
        name = self.doc.text(_NAME)
        if brand and name:
            return f"{brand} - {name}"
        return name or brand or None

    def get_price(self) -> PriceInfo | None:
        return pricing.parse(self.doc.text("span.prices__full"))

    def get_sizes(self) -> list[SizeInfo]:
        sizes = []
        for el in self.doc.select(_SIZE_SELECTORS):
            name = self.doc.text("label", root=el)
            if not name:
                continue
            radio = el.select_one("input")
            unavailable = el.select_one("input[data-unavailable]") is not None or (
                radio is not None and radio.has_attr("disabled")
            )
            sizes.append(SizeInfo(name, not unavailable))
        return sizes

    def get_colors(self) -> list[ColorInfo]:
        colors = []
        for a in self.doc.select(_COLOR_SWATCHES):
            img = a.select_one("img")
            name = (img.get("alt") or "").strip() if img else ""
            if name:
                colors.append(ColorInfo(name, img.get("src")))
        return colors

    def get_images(self) -> list[str]:
        images = []
        for img in self.doc.select(_GALLERY):
            # Slick lazy-loads: the real URL is in data-lazy until scrolled to.
            src = img.get("data-lazy") or img.get("data-src") or img.get("src")
            if src:
                images.append(src)
        return images

    def get_in_stock(self) -> bool:
        sizes = self.get_sizes()
        if sizes:
            return any_size_in_stock(sizes)
        if self.doc.exists(".product-unavailable"):
            return False
        signals = StockSignals(add_to_cart_enabled=self.doc.exists("button.js-add-to-cart-btn") or None)
        return infer_stock([], signals, default=False)

    def get_description(self) -> str | None:
        return (
            self.doc.meta("og:description")
            or self.doc.meta("description")
            or self.doc.text("div.pdp__description")
            or None
        )

    async def scrape(self) -> ScrapedProduct:
        return assemble(self)
