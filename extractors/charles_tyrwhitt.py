"""Extractor for Charles Tyrwhitt (Salesforce Commerce storefront)."""

from __future__ import annotations

import logging

from playwright.async_api import Page

import pricing
from models import ColorInfo, PriceInfo, ScrapedProduct, SizeInfo
from stock import StockSignals, any_size_in_stock, infer_stock
from .base import Document, assemble, parse_json

logger = logging.getLogger(__name__)

_PRICE = 'span.js-thumb-now-price span[aria-hidden="true"]'
_SIZE_SWATCHES = 'ul[data-variation-attr-id*="Size"] li.js-attribute-swatch'
_SIZE_AVAILABLE_CLASS = "attribute__swatch--available"
_COLOR_SWATCHES = "div.colour-swatching a.js-pdpcolourswatch"
_IMAGE_BUTTONS = "ul.slick-track button.pdpimage__item"
_ADD_TO_CART = "button#add-to-cart"
_OUT_OF_STOCK = ".out-of-stock-msg"


class CharlesTyrwhittExtractor:
    requires_browser = False
    slug = "charles_tyrwhitt"

    def __init__(self, html: str, url: str, page: Page | None = None) -> None:
        self.url = url
        self.page = page
        self.doc = Document(html, url)

    def get_name(self) -> str | None:
        return self.doc.text("h1.product-name") or None

    def get_price(self) -> PriceInfo | None:
        return pricing.parse(self.doc.text(_PRICE))

    def get_sizes(self) -> list[SizeInfo]:
        sizes = []
        for li in self.doc.select(_SIZE_SWATCHES):
            name = self.doc.text("div.swatchanchor", root=li)
            if name:
                sizes.append(SizeInfo(name, _SIZE_AVAILABLE_CLASS in (li.get("class") or [])))
        return sizes

    def get_colors(self) -> list[ColorInfo]:
        colors = []
        for a in self.doc.select(_COLOR_SWATCHES):
            img = a.select_one("img")
            name = (a.get("data-colour") or (img.get("alt") if img else "") or "").strip()
            if name:
                colors.append(ColorInfo(name, img.get("src") if img else None))
        return colors

    def get_images(self) -> list[str]:
        images = []
        for button in self.doc.select(_IMAGE_BUTTONS):
            li = button.find_parent("li")
            img = (li or button).select_one("img[data-lgimg]")
            if img is None:
                continue
            data = parse_json(img.get("data-lgimg"))
            src = data.get("url") if isinstance(data, dict) else None
            src = src or img.get("src") or img.get("data-src")
            if src:
                images.append(src)
        return images

    def get_in_stock(self) -> bool:
        sizes = self.get_sizes()
        if sizes:
            return any_size_in_stock(sizes)
        if self.doc.exists(_OUT_OF_STOCK):
            return False
        signals = StockSignals(add_to_cart_enabled=self.doc.exists(_ADD_TO_CART))
        return infer_stock([], signals, default=False)

    def get_description(self) -> str | None:
        return (
            self.doc.meta("og:description")
            or self.doc.meta("description")
            or self.doc.text("div.product-description")
            or None
        )

    async def scrape(self) -> ScrapedProduct:
        return assemble(self)
