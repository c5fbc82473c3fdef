"""
Extractor for H&M (hm.com).

The page ships a schema.org Product blob in ``script#product-schema``;
name, price, images and description come from it when it parses.
Sizes, colors and the add-to-bag state only exist in the hydrated DOM,
so the page is browser-rendered.
"""

from __future__ import annotations

import logging
from typing import Any

from playwright.async_api import Page

import pricing
from models import ColorInfo, PriceInfo, ScrapedProduct, SizeInfo
from stock import StockSignals, availability_from_schema, infer_stock
from .base import Document, assemble, schema_images, schema_offers, schema_text

logger = logging.getLogger(__name__)

_SIZE_OPTIONS = 'div[data-testid="size-selector"] ul[data-testid="grid"] div[role="radio"]'
_COLOR_OPTIONS = 'div[data-testid="color-selector-wrapper"] a[role="radio"]'
_ADD_TO_BAG = 'button[data-testid="add-to-bag-button"]'


class HmExtractor:
    requires_browser = True
    slug = "hm"

    def __init__(self, html: str, url: str, page: Page | None = None) -> None:
        self.url = url
        self.page = page
        self.doc = Document(html, url)
        self.schema = self._parse_schema()

    def _parse_schema(self) -> dict[str, Any] | None:
        data = self.doc.json_from("script#product-schema")
        if isinstance(data, dict) and data.get("@type") == "Product":
            return data
        if data is not None:
            logger.warning("[%s] product-schema is not a Product object", self.slug)
        return None

    def get_name(self) -> str | None:
        return schema_text(self.schema, "name") or self.doc.text("h1") or None

    def get_price(self) -> PriceInfo | None:
        offers = schema_offers(self.schema)
        if offers and offers[0].get("priceCurrency"):
            price = pricing.from_amount(offers[0].get("price"), offers[0]["priceCurrency"])
            if price:
                return price
        return pricing.parse(self.doc.text('span[translate="no"]'))

    def get_sizes(self) -> list[SizeInfo]:
        sizes = []
        for el in self.doc.select(_SIZE_OPTIONS):
            name = self.doc.text("div", root=el)
            if not name:
                continue
            label = (el.get("aria-label") or "").lower()
            disabled = el.get("aria-disabled") == "true" or "out of stock" in label
            sizes.append(SizeInfo(name, not disabled))
        return sizes

    def get_colors(self) -> list[ColorInfo]:
        colors = []
        for el in self.doc.select(_COLOR_OPTIONS):
            name = (el.get("title") or "").strip()
            if name:
                colors.append(ColorInfo(name, self.doc.attr("img", "src", root=el)))
        return colors

    def get_images(self) -> list[str]:
        images = schema_images(self.schema)
        if images:
            return images
        return [img["src"] for img in self.doc.select("figure img[src]")]

    def get_in_stock(self) -> bool:
        offers = schema_offers(self.schema)
        structured = availability_from_schema(offers[0].get("availability")) if offers else None
        signals = StockSignals(
            structured=structured,
            add_to_cart_enabled=self.doc.control_enabled(_ADD_TO_BAG),
        )
        return infer_stock(self.get_sizes(), signals, default=False)

    def get_description(self) -> str | None:
        return (
            schema_text(self.schema, "description")
            or self.doc.meta("og:description")
            or self.doc.meta("description")
        )

    async def scrape(self) -> ScrapedProduct:
        return assemble(self)
