"""
Extractor for Mytheresa.

Mytheresa only sells sized stock through the size dropdown, so a page
without any available size is treated as sold out.
"""

from __future__ import annotations

import logging

from playwright.async_api import Page

import pricing
from models import ColorInfo, PriceInfo, ScrapedProduct, SizeInfo
from stock import any_size_in_stock
from .base import Document, assemble, element_text

logger = logging.getLogger(__name__)

_BRAND = "div.product__area__branding__designer a"
_NAME = "div.product__area__branding__name"
_PRICE = "span.pricing__prices__price"
_SIZE_ITEMS = "div.dropdown__options__wrapper div.sizeitem:not(.sizeitem--placeholder)"
_DETAILS = '.product-details[data-label="Product details"] .product-details__content'
_GALLERY = (
    "div.product__gallery__carousel .swiper-wrapper "
    ".swiper-slide:not(.swiper-slide-duplicate) img"
)
_COLOR_PREFIX = "Designer color name:"


class MytheresaExtractor:
    requires_browser = False
    slug = "mytheresa"

    def __init__(self, html: str, url: str, page: Page | None = None) -> None:
        self.url = url
        self.page = page
        self.doc = Document(html, url)

    def get_name(self) -> str | None:
        brand = self.doc.text(_BRAND)
        name = self.doc.text(_NAME)
        if brand and name:
            return f"{brand} - {name}"
        return brand or name or None

    def get_price(self) -> PriceInfo | None:
        return pricing.parse(self.doc.text(_PRICE))

    def get_sizes(self) -> list[SizeInfo]:
        sizes = []
        for el in self.doc.select(_SIZE_ITEMS):
            name = self.doc.text("span.sizeitem__label", root=el)
            if name:
                sizes.append(SizeInfo(name, "sizeitem--notavailable" not in (el.get("class") or [])))
        return sizes

    def get_colors(self) -> list[ColorInfo]:
        for li in self.doc.select(f"{_DETAILS} li"):
            text = element_text(li)
            if _COLOR_PREFIX in text:
                name = text.replace(_COLOR_PREFIX, "").strip()
                return [ColorInfo(name)] if name else []
        return []

    def get_images(self) -> list[str]:
        return [img["src"] for img in self.doc.select(f"{_GALLERY}[src]")]

    def get_in_stock(self) -> bool:
        return any_size_in_stock(self.get_sizes())

    def get_description(self) -> str | None:
        return (
            self.doc.meta("og:description")
            or self.doc.meta("description")
            or self.doc.text(_DETAILS)
            or None
        )

    async def scrape(self) -> ScrapedProduct:
        return assemble(self)
