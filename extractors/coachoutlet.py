"""
Extractor for Coach Outlet.

Gallery images carry their full-size URL in a ``data-lgimg`` JSON
attribute; when it is absent the thumbnail URL is rewritten to the
product-size preset.
"""

from __future__ import annotations

import logging

from playwright.async_api import Page

import pricing
from models import ColorInfo, PriceInfo, ScrapedProduct, SizeInfo
from stock import StockSignals, any_size_in_stock, infer_stock
from .base import Document, assemble, element_text, parse_json

logger = logging.getLogger(__name__)

_NAME = 'h1[data-qa="pdp_txt_pdt_title"]'
_PRICE = 'p[data-qa="cm_txt_pdt_price"]'
_SIZE_BUTTONS = "div.product-size-controls div.controls-btn-wrapper button.variation-size"
_COLOR_BUTTONS = "div.color-images-swatches button.variant-image-swatch"
_GALLERY = "ul.splide__list li > div > img"
_ADD_TO_BAG = 'button[data-qa="btn_add_to_bag"]'


class CoachOutletExtractor:
    requires_browser = False
    slug = "coachoutlet"

    def __init__(self, html: str, url: str, page: Page | None = None) -> None:
        self.url = url
        self.page = page
        self.doc = Document(html, url)

    def get_name(self) -> str | None:
        return self.doc.text(_NAME) or None

    def get_price(self) -> PriceInfo | None:
        return pricing.parse(self.doc.text(_PRICE))

    def get_sizes(self) -> list[SizeInfo]:
        sizes = []
        for button in self.doc.select(_SIZE_BUTTONS):
            name = element_text(button)
            if name:
                sizes.append(SizeInfo(name, button.get("aria-disabled") != "true"))
        return sizes

    def get_colors(self) -> list[ColorInfo]:
        colors = []
        for button in self.doc.select(_COLOR_BUTTONS):
            name = (button.get("title") or "").strip()
            if name:
                colors.append(ColorInfo(name, self.doc.attr("img", "src", root=button)))
        return colors

    def get_images(self) -> list[str]:
        images = []
        for img in self.doc.select(_GALLERY):
            data = parse_json(img.get("data-lgimg"))
            if isinstance(data, dict) and data.get("src"):
                images.append(data["src"])
        if images:
            return images
        for img in self.doc.select(f"{_GALLERY}[src]"):
            images.append(img["src"].replace("$desktopThumbnail$", "$desktopProduct$"))
        return images

    def get_in_stock(self) -> bool:
        sizes = self.get_sizes()
        if sizes:
            return any_size_in_stock(sizes)
        signals = StockSignals(add_to_cart_enabled=self.doc.control_enabled(_ADD_TO_BAG))
        return infer_stock([], signals, default=False)

    def get_description(self) -> str | None:
        return (
            self.doc.meta("og:description")
            or self.doc.meta("description")
            or self.doc.text("div.product-description-content")
            or None
        )

    async def scrape(self) -> ScrapedProduct:
        return assemble(self)
