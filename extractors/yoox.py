"""
Extractor for YOOX.

YOOX ships CSS-module class names with build hashes (``__XsNGI``); the
selectors below match the current build and will need refreshing when
the storefront is redeployed.  Prices use the regional format
("1.234,50 €"), which the shared price parser already handles.
"""

from __future__ import annotations

import logging

from playwright.async_api import Page

import pricing
from models import ColorInfo, PriceInfo, ScrapedProduct, SizeInfo
from stock import StockSignals, any_size_in_stock, infer_stock
from .base import Document, assemble

logger = logging.getLogger(__name__)

_BRAND = "h1.ItemInfo_designer__XsNGI a"
_MICROCAT = "h2.ItemInfo_microcat__cTaMO a"
_PRICE = 'div.ItemInfo_price___W18c div.price[data-ta="current-price"]'
_SIZE_ITEMS = 'div[data-ta="size-picker"] div.SizePicker_size-item__nL4z_'
_SIZE_DISABLED_CLASS = "SizePicker_disabled__ma4Lp"
_COLOR_SAMPLES = (
    "div.ColorPicker_color-picker__VS_Ec a.ColorPicker_color-elem__KV09t "
    "div.ColorPicker_color-sample__yS_FM"
)
_GALLERY = 'div.PicturesSlider_photoSlider__BUjaM div[style*="overflow: hidden;"] > div > span > img'
_ADD_TO_CART = 'div[data-test-id="addToCart"]'


class YooxExtractor:
    requires_browser = False
    slug = "yoox"

    def __init__(self, html: str, url: str, page: Page | None = None) -> None:
        self.url = url
        self.page = page
        self.doc = Document(html, url)

    def get_name(self) -> str | None:
        brand = self.doc.text(_BRAND)
        name = self.doc.text(_MICROCAT)
        if brand and name:
            return f"{brand} - {name}"
        return name or brand or None

    def get_price(self) -> PriceInfo | None:
        return pricing.parse(self.doc.text(_PRICE))

    def get_sizes(self) -> list[SizeInfo]:
        sizes = []
        for el in self.doc.select(_SIZE_ITEMS):
            name = self.doc.text("span.SizePicker_size-title__LucnR", root=el)
            if name:
                sizes.append(SizeInfo(name, _SIZE_DISABLED_CLASS not in (el.get("class") or [])))
        return sizes

    def get_colors(self) -> list[ColorInfo]:
        colors = []
        for sample in self.doc.select(_COLOR_SAMPLES):
            name = (sample.get("title") or "").strip()
            if name:
                colors.append(ColorInfo(name))
        return colors

    def get_images(self) -> list[str]:
        # Lazy slots hold a transparent pixel until they scroll into view.
        return [
            img["src"] for img in self.doc.select(f"{_GALLERY}[src]")
            if "transparent" not in img["src"]
        ]

    def get_in_stock(self) -> bool:
        sizes = self.get_sizes()
        if sizes:
            return any_size_in_stock(sizes)
        signals = StockSignals(
            text=" ".join(self.doc.texts("span")),
            add_to_cart_enabled=self.doc.exists(_ADD_TO_CART) or None,
        )
        return infer_stock([], signals, default=False)

    def get_description(self) -> str | None:
        return (
            self.doc.meta("og:description")
            or self.doc.meta("description")
            or self.doc.text('div[data-test-id="productDetailComposition"]')
            or self.doc.text("div.ItemInfo_description__D_D3y")
            or None
        )

    async def scrape(self) -> ScrapedProduct:
        return assemble(self)
