"""
Extractor for Amazon product detail pages.

Amazon splits the price into symbol / whole / fraction spans, exposes
variations as swatch lists or a native dropdown, and keeps the hi-res
gallery in ``data-a-dynamic-image`` JSON.  Availability is only trusted
when the page says so explicitly: no add-to-cart button means out of
stock.
"""

from __future__ import annotations

import logging
import re

from playwright.async_api import Page

import pricing
from models import ColorInfo, PriceInfo, ScrapedProduct, SizeInfo
from stock import StockSignals, infer_stock
from .base import Document, assemble, element_text, parse_json

logger = logging.getLogger(__name__)

_PRICE_BLOCK = (
    "#corePrice_feature_div .a-price, #price_feature_div .a-price, "
    "#priceblock_ourprice, #priceblock_dealprice, span.priceToPay"
)
_SIZE_SWATCHES = "#variation_size_name ul li[data-asin]"
_SIZE_DROPDOWN = "select#native_dropdown_selected_size_name option"
_SIZE_UNAVAILABLE_CLASSES = {"swatch-prototype-disabled-asin", "variation-unavailable"}
_COLOR_SWATCHES = "#variation_color_name ul li[data-asin]"
_MAIN_IMAGE = "#main-image-container img.a-dynamic-image, #landingImage"
_THUMBNAILS = "#altImages ul li.imageThumbnail img"

# "._AC_US40_." thumbnail size token in image URLs.
_RE_SIZE_TOKEN = re.compile(r"\._[A-Z0-9_,]+_\.")
_RE_NON_DIGITS = re.compile(r"\D")


class AmazonExtractor:
    requires_browser = True
    slug = "amazon"

    def __init__(self, html: str, url: str, page: Page | None = None) -> None:
        self.url = url
        self.page = page
        self.doc = Document(html, url)

    def get_name(self) -> str | None:
        return self.doc.text("#productTitle") or None

    def price_text(self) -> str | None:
        block = self.doc.select_one(_PRICE_BLOCK)
        if block is None:
            return None
        symbol = self.doc.text(".a-price-symbol", root=block)
        whole = _RE_NON_DIGITS.sub("", self.doc.text(".a-price-whole", root=block))
        fraction = self.doc.text(".a-price-fraction", root=block)
        if symbol and whole and fraction:
            return f"{symbol}{whole}.{fraction}"
        # .a-offscreen holds the full formatted price for screen readers.
        return self.doc.text(".a-offscreen", root=block) or element_text(block) or None

    def get_price(self) -> PriceInfo | None:
        return pricing.parse(self.price_text())

    def get_sizes(self) -> list[SizeInfo]:
        sizes = []
        swatches = self.doc.select(_SIZE_SWATCHES)
        if swatches:
            for li in swatches:
                name = self.doc.text("button", root=li) or element_text(li)
                if name:
                    unavailable = _SIZE_UNAVAILABLE_CLASSES & set(li.get("class") or [])
                    sizes.append(SizeInfo(name, not unavailable))
            return sizes

        for option in self.doc.select(_SIZE_DROPDOWN):
            value = option.get("value")
            if not value or value in ("-1", "0"):
                continue
            name = element_text(option)
            if name:
                in_stock = not option.has_attr("disabled") and "unavailable" not in name.lower()
                sizes.append(SizeInfo(name, in_stock))
        return sizes

    def get_colors(self) -> list[ColorInfo]:
        colors = []
        for li in self.doc.select(_COLOR_SWATCHES):
            img = li.select_one("img")
            if img is None:
                continue
            name = (img.get("alt") or "").strip()
            if name:
                colors.append(ColorInfo(name, img.get("src")))
        return colors

    def get_images(self) -> list[str]:
        images = []
        main = self.doc.select_one(_MAIN_IMAGE)
        if main is not None:
            hires = main.get("data-old-hires") or main.get("src")
            if hires:
                images.append(hires)
            dynamic = parse_json(main.get("data-a-dynamic-image"))
            if isinstance(dynamic, dict):
                images.extend(dynamic.keys())
        for img in self.doc.select(_THUMBNAILS):
            src = img.get("src")
            if not src:
                continue
            images.append(_RE_SIZE_TOKEN.sub("._UL1500_.", src, count=1))
            images.append(src)
        return images

    def get_in_stock(self) -> bool:
        signals = StockSignals(
            text=self.doc.text("#availability"),
            add_to_cart_enabled=self.doc.control_enabled("#add-to-cart-button"),
        )
        return infer_stock(self.get_sizes(), signals, default=False)

    def get_description(self) -> str | None:
        description = self.doc.text("#productDescription")
        if description:
            return description
        bullets = self.doc.texts("#feature-bullets ul li span.a-list-item")
        return " ".join(bullets) or None

    async def scrape(self) -> ScrapedProduct:
        return assemble(self)
