"""
Extractor for The Fold London (BigCommerce storefront).

BigCommerce renders product options either as rectangle/radio swatches or
as a ``<select>``; both are tried, keyed on the option's title.
"""

from __future__ import annotations

import logging
import re

from bs4 import Tag
from playwright.async_api import Page

import pricing
from models import ColorInfo, PriceInfo, ScrapedProduct, SizeInfo
from stock import StockSignals, availability_from_schema, any_size_in_stock, infer_stock
from .base import Document, assemble, element_text, is_disabled, last_srcset_url

logger = logging.getLogger(__name__)

_PRICE_CANDIDATES = (
    "span[data-product-price-with-tax]",
    ".price--non-sale",
    ".price--main .price",
)
_SWATCH_GROUPS = 'div[data-product-attribute="set-rectangle"], div[data-product-attribute="set-radio"]'
_COLOR_PRODUCTS = "div.color-products-section > ul li.color-product"
_GALLERY = "div.productView-img-container div.slick-track div.productView-img img"

_RE_TRAILING_PARENS = re.compile(r"\s*\(.*\)\s*$")
_RE_CSS_URL = re.compile(r"""url\(['"]?(.*?)['"]?\)""")


class TheFoldExtractor:
    requires_browser = False
    slug = "the_fold"

    def __init__(self, html: str, url: str, page: Page | None = None) -> None:
        self.url = url
        self.page = page
        self.doc = Document(html, url)

    def _swatch_groups(self, *keywords: str) -> list[Tag]:
        groups = []
        for group in self.doc.select(_SWATCH_GROUPS):
            title = self.doc.text(".form-field-title", root=group).lower()
            if any(k in title for k in keywords):
                groups.append(group)
        return groups

    def get_name(self) -> str | None:
        return self.doc.text("h1.productView-title") or None

    def get_price(self) -> PriceInfo | None:
        for css in _PRICE_CANDIDATES:
            text = self.doc.text(css)
            if text:
                return pricing.parse(text)
        return None

    def get_sizes(self) -> list[SizeInfo]:
        sizes = []
        for group in self._swatch_groups("size"):
            if group.get("data-product-attribute") != "set-rectangle":
                continue
            for wrapper in self.doc.select("div.form-option-wrapper", root=group):
                name = self.doc.text("span.form-option-variant", root=wrapper)
                if not name:
                    continue
                label = wrapper.select_one("label")
                radio = wrapper.select_one("input")
                unavailable = (label is not None and "unavailable" in (label.get("class") or [])) or (
                    radio is not None and is_disabled(radio)
                )
                sizes.append(SizeInfo(name, not unavailable))
        if sizes:
            return sizes

        for select in self.doc.select('select[id*="attribute_select"]'):
            if "size" not in self.doc.text("label", root=select.parent).lower():
                continue
            for option in select.select("option"):
                text = element_text(option)
                if not option.get("value") or "choose" in text.lower():
                    continue
                # "M (Out of stock)" -> "M"
                sizes.append(SizeInfo(_RE_TRAILING_PARENS.sub("", text), "out of stock" not in text.lower()))
        return sizes

    def get_colors(self) -> list[ColorInfo]:
        colors = []
        for li in self.doc.select(_COLOR_PRODUCTS):
            name = (li.get("data-product-name") or "").strip()
            if name:
                img = li.select_one("img")
                colors.append(ColorInfo(name, img and (img.get("src") or img.get("data-src"))))
        if colors:
            return colors

        for group in self._swatch_groups("color", "colour"):
            for label in self.doc.select("label.form-option", root=group):
                variant = label.select_one("span.form-option-variant")
                if variant is None:
                    continue
                name = (variant.get("title") or "").strip() or element_text(variant)
                if not name:
                    continue
                style = self.doc.attr('[style*="background"]', "style", root=label) or ""
                match = _RE_CSS_URL.search(style) if "background-image" in style else None
                colors.append(ColorInfo(name, match.group(1) if match else None))
        return colors

    def get_images(self) -> list[str]:
        images = []
        for img in self.doc.select(_GALLERY):
            src = last_srcset_url(img.get("data-srcset")) or img.get("src") or img.get("data-src")
            if src:
                images.append(src)
        return images

    def get_in_stock(self) -> bool:
        structured = availability_from_schema(self.doc.attr('meta[itemprop="availability"]', "content"))
        if structured is not None:
            return structured
        sizes = self.get_sizes()
        if sizes:
            return any_size_in_stock(sizes)
        if self.doc.exists(".productView-soldOut") or self.doc.exists('input[value*="Out of stock"]'):
            return False
        signals = StockSignals(add_to_cart_enabled=self.doc.exists("#form-action-addToCart") or None)
        return infer_stock([], signals, default=False)

    def get_description(self) -> str | None:
        return (
            self.doc.meta("og:description")
            or self.doc.meta("description")
            or self.doc.text("#tab-description")
            or None
        )

    async def scrape(self) -> ScrapedProduct:
        return assemble(self)
