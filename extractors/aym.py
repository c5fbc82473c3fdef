"""
Extractor for AYM Studio (Shopify storefront).

Shopify themes embed the full product object as JSON; prices in it are
already integer minor units.  The theme's swatch markup is the fallback
when the JSON is missing or malformed.
"""

from __future__ import annotations

import logging
from typing import Any

from bs4 import BeautifulSoup
from playwright.async_api import Page

import pricing
from models import ColorInfo, PriceInfo, ScrapedProduct, SizeInfo
from stock import any_size_in_stock
from .base import Document, assemble, clean_text, last_srcset_url

logger = logging.getLogger(__name__)

_PRODUCT_JSON = 'script[type="application/json"][data-product-json], script#ProductJson-product-template'
_GALLERY_IMAGES = "scroll-carousel div.product-gallery__media img"
_DEFAULT_CURRENCY = "GBP"


class AymExtractor:
    requires_browser = False
    slug = "aym"

    def __init__(self, html: str, url: str, page: Page | None = None) -> None:
        self.url = url
        self.page = page
        self.doc = Document(html, url)
        self.product = self._parse_product_json()

    def _parse_product_json(self) -> dict[str, Any] | None:
        data = self.doc.json_from(_PRODUCT_JSON)
        if isinstance(data, dict):
            # Some themes wrap it as {"product": {...}}.
            return data.get("product") if isinstance(data.get("product"), dict) else data
        return None

    def _variants(self) -> list[dict[str, Any]]:
        variants = (self.product or {}).get("variants")
        return [v for v in variants if isinstance(v, dict)] if isinstance(variants, list) else []

    def _fieldset(self, legend_prefix: str):
        for fieldset in self.doc.select("fieldset"):
            if legend_prefix.lower() in self.doc.text("legend", root=fieldset).lower():
                return fieldset
        return None

    def get_name(self) -> str | None:
        title = (self.product or {}).get("title")
        if isinstance(title, str) and title.strip():
            return title
        return self.doc.text("h1.product-title") or self.doc.text("h1") or None

    def get_price(self) -> PriceInfo | None:
        currency = self.doc.meta("og:price:currency") or _DEFAULT_CURRENCY
        if self.product and self._variants():
            price = pricing.from_amount(self.product.get("price"), currency, minor_units=True)
            if price:
                return price
        return pricing.parse(self.doc.text("price-list sale-price"), default_currency=currency)

    def get_sizes(self) -> list[SizeInfo]:
        variants = self._variants()
        if variants:
            sizes = []
            for variant in variants:
                name = variant.get("option1") or variant.get("title")
                if isinstance(name, str) and name.strip():
                    sizes.append(SizeInfo(name.strip(), bool(variant.get("available"))))
            return sizes

        fieldset = self._fieldset("Size")
        if fieldset is None:
            return []
        sizes = []
        for label in self.doc.select("label.block-swatch", root=fieldset):
            name = self.doc.text("span", root=label)
            if name:
                sizes.append(SizeInfo(name, "is-disabled" not in (label.get("class") or [])))
        return sizes

    def get_colors(self) -> list[ColorInfo]:
        for option in (self.product or {}).get("options_with_values") or []:
            if not isinstance(option, dict):
                continue
            if str(option.get("name", "")).lower() in ("color", "colour"):
                names = [v if isinstance(v, str) else (v or {}).get("title") for v in option.get("values") or []]
                return [ColorInfo(n) for n in names if isinstance(n, str) and n.strip()]

        fieldset = self._fieldset("Colour")
        if fieldset is None:
            return []
        return [ColorInfo(name) for name in self.doc.texts("label.color-swatch span", root=fieldset)]

    def get_images(self) -> list[str]:
        media = (self.product or {}).get("media")
        if isinstance(media, list) and media:
            return [
                m["src"] for m in media
                if isinstance(m, dict) and m.get("media_type") == "image" and m.get("src")
            ]
        images = []
        for img in self.doc.select(_GALLERY_IMAGES):
            src = last_srcset_url(img.get("srcset")) or img.get("src")
            if src:
                images.append(src)
        return images

    def get_in_stock(self) -> bool:
        if self.product and isinstance(self.product.get("available"), bool):
            return self.product["available"]
        variants = self._variants()
        if variants:
            return any(bool(v.get("available")) for v in variants)
        return any_size_in_stock(self.get_sizes())

    def get_description(self) -> str | None:
        html = (self.product or {}).get("description")
        if isinstance(html, str) and html.strip():
            return clean_text(BeautifulSoup(html, "lxml").get_text(" "))
        return self.doc.meta("og:description") or self.doc.meta("description")

    async def scrape(self) -> ScrapedProduct:
        return assemble(self)
