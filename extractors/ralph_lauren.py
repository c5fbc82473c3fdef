"""
Extractor for Ralph Lauren.

The hydrated page stores a schema.org ``ProductGroup`` as JSON inside the
``schema-productgroup`` attribute of ``div#pdp-schema-objects``.  Each
field is read from that group first and from the DOM when the group is
missing, malformed or lacks the field.
"""

from __future__ import annotations

import logging
from typing import Any

from playwright.async_api import Page

import pricing
from models import ColorInfo, PriceInfo, ScrapedProduct, SizeInfo
from stock import StockSignals, availability_from_schema, infer_stock
from .base import (
    Document,
    assemble,
    dedupe,
    last_srcset_url,
    parse_json,
    schema_images,
    schema_offers,
    schema_text,
)

logger = logging.getLogger(__name__)

_SCHEMA_HOLDER = "div#pdp-schema-objects"
_SIZE_SWATCHES = "ul.size-swatches li.variations-attribute"
_COLOR_SWATCHES = "ul.color-swatches li.variations-attribute"
_GALLERY_SLIDES = "div.pdp-media-container div.swiper-wrapper div.swiper-slide"
_ADD_TO_BAG = 'button[data-zta="addtobagCTA"]'


def _variant_property(variant: dict[str, Any], name: str) -> str | None:
    for prop in variant.get("additionalProperty") or []:
        if isinstance(prop, dict) and prop.get("name") == name and prop.get("value"):
            return str(prop["value"]).strip()
    value = variant.get(name)
    return value.strip() if isinstance(value, str) and value.strip() else None


def _first_attr(elements, name: str) -> str | None:
    for el in elements:
        if el is not None and el.get(name):
            return el.get(name)
    return None


class RalphLaurenExtractor:
    requires_browser = True
    slug = "ralph_lauren"

    def __init__(self, html: str, url: str, page: Page | None = None) -> None:
        self.url = url
        self.page = page
        self.doc = Document(html, url)
        self.group = self._parse_group()

    def _parse_group(self) -> dict[str, Any] | None:
        data = parse_json(self.doc.attr(_SCHEMA_HOLDER, "schema-productgroup"))
        if not isinstance(data, dict):
            logger.info("[%s] No usable schema-productgroup, reading DOM", self.slug)
            return None
        group = data.get("productGroup")
        return group if isinstance(group, dict) else data

    def _variants(self) -> list[dict[str, Any]]:
        variants = (self.group or {}).get("hasVariant")
        return [v for v in variants if isinstance(v, dict)] if isinstance(variants, list) else []

    def _schema_availability(self) -> bool | None:
        offers = schema_offers(self.group)
        return availability_from_schema(offers[0].get("availability")) if offers else None

    def get_name(self) -> str | None:
        return schema_text(self.group, "name") or self.doc.text("h1.product-name") or None

    def get_price(self) -> PriceInfo | None:
        offers = schema_offers(self.group)
        if offers and offers[0].get("priceCurrency"):
            price = pricing.from_amount(offers[0].get("price"), offers[0]["priceCurrency"])
            if price:
                return price
        return pricing.parse(self.doc.text("span.price-sales"))

    def get_sizes(self) -> list[SizeInfo]:
        names = dedupe(n for n in (_variant_property(v, "size") for v in self._variants()) if n)
        if names:
            # Variants carry no per-size stock; the group offer applies to all.
            in_stock = self._schema_availability()
            return [SizeInfo(name, in_stock is not False) for name in names]

        sizes = []
        for li in self.doc.select(_SIZE_SWATCHES):
            name = self.doc.text("bdi", root=li)
            if not name:
                continue
            radio = li.select_one("input")
            unavailable = (
                li.select_one("div.nis-tooltip") is not None
                or "unavailable" in (li.get("class") or [])
                or (radio is not None and radio.has_attr("disabled"))
            )
            sizes.append(SizeInfo(name, not unavailable))
        return sizes

    def get_colors(self) -> list[ColorInfo]:
        colors = []
        for variant in self._variants():
            name = _variant_property(variant, "color")
            if not name:
                continue
            image = variant.get("image")
            if isinstance(image, dict):
                image = image.get("url")
            colors.append(ColorInfo(name, image if isinstance(image, str) else None))
        if colors:
            return colors

        for li in self.doc.select(_COLOR_SWATCHES):
            link = li.select_one("a.swatch")
            if link is None:
                continue
            name = (link.get("data-color") or link.get("title") or "").strip()
            if name:
                colors.append(ColorInfo(name, self.doc.attr("img", "src", root=link)))
        return colors

    def get_images(self) -> list[str]:
        images = schema_images(self.group)
        if images:
            return images
        for slide in self.doc.select(_GALLERY_SLIDES):
            img = slide.select_one("img")
            source = slide.select_one("source")
            src = (img and img.get("data-img")) or (source and source.get("data-img"))
            if not src:
                srcset = _first_attr((img, source), "srcset") or _first_attr((img, source), "data-srcset")
                src = last_srcset_url(srcset) or (img and (img.get("src") or img.get("data-src")))
            if src:
                images.append(src)
        return images

    def get_in_stock(self) -> bool:
        structured = self._schema_availability()
        if structured is not None:
            return structured
        signals = StockSignals(add_to_cart_enabled=self.doc.exists(_ADD_TO_BAG) or None)
        return infer_stock(self.get_sizes(), signals, default=False)

    def get_description(self) -> str | None:
        return (
            schema_text(self.group, "description")
            or self.doc.meta("og:description")
            or self.doc.meta("description")
            or self.doc.text(".pdp-description-content")
            or None
        )

    async def scrape(self) -> ScrapedProduct:
        product = assemble(self)
        logger.info("[%s] Scraped %s (schema=%s)", self.slug, product.name, self.group is not None)
        return product
