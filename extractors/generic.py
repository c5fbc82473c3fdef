"""
Generic selector-heuristic extractor.

Used for domains with no dedicated extractor (``scrape_product_from_url``)
and for a few browser-rendered storefronts whose markup follows common
conventions (microdata, Open Graph, ``price`` / ``size`` class names).

Never raises for a syntactically valid document: every capability falls
back to an empty value and :func:`assemble` fills in the placeholders.
"""

from __future__ import annotations

import logging
import re

from playwright.async_api import Page

import pricing
from config.settings import DEFAULT_CURRENCY
from models import ColorInfo, PriceInfo, ScrapedProduct, SizeInfo
from stock import StockSignals, availability_from_schema, infer_stock
from .base import (
    Document, assemble, element_text, find_product_schema, schema_offers,
)

logger = logging.getLogger(__name__)

# =====================================================================
# Selector cascades (first selector with any hit wins)
# =====================================================================

_NAME_SELECTORS = ['h1[itemprop="name"]', "h1.product-title", "h1"]

_PRICE_SELECTORS = [
    ".sale-price, .discounted-price, .final-price",
    '[class*="sale"], [class*="discounted"], [class*="final"]',
    ".price",
    '[class*="price"]',
]

_GALLERY_SELECTOR = ".product-image img, .gallery img, .product-gallery img"

_SIZE_SELECTORS = [
    'select[name*="size" i] option',
    'select[id*="size" i] option',
    '[class*="size" i] button[data-value]',
    '[class*="size" i] button[aria-label]',
    '[class*="size" i] input[type="radio"] + label',
    "[data-size]",
    '[class*="swatch" i][data-value*="size" i]',
    'button[class*="size-option" i]',
    'li[data-size], li[class*="size" i] span',
]

_COLOR_SELECTORS = [
    'select[name*="color" i] option',
    'select[name*="colour" i] option',
    'select[id*="color" i] option',
    'select[id*="colour" i] option',
    '[class*="color" i] button[data-value]',
    '[class*="colour" i] button[data-value]',
    '[class*="color" i] input[type="radio"] + label',
    "[data-color]",
    "[data-colour]",
    '[class*="swatch" i][data-value*="color" i]',
    '[class*="variant" i] button[aria-label]',
    'button[class*="color-option" i]',
    'li[data-color], li[class*="color" i] span',
]

_SIZE_VALUE_ATTRS = ("data-value", "data-size", "value", "aria-label")
_COLOR_VALUE_ATTRS = ("data-value", "data-color", "data-colour", "value", "aria-label", "title")

# =====================================================================
# Label filtering
# =====================================================================

_INVALID_SIZE_TEXTS = [
    "select size", "choose size", "pick size", "size guide",
    "size chart", "add to cart", "add to bag", "click to enlarge",
    "view details", "quick view", "buy now", "shop now", "sold out",
    "select", "choose", "customise", "customize", "find your size",
    "size & fit", "details", "delivery", "returns",
]

_INVALID_COLOR_TEXTS = {
    "select color", "choose color", "pick color", "add to cart",
    "add to bag", "click to enlarge", "view details", "quick view",
    "buy now", "shop now", "sold out", "select", "choose",
    "select colour", "choose colour",
}

_SIZE_PATTERNS = [
    re.compile(r"^(xx?[sl]|[sml]|x{1,3}l|one size|free size|os)$", re.IGNORECASE),
    re.compile(r"^\d+(\.\d+)?$"),
    re.compile(r"^\d+\s*-\s*\d+$"),
    re.compile(r"^(UK|US|EU|FR|IT|JP)?\s*\d+(\.\d+)?$", re.IGNORECASE),
    re.compile(r"^\d+[\"']$"),
    re.compile(r"^(XXS|XS|S|M|L|XL|XXL|XXXL|\d+XL)$", re.IGNORECASE),
]

_RE_LETTER_SIZE = re.compile(r"^(XXS|XS|S|M|L|XL|XXL|XXXL|\d+XL)$", re.IGNORECASE)
_RE_NUMERIC = re.compile(r"^[\d.]+$")

_UNAVAILABLE_CLASS = re.compile(r"out-of-stock|sold-out|unavailable|disabled", re.IGNORECASE)


def looks_like_size(text: str) -> bool:
    return any(p.match(text) for p in _SIZE_PATTERNS)


def clean_sizes(raw: list[str]) -> list[str]:
    """Keep labels that look like sizes; drop prompts and button copy."""
    out: list[str] = []
    for text in raw:
        text = text.strip()
        lower = text.lower()
        if not 1 <= len(text) <= 15:
            continue
        if any(bad in lower for bad in _INVALID_SIZE_TEXTS):
            continue
        if text in out or not looks_like_size(text):
            continue
        out.append(text)
    return out


def clean_colors(raw: list[str]) -> list[str]:
    """Keep plausible colour names; drop prompts, numbers and size tokens."""
    out: list[str] = []
    for text in raw:
        text = text.strip()
        if not 2 <= len(text) <= 50:
            continue
        if text.lower() in _INVALID_COLOR_TEXTS:
            continue
        if _RE_NUMERIC.match(text) or _RE_LETTER_SIZE.match(text):
            continue
        if text not in out:
            out.append(text)
    return out


def _option_value(el, attrs: tuple[str, ...]) -> str:
    for attr in attrs:
        value = el.get(attr)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return element_text(el)


def _marked_unavailable(el) -> bool | None:
    """``True`` when the element is marked unavailable, ``None`` when unmarked."""
    if el.has_attr("disabled") or el.get("aria-disabled") == "true":
        return True
    classes = " ".join(el.get("class") or [])
    if _UNAVAILABLE_CLASS.search(classes):
        return True
    return None


class GenericExtractor:
    """Best-effort extraction from common e-commerce markup."""

    requires_browser = False

    def __init__(self, html: str, url: str, page: Page | None = None) -> None:
        self.url = url
        self.page = page
        self.doc = Document(html, url)
        self._schema = find_product_schema(self.doc)
        self._sizes_marked = False

    # -- capabilities ---------------------------------------------------

    def get_name(self) -> str | None:
        for sel in _NAME_SELECTORS:
            text = self.doc.text(sel)
            if text:
                return text
        return self.doc.meta("og:title") or self.doc.text("title") or None

    def price_text(self) -> str | None:
        doc = self.doc
        text = doc.attr('[itemprop="price"]', "content") or doc.text('[itemprop="price"]')
        if text:
            return text
        text = doc.meta("product:price:amount")
        if text:
            return text
        for offer in schema_offers(self._schema):
            if offer.get("price") not in (None, ""):
                return str(offer["price"])
        for sel in _PRICE_SELECTORS:
            text = doc.text(sel)
            if text:
                return text
        return None

    def get_currency(self) -> str:
        meta = self.doc.meta("product:price:currency") or self.doc.attr('[itemprop="priceCurrency"]', "content")
        if not meta:
            for offer in schema_offers(self._schema):
                if offer.get("priceCurrency"):
                    meta = offer["priceCurrency"]
                    break
        return pricing.currency_code(meta, DEFAULT_CURRENCY)

    def get_price(self) -> PriceInfo | None:
        text = self.price_text()
        if not text:
            return None
        return pricing.parse(text, default_currency=self.get_currency())

    def get_sizes(self) -> list[SizeInfo]:
        for sel in _SIZE_SELECTORS:
            elements = self.doc.select(sel)
            labelled = [(_option_value(el, _SIZE_VALUE_ATTRS), el) for el in elements]
            labelled = [(label, el) for label, el in labelled if label]
            if not labelled:
                continue
            keep = set(clean_sizes([label for label, _ in labelled]))
            sizes = []
            for label, el in labelled:
                if label not in keep:
                    continue
                unavailable = _marked_unavailable(el)
                if unavailable is not None:
                    self._sizes_marked = True
                sizes.append(SizeInfo(label, not unavailable))
            return sizes
        return []

    def get_colors(self) -> list[ColorInfo]:
        for sel in _COLOR_SELECTORS:
            raw = [_option_value(el, _COLOR_VALUE_ATTRS) for el in self.doc.select(sel)]
            raw = [r for r in raw if r]
            if raw:
                return [ColorInfo(name) for name in clean_colors(raw)]
        return []

    def get_images(self) -> list[str]:
        doc = self.doc
        images = []
        for img in doc.select('img[itemprop="image"]'):
            src = img.get("src") or img.get("data-src")
            if src:
                images.append(src)
        for meta in doc.select('meta[property="og:image"]'):
            if meta.get("content"):
                images.append(meta["content"])
        for img in doc.select(_GALLERY_SELECTOR):
            src = img.get("src") or img.get("data-src")
            if src:
                images.append(src)
        return images

    def get_in_stock(self) -> bool:
        structured = None
        for offer in schema_offers(self._schema):
            structured = availability_from_schema(offer.get("availability"))
            if structured is not None:
                break
        sizes = self.get_sizes()
        signals = StockSignals(structured=structured, text=self.doc.html)
        return infer_stock(sizes if self._sizes_marked else [], signals, default=True)

    def get_description(self) -> str | None:
        return (
            self.doc.meta("description")
            or self.doc.meta("og:description")
            or self.doc.text('[itemprop="description"]')
            or None
        )

    async def scrape(self) -> ScrapedProduct:
        product = assemble(self, require_product=False)
        logger.info(
            "Generic extraction for %s: name=%r price=%s sizes=%d images=%d",
            self.url, product.name, product.price_info, len(product.available_sizes), len(product.images),
        )
        return product
