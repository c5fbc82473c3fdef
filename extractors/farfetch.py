"""
Extractor for Farfetch.

Sizes sit in a custom dropdown that only renders its options after a
click.  When the dropdown trigger is absent the product has a single
fixed size, shown as plain text in the selector box.
"""

from __future__ import annotations

import logging
import re

from playwright.async_api import Page

import pricing
from config.settings import ONE_SIZE
from handlers.interaction import Click, WaitFor, exists, run_actions
from models import ColorInfo, PriceInfo, ScrapedProduct, SizeInfo
from stock import any_size_in_stock
from .base import Document, assemble, element_text, is_disabled

logger = logging.getLogger(__name__)

_BRAND = 'h1[class*="ltr-"] a[class*="ltr-"]'
_SHORT_DESCRIPTION = 'p[data-testid="product-short-description"]'
_PRICE = 'p[data-component="PriceLarge"]'
_COLOUR = 'p[data-testid="data-product-colour"]'
_GALLERY = 'div[class*="ltr-1kklpjs"] button[class*="ltr-"] img'
_ADD_TO_BAG = '[data-testid="addToBag"]'

_SIZE_SELECTOR = 'div[data-testid="ScaledSizeSelector"]'
_SIZE_TRIGGER = f'{_SIZE_SELECTOR} div[class*="ltr-"]'
_SIZE_OPTIONS = 'ul[role="listbox"] li button'
_SIZE_LIST_TIMEOUT_MS = 7_000

# "..._480.jpg" -> "..._1000.jpg"
_RE_IMAGE_WIDTH = re.compile(r"_\d+\.(jpg|jpeg|png|webp)$", re.IGNORECASE)


def parse_sizes(doc: Document) -> list[SizeInfo]:
    sizes = []
    for button in doc.select(_SIZE_OPTIONS):
        name = element_text(button)
        if not name:
            continue
        li = button.find_parent("li")
        unavailable = is_disabled(button) or (li is not None and li.get("aria-disabled") == "true")
        sizes.append(SizeInfo(name, not unavailable))
    return sizes


class FarfetchExtractor:
    requires_browser = True
    slug = "farfetch"

    def __init__(self, html: str, url: str, page: Page | None = None) -> None:
        self.url = url
        self.page = page
        self.doc = Document(html, url)

    def get_name(self) -> str | None:
        brand = self.doc.text(_BRAND)
        name = self.doc.text(_SHORT_DESCRIPTION)
        if brand and name:
            return f"{brand} - {name}"
        return name or brand or None

    def get_price(self) -> PriceInfo | None:
        return pricing.parse(self.doc.text(_PRICE))

    def get_sizes(self) -> list[SizeInfo]:
        return parse_sizes(self.doc)

    def get_colors(self) -> list[ColorInfo]:
        colour = self.doc.text(_COLOUR)
        return [ColorInfo(colour)] if colour else []

    def get_images(self) -> list[str]:
        images = []
        for img in self.doc.select(_GALLERY):
            src = img.get("src")
            if not src:
                continue
            hires = _RE_IMAGE_WIDTH.sub(r"_1000.\1", src)
            if hires != src:
                images.append(hires)
            images.append(src)
        return images

    def get_in_stock(self) -> bool:
        if not self.doc.exists(_ADD_TO_BAG):
            return False
        sizes = self.get_sizes()
        return not sizes or any_size_in_stock(sizes)

    def get_description(self) -> str | None:
        return (
            self.doc.meta("og:description")
            or self.doc.meta("description")
            or self.doc.text('[data-testid="product-description"]')
            or None
        )

    async def _discover_sizes(self) -> list[SizeInfo]:
        result = await run_actions(self.page, [
            Click(_SIZE_TRIGGER),
            WaitFor(_SIZE_OPTIONS, timeout_ms=_SIZE_LIST_TIMEOUT_MS),
        ])
        if result.missing:
            in_stock = await exists(self.page, _ADD_TO_BAG)
            selected = self.doc.text(_SIZE_SELECTOR)
            name = ONE_SIZE if not selected or "one size" in selected.lower() else selected
            logger.info("[%s] No size dropdown, using %r (in_stock=%s)", self.slug, name, in_stock)
            return [SizeInfo(name, in_stock)]
        result.raise_for_timeout()

        sizes = parse_sizes(Document(await self.page.content(), self.url))
        logger.info("[%s] Found %d sizes", self.slug, len(sizes))
        return sizes

    async def scrape(self) -> ScrapedProduct:
        if self.page is None:
            return assemble(self)
        sizes = await self._discover_sizes()
        in_stock = self.doc.exists(_ADD_TO_BAG) and any_size_in_stock(sizes)
        return assemble(self, sizes=sizes, in_stock=in_stock)
