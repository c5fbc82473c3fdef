"""
Extractor for J.Crew.

Sizes are either a plain button list or, for long size runs, a dropdown
whose options only exist once it has been opened.  Colors are
client-rendered, so the page goes through the browser either way.
"""

from __future__ import annotations

import logging

from playwright.async_api import Page

import pricing
from config.settings import ONE_SIZE
from handlers.interaction import Click, WaitFor, exists, is_enabled, run_actions
from models import ColorInfo, PriceInfo, ScrapedProduct, SizeInfo
from stock import any_size_in_stock
from .base import Document, assemble, element_text, is_disabled, widest_srcset_url

logger = logging.getLogger(__name__)

_NAME = 'h1[data-qaid="pdpProductName"]'
_PRICE_SALE = 'div[data-qaid="pdpProductPrice"] span[data-qaid="pdpProductPriceSale"]'
_PRICE_REGULAR = 'div[data-qaid="pdpProductPrice"] span[data-qaid="pdpProductPriceRegular"]'
_COLOR_ITEMS = (
    'div[data-qaid="pdpProductPriceColorsGroupListWrapper-0"] '
    'div[data-qaid^="pdpProductPriceColorsGroupListItem-"]'
)
_GALLERY = 'div#productRevampedScroll figure img[class*="unscaled-image"]'
_ADD_TO_BAG = 'button[data-qaid="pdpAddToBagButton"]'

_SIZE_BUTTONS = '[class*="ProductSizes__list"] button'
_SIZE_DROPDOWN = '[class*="ProductSizesDropdown__select-button"]'
_SIZE_DROPDOWN_OPTIONS = 'ul[role="listbox"] li button'


def _buttons_as_sizes(doc: Document, css: str) -> list[SizeInfo]:
    sizes = []
    for button in doc.select(css):
        name = element_text(button)
        if name:
            sizes.append(SizeInfo(name, not is_disabled(button)))
    return sizes


class JCrewExtractor:
    requires_browser = True
    slug = "jcrew"

    def __init__(self, html: str, url: str, page: Page | None = None) -> None:
        self.url = url
        self.page = page
        self.doc = Document(html, url)

    def get_name(self) -> str | None:
        return self.doc.text(_NAME) or None

    def get_price(self) -> PriceInfo | None:
        return pricing.parse(self.doc.text(_PRICE_SALE) or self.doc.text(_PRICE_REGULAR))

    def get_sizes(self) -> list[SizeInfo]:
        return _buttons_as_sizes(self.doc, _SIZE_BUTTONS) or _buttons_as_sizes(self.doc, _SIZE_DROPDOWN_OPTIONS)

    def get_colors(self) -> list[ColorInfo]:
        colors = []
        for el in self.doc.select(_COLOR_ITEMS):
            name = (el.get("data-name") or "").strip()
            if name:
                colors.append(ColorInfo(name, self.doc.attr("img", "src", root=el)))
        return colors

    def get_images(self) -> list[str]:
        images = []
        for img in self.doc.select(_GALLERY):
            src = widest_srcset_url(img.get("srcset")) or img.get("src")
            if src:
                images.append(src)
        return images

    def get_in_stock(self) -> bool:
        if not self.doc.control_enabled(_ADD_TO_BAG):
            return False
        sizes = self.get_sizes()
        return not sizes or any_size_in_stock(sizes)

    def get_description(self) -> str | None:
        return (
            self.doc.meta("og:description")
            or self.doc.meta("description")
            or self.doc.text('[data-qaid="pdpProductInfoDetails"]')
            or None
        )

    async def _discover_sizes(self) -> list[SizeInfo]:
        if await exists(self.page, _SIZE_DROPDOWN):
            result = await run_actions(self.page, [
                Click(_SIZE_DROPDOWN),
                WaitFor(_SIZE_DROPDOWN_OPTIONS),
            ])
            result.raise_for_timeout()
            if result.ok:
                doc = Document(await self.page.content(), self.url)
                return _buttons_as_sizes(doc, _SIZE_DROPDOWN_OPTIONS)
        else:
            sizes = _buttons_as_sizes(self.doc, _SIZE_BUTTONS)
            if sizes:
                return sizes

        in_stock = bool(await is_enabled(self.page, _ADD_TO_BAG))
        logger.info("[%s] Size selector not found, assuming %s (in_stock=%s)", self.slug, ONE_SIZE, in_stock)
        return [SizeInfo(ONE_SIZE, in_stock)]

    async def scrape(self) -> ScrapedProduct:
        if self.page is None:
            return assemble(self)
        sizes = await self._discover_sizes()
        in_stock = bool(self.doc.control_enabled(_ADD_TO_BAG)) and any_size_in_stock(sizes)
        logger.info("[%s] Found %d sizes", self.slug, len(sizes))
        return assemble(self, sizes=sizes, in_stock=in_stock)
