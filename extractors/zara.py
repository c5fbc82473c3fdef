"""
Extractor for Zara product pages.

Zara renders everything client-side and only lists sizes inside a modal
that opens from the "Add" / size button, so this extractor needs the live
page:

  1. Read name, price, colors and images from the rendered DOM.
  2. Open the size selector, wait for the size list, read it, close the
     modal again.
  3. If the size button does not exist the article is one-size: stock
     then follows the add-to-cart button.

Stock is the availability of any size.
"""

from __future__ import annotations

import logging

from playwright.async_api import Page

import pricing
from config.settings import ONE_SIZE
from handlers.interaction import Click, WaitFor, is_enabled, run_actions
from models import ColorInfo, PriceInfo, ScrapedProduct, SizeInfo
from stock import any_size_in_stock
from .base import Document, assemble, last_srcset_url

logger = logging.getLogger(__name__)

_NAME = "h1.product-detail-card-info__title span.product-detail-card-info__name"
_PRICE = 'span[data-qa-qualifier="price-amount-current"] span.money-amount__main'
_COLOR_BUTTONS = "ul.product-detail-color-selector__colors li.product-detail-color-item button"
_MEDIA_SOURCES = 'picture[data-qa-qualifier="media-image"] source[srcset]'
_MEDIA_IMAGES = 'picture[data-qa-qualifier="media-image"] img[src]'

_OPEN_SIZES = 'button[data-qa-action="open-size-selector"]'
_SIZE_ITEM = ".product-detail-size-selector__size-list-item"
_SIZE_LABEL = ".product-size-info__main-label"
_SIZE_DISABLED_CLASS = "product-detail-size-selector__size-list-item--disabled"
_CLOSE_MODAL = ".product-detail-modal__close button"
_ADD_TO_CART = 'button[data-qa-action="add-to-cart"]'

_SIZE_LIST_TIMEOUT_MS = 7_000
_CLOSE_TIMEOUT_MS = 3_000


def parse_sizes(doc: Document) -> list[SizeInfo]:
    sizes = []
    for item in doc.select(_SIZE_ITEM):
        name = doc.text(_SIZE_LABEL, root=item)
        if not name:
            continue
        disabled = (
            item.get("aria-disabled") == "true"
            or _SIZE_DISABLED_CLASS in (item.get("class") or [])
        )
        sizes.append(SizeInfo(name, not disabled))
    return sizes


class ZaraExtractor:
    requires_browser = True
    slug = "zara"

    def __init__(self, html: str, url: str, page: Page | None = None) -> None:
        self.url = url
        self.page = page
        self.doc = Document(html, url)

    def get_name(self) -> str | None:
        return self.doc.text(_NAME) or None

    def get_price(self) -> PriceInfo | None:
        return pricing.parse(self.doc.text(_PRICE))

    def get_sizes(self) -> list[SizeInfo]:
        # Only populated when the size modal was open at render time.
        return parse_sizes(self.doc)

    def get_colors(self) -> list[ColorInfo]:
        colors = []
        for button in self.doc.select(_COLOR_BUTTONS):
            name = self.doc.text("span.screen-reader-text", root=button)
            if name:
                swatch = self.doc.attr("img.product-detail-color-selector__color-image", "src", root=button)
                colors.append(ColorInfo(name, swatch))
        return colors

    def get_images(self) -> list[str]:
        images = [last_srcset_url(el.get("srcset")) for el in self.doc.select(_MEDIA_SOURCES)]
        images = [src for src in images if src]
        if not images:
            images = [el["src"] for el in self.doc.select(_MEDIA_IMAGES)]
        return images

    def get_in_stock(self) -> bool | None:
        sizes = self.get_sizes()
        if sizes:
            return any_size_in_stock(sizes)
        add = self.doc.select_one(_ADD_TO_CART)
        return add is not None and not self.doc.exists('div[class*="out-of-stock"]')

    def get_description(self) -> str | None:
        return self.doc.meta("og:description") or self.doc.meta("description")

    async def _discover_sizes(self) -> list[SizeInfo]:
        result = await run_actions(self.page, [
            Click(_OPEN_SIZES),
            WaitFor(_SIZE_ITEM, timeout_ms=_SIZE_LIST_TIMEOUT_MS),
        ])
        if result.missing:
            in_stock = bool(await is_enabled(self.page, _ADD_TO_CART))
            logger.info("[%s] No size selector, assuming %s (in_stock=%s)", self.slug, ONE_SIZE, in_stock)
            return [SizeInfo(ONE_SIZE, in_stock)]
        result.raise_for_timeout()

        sizes = parse_sizes(Document(await self.page.content(), self.url))
        logger.info("[%s] Found %d sizes", self.slug, len(sizes))

        closed = await run_actions(self.page, [
            Click(_CLOSE_MODAL, timeout_ms=_CLOSE_TIMEOUT_MS),
            WaitFor(_CLOSE_MODAL, timeout_ms=_CLOSE_TIMEOUT_MS, state="hidden"),
        ])
        if not closed.ok:
            logger.debug("[%s] Size modal did not close cleanly", self.slug)
        return sizes

    async def scrape(self) -> ScrapedProduct:
        if self.page is None:
            return assemble(self)
        sizes = await self._discover_sizes()
        return assemble(self, sizes=sizes, in_stock=any_size_in_stock(sizes))
