"""Extractor for THE OUTNET."""

from __future__ import annotations

import logging
import re

from playwright.async_api import Page

import pricing
from models import ColorInfo, PriceInfo, ScrapedProduct, SizeInfo
from stock import StockSignals, any_size_in_stock, infer_stock
from .base import Document, assemble, element_text, is_disabled, last_srcset_url

logger = logging.getLogger(__name__)

_TITLE = "h1.ProductInformation89__designerInfoContainer"
_PRICE = "div.PriceWithSchema11--details span.PriceWithSchema11__value"
_SIZE_OPTIONS = "ul.GridSelect11 li.GridSelect11__optionWrapper"
_COLOUR = "p.ProductDetailsColours89__colourHeading span.ProductDetailsColours89__colourName"
_SLIDES = "ul.ImageCarousel89__track li.ImageCarousel89__slide"

_RE_NOTIFY_ME = re.compile(r"notify me", re.IGNORECASE)
_RE_SIZE_PREFIX = re.compile(r"^size\s+", re.IGNORECASE)


class TheOutnetExtractor:
    requires_browser = False
    slug = "theoutnet"

    def __init__(self, html: str, url: str, page: Page | None = None) -> None:
        self.url = url
        self.page = page
        self.doc = Document(html, url)

    def get_name(self) -> str | None:
        brand = self.doc.text(f"{_TITLE} span.ProductInformation89__designer")
        name = self.doc.text(f"{_TITLE} span.ProductInformation89__name")
        if brand and name:
            return f"{brand} - {name}"
        return name or brand or None

    def get_price(self) -> PriceInfo | None:
        return pricing.parse(self.doc.text(_PRICE))

    def get_sizes(self) -> list[SizeInfo]:
        sizes = []
        for li in self.doc.select(_SIZE_OPTIONS):
            label = li.select_one("label.GridSelect11__optionBox")
            if label is None:
                continue
            text = element_text(label)
            name = _RE_SIZE_PREFIX.sub("", _RE_NOTIFY_ME.sub("", text).strip())
            if not name:
                continue
            radio = li.select_one("input")
            # Sold-out sizes turn into "Notify me" buttons.
            unavailable = (
                "unavailable" in (label.get("aria-label") or "").lower()
                or _RE_NOTIFY_ME.search(text) is not None
                or (radio is not None and is_disabled(radio))
            )
            sizes.append(SizeInfo(name, not unavailable))
        return sizes

    def get_colors(self) -> list[ColorInfo]:
        colour = self.doc.text(_COLOUR)
        return [ColorInfo(colour)] if colour else []

    def get_images(self) -> list[str]:
        images = []
        for slide in self.doc.select(_SLIDES):
            srcset = self.doc.attr("picture source", "srcset", root=slide) or self.doc.attr(
                "picture img", "srcset", root=slide
            )
            src = last_srcset_url(srcset) or self.doc.attr("picture img", "src", root=slide)
            if src:
                images.append(src)
        return images

    def get_in_stock(self) -> bool:
        sizes = self.get_sizes()
        if sizes:
            return any_size_in_stock(sizes)
        signals = StockSignals(
            text=self.doc.visible_text(),
            add_to_cart_enabled=self.doc.control_enabled('button[class*="AddToBag"]'),
        )
        return infer_stock([], signals, default=False)

    def get_description(self) -> str | None:
        return (
            self.doc.meta("og:description")
            or self.doc.meta("description")
            or self.doc.text("div#productInformationAccordion")
            or None
        )

    async def scrape(self) -> ScrapedProduct:
        return assemble(self)
