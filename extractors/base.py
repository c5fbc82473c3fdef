"""
Extraction contract shared by every site extractor.

An extractor is any object with the seven capability methods of
:class:`ProductExtractor` plus an async ``scrape()``.  Extractors do not
inherit from each other; they share behavior through composition:

  - :class:`Document` wraps the rendered HTML (BeautifulSoup + soupsieve
    selectors) and offers first-match text/attribute reads, meta lookups,
    URL resolution and lenient JSON parsing of embedded scripts.
  - :func:`assemble` is the default orchestration: it calls each
    capability, deduplicates, resolves image URLs, substitutes the
    placeholder image and fills in a missing stock flag.
  - The ``schema_*`` helpers read schema.org ``Product`` JSON-LD.

Capability methods are synchronous reads of the already-rendered DOM, so
static extractors are deterministic for a given HTML input.  Extractors
that must drive the live page override ``scrape()`` and pass their
interactive results to :func:`assemble` as overrides.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Iterable, Protocol, TypeVar
from urllib.parse import urljoin

import json5
from bs4 import BeautifulSoup, Tag
from playwright.async_api import Page

from config.settings import PLACEHOLDER_IMAGE, UNTITLED_PRODUCT
from errors import ExtractionError
from models import ColorInfo, PriceInfo, ScrapedProduct, SizeInfo

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RE_WS = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------


class ProductExtractor(Protocol):
    """Capability set every site extractor implements."""

    url: str
    requires_browser: bool

    def get_name(self) -> str | None: ...

    def get_price(self) -> PriceInfo | None: ...

    def get_sizes(self) -> list[SizeInfo]: ...

    def get_colors(self) -> list[ColorInfo]: ...

    def get_images(self) -> list[str]: ...

    def get_in_stock(self) -> bool | None: ...

    def get_description(self) -> str | None: ...

    async def scrape(self) -> ScrapedProduct: ...


# Registry values: called with (rendered_html, url, page_or_None).
ExtractorFactory = Callable[[str, str, "Page | None"], ProductExtractor]


# ---------------------------------------------------------------------------
# Small pure helpers
# ---------------------------------------------------------------------------


def clean_text(value: str | None) -> str:
    """Collapse runs of whitespace and strip."""
    if not value:
        return ""
    return _RE_WS.sub(" ", value).strip()


def element_text(el: Tag | None) -> str:
    if el is None:
        return ""
    return clean_text(el.get_text(" "))


def dedupe(items: Iterable[T], key: Callable[[T], Any] | None = None) -> list[T]:
    """Drop repeats (by *key*), keeping first occurrence order."""
    seen: set[Any] = set()
    out: list[T] = []
    for item in items:
        k = key(item) if key else item
        if k in seen:
            continue
        seen.add(k)
        out.append(item)
    return out


def resolve_url(src: str | None, base_url: str) -> str:
    """Absolute URL for *src*; protocol-relative URLs get ``https:``."""
    if not src:
        return ""
    src = src.strip()
    if src.startswith("//"):
        return "https:" + src
    if src.startswith("data:"):
        return src
    try:
        return urljoin(base_url, src)
    except ValueError:
        logger.warning("Failed to resolve URL %r against %s", src, base_url)
        return src


def srcset_entries(srcset: str | None) -> list[tuple[str, int]]:
    """Split a ``srcset`` into ``(url, width)`` pairs (width 0 if unknown)."""
    if not srcset:
        return []
    entries = []
    for part in srcset.split(","):
        bits = part.strip().split()
        if not bits:
            continue
        width = 0
        if len(bits) > 1 and bits[1].endswith("w") and bits[1][:-1].isdigit():
            width = int(bits[1][:-1])
        entries.append((bits[0], width))
    return entries


def last_srcset_url(srcset: str | None) -> str | None:
    entries = srcset_entries(srcset)
    return entries[-1][0] if entries else None


def widest_srcset_url(srcset: str | None) -> str | None:
    entries = srcset_entries(srcset)
    if not entries:
        return None
    return max(entries, key=lambda e: e[1])[0]


def parse_json(text: str | None) -> Any:
    """Lenient JSON (json5) parse; ``None`` on anything unparseable."""
    if not text or not text.strip():
        return None
    try:
        return json5.loads(text)
    except ValueError as exc:
        logger.debug("Embedded JSON did not parse: %s", exc)
        return None


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


class Document:
    """Rendered HTML of one product page plus the URL it came from."""

    def __init__(self, html: str, url: str) -> None:
        self.html = html or ""
        self.url = url
        self.soup = BeautifulSoup(self.html, "lxml")

    def select(self, css: str, root: Tag | None = None) -> list[Tag]:
        return (root or self.soup).select(css)

    def select_one(self, css: str, root: Tag | None = None) -> Tag | None:
        return (root or self.soup).select_one(css)

    def text(self, css: str, root: Tag | None = None) -> str:
        """Whitespace-collapsed text of the first match, ``""`` if none."""
        return element_text(self.select_one(css, root))

    def texts(self, css: str, root: Tag | None = None) -> list[str]:
        return [t for t in (element_text(el) for el in self.select(css, root)) if t]

    def attr(self, css: str, name: str, root: Tag | None = None) -> str | None:
        el = self.select_one(css, root)
        if el is None:
            return None
        value = el.get(name)
        if isinstance(value, list):
            value = " ".join(value)
        return value.strip() if isinstance(value, str) and value.strip() else None

    def meta(self, *keys: str) -> str | None:
        """``content`` of the first ``<meta>`` whose property/name/itemprop matches."""
        for key in keys:
            for attr_name in ("property", "name", "itemprop"):
                value = self.attr(f'meta[{attr_name}="{key}"]', "content")
                if value:
                    return value
        return None

    def resolve_url(self, src: str | None) -> str:
        return resolve_url(src, self.url)

    def json_from(self, css: str) -> Any:
        """Parse the text of the first script matching *css*."""
        el = self.select_one(css)
        if el is None:
            return None
        return parse_json(el.string or el.get_text())

    def visible_text(self) -> str:
        body = self.soup.body or self.soup
        return clean_text(body.get_text(" "))

    def exists(self, css: str) -> bool:
        return self.select_one(css) is not None

    def control_enabled(self, css: str) -> bool | None:
        """``None`` if no control matches, else whether it is enabled."""
        el = self.select_one(css)
        if el is None:
            return None
        return not is_disabled(el)


def is_disabled(el: Tag) -> bool:
    return el.has_attr("disabled") or el.get("aria-disabled") == "true"


# ---------------------------------------------------------------------------
# schema.org Product helpers
# ---------------------------------------------------------------------------


def _is_product_node(node: Any) -> bool:
    if not isinstance(node, dict):
        return False
    kind = node.get("@type")
    kinds = kind if isinstance(kind, list) else [kind]
    return any(k in ("Product", "ProductGroup") for k in kinds)


def find_product_node(data: Any) -> dict[str, Any] | None:
    """Locate a Product node in parsed JSON-LD (dict, list or ``@graph``)."""
    if _is_product_node(data):
        return data
    if isinstance(data, dict) and isinstance(data.get("@graph"), list):
        return find_product_node(data["@graph"])
    if isinstance(data, list):
        for node in data:
            found = find_product_node(node)
            if found:
                return found
    return None


def find_product_schema(doc: Document) -> dict[str, Any] | None:
    for script in doc.select('script[type="application/ld+json"]'):
        node = find_product_node(parse_json(script.string or script.get_text()))
        if node:
            return node
    return None


def schema_offers(product: dict[str, Any] | None) -> list[dict[str, Any]]:
    if not product:
        return []
    offers = product.get("offers")
    if isinstance(offers, dict):
        nested = offers.get("offers")
        if isinstance(nested, list) and nested:
            return [o for o in nested if isinstance(o, dict)]
        return [offers]
    if isinstance(offers, list):
        return [o for o in offers if isinstance(o, dict)]
    return []


def schema_images(product: dict[str, Any] | None) -> list[str]:
    if not product:
        return []
    raw = product.get("image")
    items = raw if isinstance(raw, list) else [raw]
    urls = []
    for item in items:
        if isinstance(item, str) and item:
            urls.append(item)
        elif isinstance(item, dict):
            url = item.get("url") or item.get("contentUrl")
            if isinstance(url, str) and url:
                urls.append(url)
    return urls


def schema_text(product: dict[str, Any] | None, key: str) -> str | None:
    if not product:
        return None
    value = product.get(key)
    if isinstance(value, dict):
        value = value.get("name")
    return clean_text(value) if isinstance(value, str) and value.strip() else None


# ---------------------------------------------------------------------------
# Default orchestration
# ---------------------------------------------------------------------------

_MISSING = object()


def assemble(
    extractor: ProductExtractor,
    *,
    require_product: bool = True,
    **overrides: Any,
) -> ScrapedProduct:
    """Build a :class:`ScrapedProduct` from an extractor's capabilities.

    Any of ``name``, ``price``, ``sizes``, ``colors``, ``images``,
    ``in_stock`` or ``description`` passed as a keyword replaces the
    corresponding capability call.  With *require_product*, a page that
    yields neither a name nor a price raises :class:`ExtractionError`.
    """

    def pick(key: str, getter: Callable[[], Any]) -> Any:
        value = overrides.get(key, _MISSING)
        return getter() if value is _MISSING else value

    name = clean_text(pick("name", extractor.get_name))
    price: PriceInfo | None = pick("price", extractor.get_price)
    if require_product and not name and price is None:
        raise ExtractionError("No product name or price found on page")

    sizes = dedupe(
        (s for s in pick("sizes", extractor.get_sizes) if s.name),
        key=lambda s: s.name,
    )
    colors = dedupe(
        (c for c in pick("colors", extractor.get_colors) if c.name),
        key=lambda c: c.name,
    )
    colors = [
        ColorInfo(c.name, resolve_url(c.swatch_url, extractor.url) or None)
        for c in colors
    ]
    images = dedupe(
        url for url in (resolve_url(src, extractor.url) for src in pick("images", extractor.get_images)) if url
    )

    in_stock = pick("in_stock", extractor.get_in_stock)
    if in_stock is None:
        in_stock = bool(price and price.amount_minor_units > 0)

    description = clean_text(pick("description", extractor.get_description)) or None

    return ScrapedProduct(
        name=name or UNTITLED_PRODUCT,
        price_info=price,
        available_sizes=sizes,
        available_colors=colors,
        images=images or [PLACEHOLDER_IMAGE],
        in_stock=bool(in_stock),
        description=description,
    )
