"""
Domain router.

Maps a product URL to its site extractor, decides whether the page needs
a real browser, obtains the rendered HTML (plain HTTP or a stealth page
on the shared browser), runs the extractor and hands back a
:class:`ScrapedProduct`.

The router never swallows errors: every failure leaves as a
:class:`ScrapeError` subclass annotated with the URL and domain.  Turning
failures into item state is the worker's job.
"""

from __future__ import annotations

import logging
from urllib.parse import urlsplit

import httpx
import tldextract
from playwright.async_api import Browser, TimeoutError as PlaywrightTimeout

from config.settings import DYNAMIC_DOMAINS, STATIC_FETCH_TIMEOUT_SEC, STATIC_HEADERS
from errors import (
    BlockedError,
    ExtractionError,
    NotFoundError,
    ScrapeError,
    ScrapeTimeoutError,
    UnregisteredDomainError,
    error_for_status,
)
from extractors import (
    AmazonExtractor,
    AymExtractor,
    CharlesTyrwhittExtractor,
    CoachOutletExtractor,
    EtsyExtractor,
    FarfetchExtractor,
    GenericExtractor,
    HmExtractor,
    JCrewExtractor,
    MaxMaraExtractor,
    MytheresaExtractor,
    RalphLaurenExtractor,
    TheFoldExtractor,
    TheOutnetExtractor,
    TheRealRealExtractor,
    YooxExtractor,
    ZaraExtractor,
)
from extractors.base import ExtractorFactory
from handlers.browser import is_challenge_page, navigate, open_page
from models import ScrapedProduct

logger = logging.getLogger(__name__)

# Bundled public-suffix snapshot only; never fetches the list at runtime.
_TLD_EXTRACT = tldextract.TLDExtract(cache_dir=None, suffix_list_urls=())

# ---------------------------------------------------------------------------
# Extractor registry (registrable domain -> extractor class)
# ---------------------------------------------------------------------------

EXTRACTOR_MAP: dict[str, ExtractorFactory] = {
    "zara.com": ZaraExtractor,
    "hm.com": HmExtractor,
    "amazon.com": AmazonExtractor,
    "aymstudio.com": AymExtractor,
    "charlestyrwhitt.com": CharlesTyrwhittExtractor,
    "coachoutlet.com": CoachOutletExtractor,
    "etsy.com": EtsyExtractor,
    "farfetch.com": FarfetchExtractor,
    "jcrew.com": JCrewExtractor,
    "maxmara.com": MaxMaraExtractor,
    "mytheresa.com": MytheresaExtractor,
    "ralphlauren.com": RalphLaurenExtractor,
    "thefoldlondon.com": TheFoldExtractor,
    "theoutnet.com": TheOutnetExtractor,
    "therealreal.com": TheRealRealExtractor,
    "yoox.com": YooxExtractor,
    # Conventional markup; the generic heuristics cope once rendered.
    "gap.com": GenericExtractor,
    "mango.com": GenericExtractor,
    "forever21.com": GenericExtractor,
}

_FETCH_FAILED = "Failed to fetch product details. Check URL or website structure."


# ---------------------------------------------------------------------------
# Hostname normalization / lookup
# ---------------------------------------------------------------------------


def normalize_hostname(url: str) -> str:
    """Registrable domain of *url*: ``https://www2.us.zara.com/x`` -> ``zara.com``."""
    try:
        host = (urlsplit(url.strip()).hostname or "").lower()
    except ValueError:
        # Unbalanced IPv6 brackets.
        return ""
    if not host:
        return ""
    ext = _TLD_EXTRACT(host)
    if ext.domain and ext.suffix:
        return f"{ext.domain}.{ext.suffix}"
    return host


def registered_domain(domain: str) -> str | None:
    """Registry key serving *domain*, trying the brand's ``.com`` as fallback."""
    if domain in EXTRACTOR_MAP:
        return domain
    # amazon.co.uk / zara.es share markup with the .com storefront.
    brand = _TLD_EXTRACT(domain).domain if domain else ""
    if brand and f"{brand}.com" in EXTRACTOR_MAP:
        return f"{brand}.com"
    return None


def lookup_extractor(domain: str) -> ExtractorFactory:
    """Extractor class for *domain*; :class:`UnregisteredDomainError` if none."""
    key = registered_domain(domain)
    if key is None:
        raise UnregisteredDomainError(f"No scraper available for domain: {domain or '(none)'}", domain=domain)
    return EXTRACTOR_MAP[key]


def requires_dynamic_rendering(domain: str, extractor_cls: ExtractorFactory | None = None) -> bool:
    """Whether *domain* (or its extractor) needs a headless-browser render."""
    if domain in DYNAMIC_DOMAINS:
        return True
    return bool(getattr(extractor_cls, "requires_browser", False))


# ---------------------------------------------------------------------------
# Static fetch
# ---------------------------------------------------------------------------


def create_http_client() -> httpx.AsyncClient:
    """Client for static fetches; share one across requests where possible."""
    return httpx.AsyncClient(
        timeout=STATIC_FETCH_TIMEOUT_SEC,
        follow_redirects=True,
        headers=STATIC_HEADERS,
    )


async def _get(client: httpx.AsyncClient, url: str) -> str:
    try:
        response = await client.get(url)
    except httpx.TimeoutException as exc:
        raise ScrapeTimeoutError(f"Fetch timed out after {STATIC_FETCH_TIMEOUT_SEC:g}s") from exc
    except httpx.HTTPError as exc:
        raise ScrapeError(f"Fetch failed: {exc}") from exc

    error = error_for_status(response.status_code)
    if error is not None:
        raise error
    html = response.text
    if is_challenge_page(html):
        raise BlockedError("Anti-bot challenge page detected")
    return html


async def fetch_html(url: str, client: httpx.AsyncClient | None = None) -> str:
    """GET *url* and return the body, classifying HTTP failures."""
    if client is not None:
        return await _get(client, url)
    async with create_http_client() as owned:
        return await _get(owned, url)


# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------


async def _scrape_dynamic(factory: ExtractorFactory, url: str, browser: Browser | None) -> ScrapedProduct:
    async with open_page(browser) as page:
        html = await navigate(page, url)
        return await factory(html, url, page).scrape()


async def route_and_scrape(
    url: str,
    browser: Browser | None = None,
    *,
    client: httpx.AsyncClient | None = None,
) -> ScrapedProduct:
    """Scrape *url* with its registered extractor.

    Browser-rendered domains use *browser* (a private one is launched for
    this call when it is ``None``).  Raises ``UnregisteredDomainError``
    before any network activity when the domain is unknown.
    """
    domain = normalize_hostname(url)
    try:
        factory = lookup_extractor(domain)
        if requires_dynamic_rendering(registered_domain(domain) or domain, factory):
            logger.info("[%s] Browser render: %s", domain, url)
            product = await _scrape_dynamic(factory, url, browser)
        else:
            logger.info("[%s] Static fetch: %s", domain, url)
            html = await fetch_html(url, client)
            product = await factory(html, url, None).scrape()
    except ScrapeError as exc:
        exc.add_context(url=url, domain=domain)
        raise
    except PlaywrightTimeout as exc:
        raise ScrapeTimeoutError(f"Browser operation timed out: {exc}", url=url, domain=domain) from exc
    except Exception as exc:
        raise ExtractionError(f"Extraction failed: {exc}", url=url, domain=domain) from exc

    logger.info(
        "[%s] Scraped %r price=%s sizes=%d in_stock=%s",
        domain, product.name, product.price_info, len(product.available_sizes), product.in_stock,
    )
    return product


async def scrape_product_from_url(url: str, *, client: httpx.AsyncClient | None = None) -> ScrapedProduct:
    """Static fetch + generic extraction, for previews of any URL.

    A 404 is reported as such; every other failure becomes one
    ``ExtractionError`` with a user-facing message.
    """
    domain = normalize_hostname(url)
    try:
        html = await fetch_html(url, client)
        return await GenericExtractor(html, url).scrape()
    except NotFoundError as exc:
        exc.add_context(url=url, domain=domain)
        raise
    except Exception as exc:
        logger.error("[%s] Generic scrape failed for %s: %s", domain, url, exc)
        raise ExtractionError(_FETCH_FAILED, url=url, domain=domain) from exc
