"""Tests for router.py: hostname lookup, render strategy and error mapping."""

from __future__ import annotations

import httpx
import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeout

import router
from errors import (
    BlockedError,
    ExtractionError,
    NotFoundError,
    ScrapeError,
    ScrapeTimeoutError,
    UnregisteredDomainError,
)
from extractors import (
    AmazonExtractor,
    FarfetchExtractor,
    GenericExtractor,
    MytheresaExtractor,
    ZaraExtractor,
)
from models import PriceInfo, ScrapedProduct, SizeInfo


# =====================================================================
# Hostname normalization and registry lookup
# =====================================================================


class TestHostnames:

    @pytest.mark.parametrize("url,expected", [
        ("https://www.zara.com/us/en/coat-p0123.html", "zara.com"),
        ("https://us.jcrew.com/p/womens/coat", "jcrew.com"),
        ("HTTPS://WWW.Mytheresa.COM/en-de/coat.html", "mytheresa.com"),
        ("https://www.amazon.co.uk/dp/B000123", "amazon.co.uk"),
        ("https://www2.hm.com/en_gb/productpage.123.html", "hm.com"),
        ("  https://www.etsy.com/listing/1/mug  ", "etsy.com"),
        ("not a url", ""),
        ("http://[::1", ""),
        ("", ""),
    ])
    def test_normalize_hostname(self, url, expected):
        assert router.normalize_hostname(url) == expected

    def test_registered_domain_exact(self):
        assert router.registered_domain("mytheresa.com") == "mytheresa.com"

    @pytest.mark.parametrize("domain", ["amazon.co.uk", "amazon.de", "zara.es"])
    def test_regional_storefront_falls_back_to_com(self, domain):
        assert router.registered_domain(domain).endswith(".com")

    def test_unknown_domain(self):
        assert router.registered_domain("unknown-shop.com") is None
        assert router.registered_domain("") is None

    def test_lookup_extractor(self):
        assert router.lookup_extractor("zara.com") is ZaraExtractor
        assert router.lookup_extractor("amazon.co.uk") is AmazonExtractor
        assert router.lookup_extractor("gap.com") is GenericExtractor

    def test_lookup_unregistered_raises(self):
        with pytest.raises(UnregisteredDomainError) as exc_info:
            router.lookup_extractor("unknown-shop.com")
        assert str(exc_info.value) == "No scraper available for domain: unknown-shop.com"
        assert exc_info.value.domain == "unknown-shop.com"

    async def test_malformed_url_is_unregistered(self, mock_client):
        url = "http://[::1"
        client, requested = mock_client({})

        with pytest.raises(UnregisteredDomainError):
            await router.route_and_scrape(url, client=client)

        assert requested == []


class TestRenderStrategy:

    @pytest.mark.parametrize("domain", ["zara.com", "hm.com", "jcrew.com", "gap.com", "amazon.com"])
    def test_dynamic_domains(self, domain):
        assert router.requires_dynamic_rendering(domain)

    def test_static_extractor(self):
        assert not router.requires_dynamic_rendering("mytheresa.com", MytheresaExtractor)

    def test_browser_only_extractor_is_dynamic(self):
        assert router.requires_dynamic_rendering("farfetch.co.uk", FarfetchExtractor)


# =====================================================================
# route_and_scrape(): static path
# =====================================================================


class TestRouteStatic:

    async def test_scrapes_registered_static_domain(self, mock_client, mytheresa_page):
        url, html = mytheresa_page
        client, requested = mock_client({url: (200, html)})

        product = await router.route_and_scrape(url, client=client)

        assert requested == [url]
        assert product.name == "Max Mara - Belted wool coat"
        assert product.price_info == PriceInfo(129050, "EUR")
        assert product.available_sizes == [SizeInfo("IT 38", False), SizeInfo("IT 40", True)]
        assert product.in_stock is True

    async def test_unregistered_domain_makes_no_request(self, mock_client):
        client, requested = mock_client({})
        url = "https://www.unknown-shop.com/products/1"

        with pytest.raises(UnregisteredDomainError) as exc_info:
            await router.route_and_scrape(url, client=client)

        assert requested == []
        assert exc_info.value.url == url
        assert exc_info.value.domain == "unknown-shop.com"

    async def test_404_is_not_found(self, mock_client, mytheresa_page):
        url, _ = mytheresa_page
        client, _ = mock_client({})

        with pytest.raises(NotFoundError) as exc_info:
            await router.route_and_scrape(url, client=client)

        assert str(exc_info.value) == "Product not found (404)"
        assert exc_info.value.context == {"url": url, "domain": "mytheresa.com"}

    @pytest.mark.parametrize("status", [403, 429])
    async def test_blocked_status(self, mock_client, mytheresa_page, status):
        url, _ = mytheresa_page
        client, _ = mock_client({url: (status, "<html></html>")})

        with pytest.raises(BlockedError):
            await router.route_and_scrape(url, client=client)

    async def test_other_http_errors_are_generic(self, mock_client, mytheresa_page):
        url, _ = mytheresa_page
        client, _ = mock_client({url: (500, "<html></html>")})

        with pytest.raises(ScrapeError) as exc_info:
            await router.route_and_scrape(url, client=client)

        assert type(exc_info.value) is ScrapeError
        assert str(exc_info.value) == "HTTP error! status: 500"

    async def test_challenge_page_is_blocked(self, mock_client, mytheresa_page):
        url, _ = mytheresa_page
        challenge = "<html><head><title>Just a moment...</title></head><body></body></html>"
        client, _ = mock_client({url: (200, challenge)})

        with pytest.raises(BlockedError):
            await router.route_and_scrape(url, client=client)

    async def test_fetch_timeout(self, mytheresa_page):
        url, _ = mytheresa_page

        def handler(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

        with pytest.raises(ScrapeTimeoutError) as exc_info:
            await router.route_and_scrape(url, client=client)
        assert exc_info.value.domain == "mytheresa.com"

    async def test_page_without_product_is_extraction_error(self, mock_client, mytheresa_page):
        url, _ = mytheresa_page
        client, _ = mock_client({url: (200, "<html><body><p>Nothing here</p></body></html>")})

        with pytest.raises(ExtractionError) as exc_info:
            await router.route_and_scrape(url, client=client)
        assert exc_info.value.url == url

    async def test_unexpected_extractor_failure_is_wrapped(self, mock_client, mytheresa_page, monkeypatch):
        url, html = mytheresa_page
        client, _ = mock_client({url: (200, html)})

        class Broken:
            requires_browser = False

            def __init__(self, html, url, page=None):
                pass

            async def scrape(self):
                raise ValueError("markup changed")

        monkeypatch.setitem(router.EXTRACTOR_MAP, "mytheresa.com", Broken)

        with pytest.raises(ExtractionError) as exc_info:
            await router.route_and_scrape(url, client=client)
        assert str(exc_info.value) == "Extraction failed: markup changed"
        assert isinstance(exc_info.value.__cause__, ValueError)


# =====================================================================
# route_and_scrape(): browser path
# =====================================================================


class TestRouteDynamic:

    async def test_dynamic_domain_uses_browser(self, mock_client, monkeypatch):
        calls = []
        expected = ScrapedProduct(name="Wool coat", price_info=PriceInfo(12900, "EUR"))

        async def fake_dynamic(factory, url, browser):
            calls.append((factory, url, browser))
            return expected

        monkeypatch.setattr(router, "_scrape_dynamic", fake_dynamic)
        client, requested = mock_client({})
        browser = object()
        url = "https://www.zara.com/es/en/coat-p0123.html"

        product = await router.route_and_scrape(url, browser, client=client)

        assert product is expected
        assert calls == [(ZaraExtractor, url, browser)]
        assert requested == []

    async def test_browser_timeout_is_scrape_timeout(self, monkeypatch):
        async def fake_dynamic(factory, url, browser):
            raise PlaywrightTimeout("Timeout 60000ms exceeded")

        monkeypatch.setattr(router, "_scrape_dynamic", fake_dynamic)
        url = "https://www.jcrew.com/p/coat"

        with pytest.raises(ScrapeTimeoutError) as exc_info:
            await router.route_and_scrape(url, object())
        assert exc_info.value.context == {"url": url, "domain": "jcrew.com"}


# =====================================================================
# scrape_product_from_url(): generic preview
# =====================================================================


GENERIC_HTML = """
<html><head>
  <meta property="og:title" content="Stoneware mug">
  <meta property="og:image" content="/img/mug.jpg">
  <meta property="product:price:amount" content="24.00">
  <meta property="product:price:currency" content="GBP">
</head><body><h1>Stoneware mug</h1><button>Add to basket</button></body></html>
"""


class TestScrapeProductFromUrl:

    async def test_generic_extraction(self, mock_client):
        url = "https://shop.example.org/products/mug"
        client, _ = mock_client({url: (200, GENERIC_HTML)})

        product = await router.scrape_product_from_url(url, client=client)

        assert product.name == "Stoneware mug"
        assert product.price_info == PriceInfo(2400, "GBP")
        assert product.images == ["https://shop.example.org/img/mug.jpg"]
        assert product.in_stock is True

    async def test_not_found_is_reraised(self, mock_client):
        client, _ = mock_client({})
        with pytest.raises(NotFoundError):
            await router.scrape_product_from_url("https://shop.example.org/gone", client=client)

    async def test_other_failures_get_one_message(self, mock_client):
        url = "https://shop.example.org/products/mug"
        client, _ = mock_client({url: (503, "")})

        with pytest.raises(ExtractionError) as exc_info:
            await router.scrape_product_from_url(url, client=client)
        assert str(exc_info.value) == "Failed to fetch product details. Check URL or website structure."
