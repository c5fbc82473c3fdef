"""Shared fixtures for the product tracker test suite."""

from __future__ import annotations

import sys
from pathlib import Path

import httpx
import pytest

# Ensure the top-level modules are importable from tests/
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from playwright.async_api import TimeoutError as PlaywrightTimeout

from storage import MemoryItemStore


@pytest.fixture
def store():
    """Fresh in-memory item store per test."""
    return MemoryItemStore()


@pytest.fixture
def make_item(store):
    """Factory that inserts an item with sensible defaults.

    Any keyword argument overrides the default.
    """

    def _make(url=MYTHERESA_URL, **overrides):
        return store.create_item(url, **overrides)

    return _make


@pytest.fixture
def mock_client():
    """Build an ``httpx.AsyncClient`` served by a dict of ``url -> (status, html)``.

    Returns ``(client, requested)``; *requested* records every URL fetched.
    Unknown URLs get a 404.
    """

    def _make(pages: dict[str, tuple[int, str]]):
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            url = str(request.url)
            requested.append(url)
            status, body = pages.get(url, (404, "<html><body>Not found</body></html>"))
            return httpx.Response(status, text=body, headers={"content-type": "text/html"})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
        return client, requested

    return _make


# ---------------------------------------------------------------------------
# Fake Playwright page for interaction sequences
# ---------------------------------------------------------------------------


class FakeElement:
    def __init__(self, page: "FakePage", selector: str, *, enabled: bool = True, click_timeout: bool = False):
        self.page = page
        self.selector = selector
        self.enabled = enabled
        self.click_timeout = click_timeout

    async def click(self, timeout=None):
        if self.click_timeout:
            raise PlaywrightTimeout(f"Timeout {timeout}ms exceeded clicking {self.selector}")
        self.page.clicked.append(self.selector)
        for selector in self.page.reveals.get(self.selector, []):
            self.page.visible.add(selector)
        if self.selector in self.page.html_after_click:
            self.page.html = self.page.html_after_click[self.selector]

    async def is_enabled(self):
        return self.enabled


class FakePage:
    """Minimal stand-in for ``playwright.async_api.Page``.

    ``elements`` are the selectors present on the page; clicking one adds
    its ``reveals`` selectors to the visible set and may swap the page
    HTML (``html_after_click``).  ``wait_for_selector`` succeeds only for
    visible selectors and otherwise raises Playwright's timeout.
    """

    def __init__(self, html="", *, elements=None, reveals=None, html_after_click=None, visible=None):
        self.html = html
        self.elements: dict[str, FakeElement] = {}
        for entry in elements or []:
            if isinstance(entry, str):
                entry = {"selector": entry}
            self.elements[entry["selector"]] = FakeElement(
                self,
                entry["selector"],
                enabled=entry.get("enabled", True),
                click_timeout=entry.get("click_timeout", False),
            )
        self.reveals = reveals or {}
        self.html_after_click = html_after_click or {}
        self.visible = set(visible or [])
        self.clicked: list[str] = []

    async def query_selector(self, selector):
        return self.elements.get(selector)

    async def wait_for_selector(self, selector, timeout=None, state="visible"):
        present = selector in self.visible
        if (state == "hidden") != present:
            return None
        raise PlaywrightTimeout(f"Timeout {timeout}ms exceeded waiting for {selector}")

    async def content(self):
        return self.html


@pytest.fixture
def fake_page():
    return FakePage


# ---------------------------------------------------------------------------
# Sample pages
# ---------------------------------------------------------------------------

MYTHERESA_URL = "https://www.mytheresa.com/en-de/coat-123.html"

MYTHERESA_HTML = """
<html><head>
  <title>Belted wool coat | Mytheresa</title>
  <meta property="og:description" content="Belted coat in a wool blend.">
</head><body>
  <div class="product__area__branding__designer"><a href="/max-mara">Max Mara</a></div>
  <div class="product__area__branding__name">Belted wool coat</div>
  <div class="pricing"><span class="pricing__prices__price">€ 1.290,50</span></div>
  <div class="dropdown__options__wrapper">
    <div class="sizeitem sizeitem--placeholder"><span class="sizeitem__label">Select size</span></div>
    <div class="sizeitem sizeitem--notavailable"><span class="sizeitem__label">IT 38</span></div>
    <div class="sizeitem"><span class="sizeitem__label">IT 40</span></div>
  </div>
  <div class="product-details" data-label="Product details">
    <div class="product-details__content"><ul>
      <li>Designer color name: Camel</li>
      <li>Made in Italy</li>
    </ul></div>
  </div>
  <div class="product__gallery__carousel"><div class="swiper-wrapper">
    <div class="swiper-slide"><img src="//img.mytheresa.com/coat-1.jpg"></div>
    <div class="swiper-slide swiper-slide-duplicate"><img src="//img.mytheresa.com/coat-dup.jpg"></div>
    <div class="swiper-slide"><img src="/media/coat-2.jpg"></div>
    <div class="swiper-slide"><img src="//img.mytheresa.com/coat-1.jpg"></div>
  </div></div>
</body></html>
"""


@pytest.fixture
def mytheresa_page():
    """``(url, html)`` of an in-stock Mytheresa product."""
    return MYTHERESA_URL, MYTHERESA_HTML
