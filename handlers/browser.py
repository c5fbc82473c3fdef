"""
Browser session management.

One Chromium process is launched per worker and shared by every request.
Each request gets its own context + page (fresh fingerprint, no shared
cookies or JS state) through :func:`open_page`, which always closes them
again whether the extraction succeeded or not.

Stealth stack:
  1. Real Chrome binary via ``channel="chrome"`` when installed.
  2. playwright-stealth patches for webdriver, plugins, WebGL, etc.
  3. Analytics/tracker requests aborted.
  4. Randomized viewport + User-Agent per context.
"""

from __future__ import annotations

import asyncio
import logging
import re
from contextlib import asynccontextmanager
from typing import AsyncIterator

from playwright.async_api import (
    Browser,
    Error as PlaywrightError,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeout,
    async_playwright,
)
from playwright_stealth import Stealth

from config.settings import (
    BLOCKED_RESOURCE_PATTERNS, BROWSER_ARGS, BROWSER_CHANNEL, GOTO_TIMEOUT_MS,
    HEADLESS, SETTLE_DELAY_SEC, WAIT_UNTIL, get_user_agent, get_viewport,
)
from errors import BlockedError, ScrapeTimeoutError, error_for_status

logger = logging.getLogger(__name__)

_STEALTH = Stealth()

# Markers of interstitial bot-check pages (Cloudflare, DataDome,
# PerimeterX, Amazon's captcha form).
_CHALLENGE_PATTERNS = [
    re.compile(r"<title>\s*just a moment", re.IGNORECASE),
    re.compile(r"challenges\.cloudflare\.com"),
    re.compile(r'id="challenge-(?:form|running)"'),
    re.compile(r"captcha-delivery\.com"),
    re.compile(r'id="px-captcha"'),
    re.compile(r"/errors/validateCaptcha"),
]


def is_challenge_page(html: str) -> bool:
    """``True`` if *html* is an anti-bot challenge rather than the product."""
    return any(p.search(html) for p in _CHALLENGE_PATTERNS)


# ---------------------------------------------------------------------------
# Process-scoped browser
# ---------------------------------------------------------------------------


async def launch_stealth_browser(
    pw: Playwright,
    *,
    extra_args: list[str] | None = None,
) -> Browser:
    """Launch Chromium, preferring the real Chrome channel."""
    args = BROWSER_ARGS + (extra_args or [])

    try:
        browser = await pw.chromium.launch(headless=HEADLESS, channel=BROWSER_CHANNEL, args=args)
        logger.info("Browser launched: channel=%s", BROWSER_CHANNEL)
        return browser
    except PlaywrightError as exc:
        logger.warning(
            "Chrome channel %r unavailable (%s), falling back to bundled Chromium",
            BROWSER_CHANNEL, exc,
        )

    browser = await pw.chromium.launch(headless=HEADLESS, args=args)
    logger.info("Browser launched: bundled Chromium (fallback)")
    return browser


async def _close_quietly(obj) -> None:
    try:
        await obj.close()
    except PlaywrightError as exc:
        logger.debug("Close failed for %r: %s", obj, exc)


async def _block_route(route) -> None:
    await route.abort()


# ---------------------------------------------------------------------------
# Request-scoped page
# ---------------------------------------------------------------------------


@asynccontextmanager
async def open_page(browser: Browser | None = None) -> AsyncIterator[Page]:
    """Yield a fresh stealth page; close it (and its context) on exit.

    With no *browser*, a private browser is launched for this one request
    and shut down afterwards.
    """
    pw: Playwright | None = None
    own_browser: Browser | None = None
    try:
        if browser is None:
            pw = await async_playwright().start()
            own_browser = browser = await launch_stealth_browser(pw)

        context = await browser.new_context(
            viewport=get_viewport(),
            user_agent=get_user_agent(),
            locale="en-US",
        )
        try:
            await _STEALTH.apply_stealth_async(context)
            page = await context.new_page()
            for pattern in BLOCKED_RESOURCE_PATTERNS:
                await page.route(pattern, _block_route)
            yield page
        finally:
            await _close_quietly(context)
    finally:
        if own_browser is not None:
            await _close_quietly(own_browser)
        if pw is not None:
            await pw.stop()


async def navigate(page: Page, url: str) -> str:
    """Load *url*, let late scripts settle, and return the rendered HTML.

    Raises ``NotFoundError`` / ``BlockedError`` / ``ScrapeError`` for bad
    statuses, ``BlockedError`` for challenge pages and
    ``ScrapeTimeoutError`` when navigation exceeds ``GOTO_TIMEOUT_MS``.
    """
    try:
        response = await page.goto(url, wait_until=WAIT_UNTIL, timeout=GOTO_TIMEOUT_MS)
    except PlaywrightTimeout as exc:
        raise ScrapeTimeoutError(f"Navigation timed out after {GOTO_TIMEOUT_MS // 1000}s") from exc

    if response is not None:
        error = error_for_status(response.status)
        if error is not None:
            raise error

    await asyncio.sleep(SETTLE_DELAY_SEC)
    html = await page.content()
    if is_challenge_page(html):
        raise BlockedError("Anti-bot challenge page detected")
    return html
