"""
Product tracker entry point.

Usage:
    python main.py                 # run the worker until SIGINT / SIGTERM
    python main.py <product-url>   # scrape one URL and print the result as JSON
    python main.py recheck         # re-queue every item that is not pending or dead

Environment variables:
    SUPABASE_URL / SUPABASE_SERVICE_KEY   item store credentials
    DRY_RUN=true                          in-memory store, no DB writes
    LOG_LEVEL=DEBUG                       log verbosity (default INFO)
    HEADLESS=false                        show the browser window
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import signal
import sys

from playwright.async_api import async_playwright
from supabase import create_client

from config.settings import DRY_RUN, SUPABASE_KEY, SUPABASE_URL
from errors import ScrapeError, UnregisteredDomainError
from handlers.browser import launch_stealth_browser
from router import create_http_client, route_and_scrape, scrape_product_from_url
from storage import ItemStore, MemoryItemStore, SupabaseItemStore
from worker import Worker, requeue_items

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("worker")


def _make_store() -> ItemStore:
    if DRY_RUN:
        logger.info("[DRY RUN] Using in-memory item store")
        return MemoryItemStore()
    if not SUPABASE_URL or not SUPABASE_KEY:
        logger.error("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set")
        sys.exit(1)
    return SupabaseItemStore(create_client(SUPABASE_URL, SUPABASE_KEY))


# ---------------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------------


async def preview(url: str) -> int:
    """Scrape *url* once and print the product; unknown sites use the generic path."""
    async with create_http_client() as client:
        try:
            try:
                product = await route_and_scrape(url, client=client)
            except UnregisteredDomainError:
                logger.info("No dedicated scraper for %s, using generic extraction", url)
                product = await scrape_product_from_url(url, client=client)
        except ScrapeError as exc:
            logger.error("Scrape failed (%s): %s", type(exc).__name__, exc)
            return 1
    print(json.dumps(product.to_dict(), indent=2, ensure_ascii=False))
    return 0


async def run_worker() -> int:
    store = _make_store()
    loop = asyncio.get_running_loop()

    logger.info("=" * 60)
    logger.info("Product tracker worker starting")
    logger.info("  DRY_RUN:  %s", DRY_RUN)
    logger.info("=" * 60)

    async with async_playwright() as pw, create_http_client() as client:
        # One browser for the life of the worker; pages are per request.
        browser = await launch_stealth_browser(pw)
        try:
            worker = Worker.for_browser(store, browser, client)
            for sig in (signal.SIGINT, signal.SIGTERM):
                try:
                    loop.add_signal_handler(sig, worker.stop)
                except NotImplementedError:
                    logger.debug("Signal handlers unsupported on this platform (%s)", sig)
            await worker.run()
        finally:
            await browser.close()
            logger.info("Browser closed")
    return 0


async def run(argv: list[str]) -> int:
    if not argv:
        return await run_worker()
    if argv[0] == "recheck":
        requeue_items(_make_store())
        return 0
    return await preview(argv[0])


if __name__ == "__main__":
    sys.exit(asyncio.run(run(sys.argv[1:])))
