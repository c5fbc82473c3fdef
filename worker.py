"""
Background worker.

Drains the item store one pending item at a time: route the URL, classify
the outcome, write the item back and (on success) append a price-history
row, then pause before the next item.  This is the only place extraction
errors become item state:

  ================  ============  =========================================
  outcome           status        other fields
  ================  ============  =========================================
  success           processed     mirrored product fields, error cleared
  NotFoundError     link_dead     ``in_stock = False``
  any other error   failed        previous price / sizes / images untouched
  ================  ============  =========================================

Everything except a confirmed 404 stays eligible for :func:`requeue_items`.
"""

from __future__ import annotations

import asyncio
import logging
import random
from functools import partial
from typing import Any, Awaitable, Callable

import httpx
from playwright.async_api import Browser

from config.settings import BUSY_SLEEP_RANGE_SEC, IDLE_SLEEP_SEC
from errors import NotFoundError, ScrapeError
from models import FAILED, LINK_DEAD, PENDING, PROCESSED, ScrapedProduct
from router import route_and_scrape
from storage import ItemStore, utc_now

logger = logging.getLogger(__name__)

Route = Callable[[str], Awaitable[ScrapedProduct]]


# ---------------------------------------------------------------------------
# One item
# ---------------------------------------------------------------------------


def _success_fields(product: ScrapedProduct, checked_at: str) -> dict[str, Any]:
    fields = product.to_dict()
    if product.price_info is None:
        # Keep the last known price rather than blanking it.
        fields.pop("price")
        fields.pop("currency")
    fields.update(status=PROCESSED, last_checked_at=checked_at, last_check_error=None)
    return fields


async def process_item(store: ItemStore, item: dict[str, Any], route: Route) -> BaseException | None:
    """Scrape one item and persist the classified outcome.

    Returns the failure (already persisted) or ``None`` on success.
    """
    item_id = item["id"]
    url = item["url"]
    logger.info("[%s] Checking %s", item_id, url)

    try:
        product = await route(url)
    except NotFoundError as exc:
        logger.warning("[%s] Link dead: %s", item_id, url)
        store.update_item(item_id, {
            "status": LINK_DEAD,
            "in_stock": False,
            "last_checked_at": utc_now(),
            "last_check_error": str(exc),
        })
        return exc
    except ScrapeError as exc:
        logger.warning("[%s] %s: %s", item_id, type(exc).__name__, exc)
        store.update_item(item_id, {
            "status": FAILED,
            "last_checked_at": utc_now(),
            "last_check_error": str(exc),
        })
        return exc
    except Exception as exc:
        logger.error("[%s] Unexpected error scraping %s", item_id, url, exc_info=True)
        store.update_item(item_id, {
            "status": FAILED,
            "last_checked_at": utc_now(),
            "last_check_error": str(exc) or type(exc).__name__,
        })
        return exc

    checked_at = utc_now()
    store.update_item(item_id, _success_fields(product, checked_at))
    if product.price_info is not None:
        store.add_price_history({
            "item_id": item_id,
            "price": product.price_info.amount_minor_units,
            "currency": product.price_info.currency_code,
            "in_stock": product.in_stock,
            "checked_at": checked_at,
        })
    logger.info(
        "[%s] Processed: %s price=%s in_stock=%s",
        item_id, product.name, product.price_info, product.in_stock,
    )
    return None


# ---------------------------------------------------------------------------
# Loop
# ---------------------------------------------------------------------------


class Worker:
    """Sequential drain loop with cooperative shutdown."""

    def __init__(
        self,
        store: ItemStore,
        route: Route,
        *,
        busy_sleep: tuple[float, float] = BUSY_SLEEP_RANGE_SEC,
        idle_sleep: float = IDLE_SLEEP_SEC,
    ) -> None:
        self.store = store
        self.route = route
        self.busy_sleep = busy_sleep
        self.idle_sleep = idle_sleep
        self._stop = asyncio.Event()

    @classmethod
    def for_browser(
        cls,
        store: ItemStore,
        browser: Browser | None,
        client: httpx.AsyncClient | None = None,
        **kwargs: Any,
    ) -> "Worker":
        return cls(store, partial(route_and_scrape, browser=browser, client=client), **kwargs)

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        """Ask the loop to exit; interrupts any sleep in progress."""
        if not self._stop.is_set():
            logger.info("Worker stop requested")
        self._stop.set()

    async def run_once(self) -> bool:
        """Process the next pending item; ``False`` when the queue is empty."""
        item = self.store.get_next_pending_item()
        if item is None:
            return False
        await process_item(self.store, item, self.route)
        return True

    async def _sleep(self, seconds: float) -> None:
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def run(self) -> None:
        logger.info("Worker started")
        while not self.stopping:
            try:
                busy = await self.run_once()
            except Exception:
                # Store unreachable etc.; back off as if idle.
                logger.error("Worker iteration failed", exc_info=True)
                busy = False
            if self.stopping:
                break
            if busy:
                await self._sleep(random.uniform(*self.busy_sleep))
            else:
                logger.debug("No pending items, sleeping %.0fs", self.idle_sleep)
                await self._sleep(self.idle_sleep)
        logger.info("Worker stopped")


# ---------------------------------------------------------------------------
# Manual operations
# ---------------------------------------------------------------------------


async def check_item(
    store: ItemStore,
    item_id: str,
    browser: Browser | None = None,
    *,
    client: httpx.AsyncClient | None = None,
    route: Route | None = None,
) -> dict[str, Any]:
    """Re-scrape one item now and return the updated row.

    Persists exactly like the worker, then re-raises any failure so the
    caller sees the raw message.  Unknown ids raise ``KeyError``.
    """
    item = store.get_item(item_id)
    if item is None:
        raise KeyError(item_id)
    route = route or partial(route_and_scrape, browser=browser, client=client)
    error = await process_item(store, item, route)
    if error is not None:
        raise error
    return store.get_item(item_id)


def requeue_items(store: ItemStore) -> int:
    """Reset every item that is not pending or dead to ``pending``."""
    count = 0
    for item in store.list_items():
        if item["status"] in (PENDING, LINK_DEAD):
            continue
        store.update_item(item["id"], {"status": PENDING})
        count += 1
    logger.info("Re-queued %d items", count)
    return count
