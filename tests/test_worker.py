"""Tests for worker.py: outcome classification, persistence and the drain loop."""

from __future__ import annotations

import asyncio
from functools import partial

import pytest

from errors import BlockedError, NotFoundError, ScrapeTimeoutError
from models import FAILED, LINK_DEAD, PENDING, PROCESSED, PriceInfo, ScrapedProduct, SizeInfo
from router import route_and_scrape
from storage import MemoryItemStore
from worker import Worker, check_item, process_item, requeue_items


def raising(exc):
    async def route(url):
        raise exc
    return route


def returning(product):
    async def route(url):
        return product
    return route


@pytest.fixture
def tracked_item(make_item):
    """An item that already has data from an earlier successful check."""
    return make_item(
        name="Max Mara - Belted wool coat",
        price=125000,
        currency="EUR",
        images=["https://img.mytheresa.com/coat-1.jpg"],
        available_sizes=[{"name": "IT 40", "in_stock": True}],
        in_stock=True,
        status=PROCESSED,
    )


# =====================================================================
# process_item(): one item, one outcome
# =====================================================================


class TestProcessItem:

    async def test_success_end_to_end(self, store, make_item, mock_client, mytheresa_page):
        url, html = mytheresa_page
        client, _ = mock_client({url: (200, html)})
        item = make_item(url)

        error = await process_item(store, item, partial(route_and_scrape, client=client))

        assert error is None
        row = store.get_item(item["id"])
        assert row["status"] == PROCESSED
        assert row["name"] == "Max Mara - Belted wool coat"
        assert row["price"] == 129050
        assert row["currency"] == "EUR"
        assert row["in_stock"] is True
        assert row["available_sizes"] == [
            {"name": "IT 38", "in_stock": False},
            {"name": "IT 40", "in_stock": True},
        ]
        assert row["last_check_error"] is None
        assert row["last_checked_at"] is not None

        history = store.get_price_history(item["id"])
        assert len(history) == 1
        assert history[0]["price"] == 129050
        assert history[0]["currency"] == "EUR"
        assert history[0]["in_stock"] is True
        assert history[0]["checked_at"] == row["last_checked_at"]

    async def test_static_euro_price(self, store, make_item, mock_client):
        url = "https://www.therealreal.com/products/women/bags/tote-1"
        html = '<h1 data-test="productName">Canvas tote</h1><span data-test="productPrice">€45,50</span>'
        client, _ = mock_client({url: (200, html)})
        item = make_item(url)

        await process_item(store, item, partial(route_and_scrape, client=client))

        row = store.get_item(item["id"])
        assert row["status"] == PROCESSED
        assert (row["price"], row["currency"]) == (4550, "EUR")
        history = store.get_price_history(item["id"])
        assert [(h["price"], h["currency"]) for h in history] == [(4550, "EUR")]

    async def test_not_found_marks_link_dead(self, store, tracked_item):
        error = await process_item(store, tracked_item, raising(NotFoundError("Product not found (404)")))

        assert isinstance(error, NotFoundError)
        row = store.get_item(tracked_item["id"])
        assert row["status"] == LINK_DEAD
        assert row["in_stock"] is False
        assert row["last_check_error"] == "Product not found (404)"
        # Last known data is kept.
        assert row["price"] == 125000
        assert row["images"] == ["https://img.mytheresa.com/coat-1.jpg"]
        assert store.get_price_history(tracked_item["id"]) == []

    @pytest.mark.parametrize("exc", [
        BlockedError("Blocked by site (HTTP 403)"),
        ScrapeTimeoutError("Timed out after 7000ms waiting for .size-list"),
        RuntimeError("browser crashed"),
    ])
    async def test_other_failures_keep_data(self, store, tracked_item, exc):
        error = await process_item(store, tracked_item, raising(exc))

        assert error is exc
        row = store.get_item(tracked_item["id"])
        assert row["status"] == FAILED
        assert row["last_check_error"] == str(exc)
        assert row["price"] == 125000
        assert row["currency"] == "EUR"
        assert row["in_stock"] is True
        assert row["available_sizes"] == [{"name": "IT 40", "in_stock": True}]
        assert store.get_price_history(tracked_item["id"]) == []

    async def test_success_without_price_keeps_last_price(self, store, tracked_item):
        product = ScrapedProduct(name="Belted wool coat", price_info=None, in_stock=False)

        await process_item(store, tracked_item, returning(product))

        row = store.get_item(tracked_item["id"])
        assert row["status"] == PROCESSED
        assert row["price"] == 125000
        assert row["currency"] == "EUR"
        assert row["in_stock"] is False
        assert store.get_price_history(tracked_item["id"]) == []

    async def test_success_clears_previous_error(self, store, make_item):
        item = make_item(status=FAILED, last_check_error="Blocked by site (HTTP 429)")
        product = ScrapedProduct(
            name="Coat",
            price_info=PriceInfo(9900, "GBP"),
            available_sizes=[SizeInfo("M", True)],
        )

        await process_item(store, item, returning(product))

        row = store.get_item(item["id"])
        assert row["status"] == PROCESSED
        assert row["last_check_error"] is None
        assert row["price"] == 9900


# =====================================================================
# Worker loop
# =====================================================================


class TestWorker:

    async def test_run_once_drains_queue(self, store, make_item, mock_client, mytheresa_page):
        url, html = mytheresa_page
        client, requested = mock_client({url: (200, html)})
        item = make_item(url)
        worker = Worker(store, partial(route_and_scrape, client=client), busy_sleep=(0, 0), idle_sleep=0)

        assert await worker.run_once() is True
        assert await worker.run_once() is False
        assert store.get_item(item["id"])["status"] == PROCESSED
        assert requested == [url]

    async def test_run_processes_in_order_until_stopped(self, store, make_item):
        first = make_item("https://www.mytheresa.com/en-de/a.html")
        second = make_item("https://www.mytheresa.com/en-de/b.html")
        seen = []

        async def route(url):
            seen.append(url)
            worker.stop()
            return ScrapedProduct(name="Coat", price_info=PriceInfo(100, "EUR"))

        worker = Worker(store, route, busy_sleep=(0, 0), idle_sleep=60)
        await asyncio.wait_for(worker.run(), timeout=5)

        assert seen == [first["url"]]
        assert store.get_item(first["id"])["status"] == PROCESSED
        assert store.get_item(second["id"])["status"] == PENDING

    async def test_stop_interrupts_idle_sleep(self, store):
        worker = Worker(store, returning(None), busy_sleep=(0, 0), idle_sleep=3600)
        asyncio.get_running_loop().call_later(0.05, worker.stop)

        await asyncio.wait_for(worker.run(), timeout=5)

        assert worker.stopping

    async def test_store_errors_do_not_kill_loop(self):
        calls = []

        class FlakyStore(MemoryItemStore):
            def get_next_pending_item(self):
                calls.append(1)
                if len(calls) == 1:
                    raise ConnectionError("store unreachable")
                worker.stop()
                return None

        worker = Worker(FlakyStore(), returning(None), busy_sleep=(0, 0), idle_sleep=0)
        await asyncio.wait_for(worker.run(), timeout=5)

        assert len(calls) == 2


# =====================================================================
# Manual operations
# =====================================================================


class TestCheckItem:

    async def test_returns_updated_row(self, store, tracked_item):
        product = ScrapedProduct(name="Coat", price_info=PriceInfo(99000, "EUR"))

        row = await check_item(store, tracked_item["id"], route=returning(product))

        assert row["price"] == 99000
        assert row["status"] == PROCESSED
        assert len(store.get_price_history(tracked_item["id"])) == 1

    async def test_reraises_after_persisting(self, store, tracked_item):
        exc = BlockedError("Blocked by site (HTTP 403)")

        with pytest.raises(BlockedError) as exc_info:
            await check_item(store, tracked_item["id"], route=raising(exc))

        assert exc_info.value is exc
        assert store.get_item(tracked_item["id"])["status"] == FAILED

    async def test_unknown_item(self, store):
        with pytest.raises(KeyError):
            await check_item(store, "missing-id", route=returning(None))


class TestRequeueItems:

    def test_requeues_processed_and_failed_only(self, store, make_item):
        processed = make_item(status=PROCESSED)
        failed = make_item(status=FAILED)
        pending = make_item(status=PENDING)
        dead = make_item(status=LINK_DEAD)

        assert requeue_items(store) == 2

        assert store.get_item(processed["id"])["status"] == PENDING
        assert store.get_item(failed["id"])["status"] == PENDING
        assert store.get_item(pending["id"])["status"] == PENDING
        assert store.get_item(dead["id"])["status"] == LINK_DEAD
