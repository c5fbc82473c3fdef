"""
Item store.

The worker only needs a handful of operations on tracked items and their
price history; :class:`ItemStore` names them.  Two implementations:

  - :class:`SupabaseItemStore` talks to the ``items`` / ``price_history``
    tables through the Supabase client.
  - :class:`MemoryItemStore` keeps everything in process; used for
    ``DRY_RUN`` and by the tests.

Rows are plain dicts in both cases.  Timestamps are ISO-8601 UTC strings.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from supabase import Client

from config.settings import DEFAULT_CURRENCY, ITEMS_TABLE, PRICE_HISTORY_DAYS, PRICE_HISTORY_TABLE
from models import PENDING

logger = logging.getLogger(__name__)


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _history_cutoff() -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=PRICE_HISTORY_DAYS)


class ItemStore(Protocol):
    def get_next_pending_item(self) -> dict[str, Any] | None: ...

    def get_item(self, item_id: str) -> dict[str, Any] | None: ...

    def list_items(self) -> list[dict[str, Any]]: ...

    def create_item(self, url: str, **fields: Any) -> dict[str, Any]: ...

    def update_item(self, item_id: str, fields: dict[str, Any]) -> dict[str, Any]: ...

    def add_price_history(self, entry: dict[str, Any]) -> dict[str, Any]: ...

    def get_price_history(self, item_id: str) -> list[dict[str, Any]]: ...


def _new_item(url: str, fields: dict[str, Any]) -> dict[str, Any]:
    now = utc_now()
    item: dict[str, Any] = {
        "url": url,
        "name": None,
        "images": [],
        "price": None,
        "currency": DEFAULT_CURRENCY,
        "size": None,
        "available_sizes": [],
        "available_colors": [],
        "in_stock": True,
        "description": None,
        "status": PENDING,
        "last_checked_at": None,
        "last_check_error": None,
        "created_at": now,
        "updated_at": now,
    }
    item.update(fields)
    return item


# ---------------------------------------------------------------------------
# In-process store
# ---------------------------------------------------------------------------


class MemoryItemStore:
    """Dict-backed store; items are yielded in insertion order."""

    def __init__(self) -> None:
        self._items: dict[str, dict[str, Any]] = {}
        self._history: list[dict[str, Any]] = []

    def get_next_pending_item(self) -> dict[str, Any] | None:
        for item in self._items.values():
            if item["status"] == PENDING:
                return dict(item)
        return None

    def get_item(self, item_id: str) -> dict[str, Any] | None:
        item = self._items.get(item_id)
        return dict(item) if item is not None else None

    def list_items(self) -> list[dict[str, Any]]:
        return [dict(item) for item in self._items.values()]

    def create_item(self, url: str, **fields: Any) -> dict[str, Any]:
        item = _new_item(url, fields)
        if not item.get("id"):
            item["id"] = str(uuid.uuid4())
        self._items[item["id"]] = item
        return dict(item)

    def update_item(self, item_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        if item_id not in self._items:
            raise KeyError(item_id)
        item = self._items[item_id]
        item.update(fields)
        item["updated_at"] = utc_now()
        return dict(item)

    def add_price_history(self, entry: dict[str, Any]) -> dict[str, Any]:
        row = {"id": str(uuid.uuid4()), "checked_at": utc_now(), **entry}
        self._history.append(row)
        return dict(row)

    def get_price_history(self, item_id: str) -> list[dict[str, Any]]:
        cutoff = _history_cutoff()
        rows = [
            row for row in self._history
            if row["item_id"] == item_id and datetime.fromisoformat(row["checked_at"]) >= cutoff
        ]
        return sorted((dict(r) for r in rows), key=lambda r: datetime.fromisoformat(r["checked_at"]))


# ---------------------------------------------------------------------------
# Supabase store
# ---------------------------------------------------------------------------


class SupabaseItemStore:
    """``items`` / ``price_history`` tables via the Supabase client."""

    def __init__(self, db: Client) -> None:
        self.db = db

    def get_next_pending_item(self) -> dict[str, Any] | None:
        result = (
            self.db.table(ITEMS_TABLE)
            .select("*")
            .eq("status", PENDING)
            .order("created_at")
            .limit(1)
            .execute()
        )
        return result.data[0] if result.data else None

    def get_item(self, item_id: str) -> dict[str, Any] | None:
        result = self.db.table(ITEMS_TABLE).select("*").eq("id", item_id).limit(1).execute()
        return result.data[0] if result.data else None

    def list_items(self) -> list[dict[str, Any]]:
        result = self.db.table(ITEMS_TABLE).select("*").order("created_at").execute()
        return result.data or []

    def create_item(self, url: str, **fields: Any) -> dict[str, Any]:
        row = _new_item(url, fields)
        result = self.db.table(ITEMS_TABLE).insert(row).execute()
        return result.data[0]

    def update_item(self, item_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        payload = {**fields, "updated_at": utc_now()}
        result = self.db.table(ITEMS_TABLE).update(payload).eq("id", item_id).execute()
        if not result.data:
            raise KeyError(item_id)
        return result.data[0]

    def add_price_history(self, entry: dict[str, Any]) -> dict[str, Any]:
        row = {"checked_at": utc_now(), **entry}
        result = self.db.table(PRICE_HISTORY_TABLE).insert(row).execute()
        return result.data[0]

    def get_price_history(self, item_id: str) -> list[dict[str, Any]]:
        result = (
            self.db.table(PRICE_HISTORY_TABLE)
            .select("*")
            .eq("item_id", item_id)
            .gte("checked_at", _history_cutoff().isoformat())
            .order("checked_at")
            .execute()
        )
        return result.data or []
