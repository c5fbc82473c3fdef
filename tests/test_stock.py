"""Tests for stock.py: in-stock inference precedence."""

from __future__ import annotations

import pytest

from models import SizeInfo
from stock import (
    StockSignals,
    any_size_in_stock,
    availability_from_schema,
    has_negative_signal,
    infer_stock,
)


# =====================================================================
# infer_stock()
# =====================================================================


class TestInferStock:

    def test_one_available_size_is_in_stock(self):
        sizes = [SizeInfo("S", False), SizeInfo("M", True), SizeInfo("L", False)]
        assert infer_stock(sizes) is True

    def test_all_sizes_unavailable_and_sold_out_text(self):
        sizes = [SizeInfo("S", False), SizeInfo("M", False)]
        assert infer_stock(sizes, StockSignals(text="This item is Sold Out")) is False

    def test_no_sizes_and_add_to_cart_enabled(self):
        assert infer_stock([], StockSignals(add_to_cart_enabled=True)) is True

    # ── Precedence ─────────────────────────────────────────────────

    def test_available_size_beats_negative_text(self):
        signals = StockSignals(structured=False, text="sold out")
        assert infer_stock([SizeInfo("M", True)], signals) is True

    def test_structured_beats_text(self):
        assert infer_stock([], StockSignals(structured=True, text="out of stock")) is True
        assert infer_stock([], StockSignals(structured=False, add_to_cart_enabled=True)) is False

    def test_negative_text_beats_add_to_cart(self):
        signals = StockSignals(text="Currently unavailable", add_to_cart_enabled=True)
        assert infer_stock([], signals) is False

    def test_positive_text(self):
        assert infer_stock([], StockSignals(text="<button>Add to bag</button>"), default=False) is True

    def test_disabled_add_to_cart_is_not_positive(self):
        assert infer_stock([], StockSignals(add_to_cart_enabled=False), default=False) is False

    @pytest.mark.parametrize("default", [True, False])
    def test_no_evidence_uses_default(self, default):
        assert infer_stock([], default=default) is default
        assert infer_stock([SizeInfo("M", False)], StockSignals(), default=default) is default


# =====================================================================
# Signal helpers
# =====================================================================


class TestSignals:

    @pytest.mark.parametrize("value,expected", [
        ("https://schema.org/InStock", True),
        ("http://schema.org/LimitedAvailability", True),
        ("InStock", True),
        ("PreOrder", True),
        ("https://schema.org/OutOfStock", False),
        ("SoldOut", False),
        ("Discontinued", False),
        ("", None),
        ("Unknown", None),
        (None, None),
        (1, None),
    ])
    def test_availability_from_schema(self, value, expected):
        assert availability_from_schema(value) is expected

    @pytest.mark.parametrize("text", [
        "OUT OF STOCK",
        "no longer available",
        '<div class="pdp out-of-stock">',
        '{"availability": "https://schema.org/OutOfStock"}',
        '{"inStock": false}',
    ])
    def test_negative_markers(self, text):
        assert has_negative_signal(text)

    def test_plain_text_has_no_negative_marker(self):
        assert not has_negative_signal("A lovely wool coat in navy")

    def test_any_size_in_stock(self):
        assert any_size_in_stock([SizeInfo("M", True)])
        assert not any_size_in_stock([SizeInfo("M", False)])
        assert not any_size_in_stock([])
