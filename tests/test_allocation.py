"""
Tests for `domain/allocation.py`.

Covers rules:
- Earliest-expiry batches are consumed first; undated batches last.
- Conservation: consumed quantities sum to the request when fulfilled.
- Shortage: every matching batch is fully consumed and the remainder is reported.
- Batches of other products and empty batches are never touched.
- The input snapshot is never mutated.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from domain.allocation import select_stock_for_product
from domain.stock import StockBatch, fefo_sort_key


def _utc(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, 0, 0, 0, tzinfo=timezone.utc)


def _consumed(plan) -> list[tuple[str, int]]:
    return [(a.stock_batch_id, a.consumed_quantity) for a in plan.selected]


def test_partial_second_batch_when_first_batch_is_short(fefo_batches) -> None:
    """Request 7 from B1(5, Jan 10) + B2(5, Feb 1) -> B1:5, B2:2, nothing remaining."""

    plan = select_stock_for_product("P1", 7, fefo_batches)

    assert _consumed(plan) == [("B1", 5), ("B2", 2)]
    assert plan.remaining_quantity == 0
    assert plan.is_fulfilled is True
    assert plan.allocated_quantity == 7


def test_shortage_consumes_everything_and_reports_remainder(fefo_batches) -> None:
    """Request 12 from 10 units -> both batches fully consumed, shortage of 2."""

    plan = select_stock_for_product("P1", 12, fefo_batches)

    assert _consumed(plan) == [("B1", 5), ("B2", 5)]
    assert plan.remaining_quantity == 2
    assert plan.is_fulfilled is False


@pytest.mark.parametrize("requested", [1, 4, 5, 6, 9, 10])
def test_conservation_when_stock_suffices(fefo_batches, requested: int) -> None:
    """Verify consumed amounts sum exactly to the request and never exceed a batch."""

    plan = select_stock_for_product("P1", requested, fefo_batches)

    assert plan.remaining_quantity == 0
    assert sum(a.consumed_quantity for a in plan.selected) == requested
    for allocation in plan.selected:
        assert 0 < allocation.consumed_quantity <= allocation.batch.quantity


@pytest.mark.parametrize("requested", [11, 15, 100])
def test_shortage_remainder_equals_request_minus_available(fefo_batches, requested: int) -> None:
    plan = select_stock_for_product("P1", requested, fefo_batches)

    assert plan.remaining_quantity == requested - 10
    assert all(a.remaining_in_batch == 0 for a in plan.selected)
    assert len(plan.selected) == 2


def test_consumption_order_is_non_decreasing_in_expiry_with_undated_last() -> None:
    """Verify a request spanning many batches walks them FEFO."""

    batches = [
        StockBatch(stock_batch_id="never", product_id="P1", quantity=4),
        StockBatch(stock_batch_id="mar", product_id="P1", quantity=2, expiry_date=_utc(2024, 3, 1)),
        StockBatch(stock_batch_id="jan", product_id="P1", quantity=2, expiry_date=_utc(2024, 1, 1)),
        StockBatch(stock_batch_id="feb", product_id="P1", quantity=2, expiry_date=_utc(2024, 2, 1)),
    ]

    plan = select_stock_for_product("P1", 9, batches)

    assert [a.stock_batch_id for a in plan.selected] == ["jan", "feb", "mar", "never"]
    keys = [fefo_sort_key(a.batch) for a in plan.selected]
    assert keys == sorted(keys)
    assert _consumed(plan)[-1] == ("never", 3)


def test_ties_on_expiry_are_consumed_in_input_order() -> None:
    expiry = _utc(2024, 5, 1)
    batches = [
        StockBatch(stock_batch_id="first", product_id="P1", quantity=3, expiry_date=expiry),
        StockBatch(stock_batch_id="second", product_id="P1", quantity=3, expiry_date=expiry),
    ]

    plan = select_stock_for_product("P1", 4, batches)

    assert _consumed(plan) == [("first", 3), ("second", 1)]


def test_other_products_and_empty_batches_are_ignored() -> None:
    batches = [
        StockBatch(stock_batch_id="empty", product_id="P1", quantity=0, expiry_date=_utc(2023, 1, 1)),
        StockBatch(stock_batch_id="other", product_id="P2", quantity=9, expiry_date=_utc(2023, 1, 1)),
        StockBatch(stock_batch_id="mine", product_id="P1", quantity=9, expiry_date=_utc(2024, 1, 1)),
    ]

    plan = select_stock_for_product("P1", 2, batches)

    assert _consumed(plan) == [("mine", 2)]


def test_unknown_product_is_a_full_shortage(fefo_batches) -> None:
    plan = select_stock_for_product("NOPE", 3, fefo_batches)

    assert plan.selected == ()
    assert plan.remaining_quantity == 3


def test_zero_request_selects_nothing(fefo_batches) -> None:
    plan = select_stock_for_product("P1", 0, fefo_batches)

    assert plan.selected == ()
    assert plan.remaining_quantity == 0
    assert plan.is_fulfilled is True


def test_negative_request_raises(fefo_batches) -> None:
    with pytest.raises(ValueError):
        select_stock_for_product("P1", -1, fefo_batches)


def test_allocation_does_not_mutate_input(fefo_batches) -> None:
    """Verify the caller's list and batches are unchanged after planning."""

    before_ids = [b.stock_batch_id for b in fefo_batches]
    before_quantities = [b.quantity for b in fefo_batches]

    plan = select_stock_for_product("P1", 7, fefo_batches)

    assert [b.stock_batch_id for b in fefo_batches] == before_ids
    assert [b.quantity for b in fefo_batches] == before_quantities
    assert plan.selected[1].batch.quantity == 5


def test_as_consumed_batch_is_a_capped_copy(fefo_batches) -> None:
    plan = select_stock_for_product("P1", 7, fefo_batches)
    allocation = plan.selected[1]

    consumed = allocation.as_consumed_batch()

    assert consumed.stock_batch_id == "B2"
    assert consumed.quantity == 2
    assert consumed is not allocation.batch
    assert allocation.batch.quantity == 5
