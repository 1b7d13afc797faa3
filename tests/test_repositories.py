"""
Tests for row mapping and RPC handling in `repositories/`.

The Supabase client is replaced with a small fake query builder; no network.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from uuid import UUID

import pytest

from domain.sale import SaleDraft, SaleLineRequest, StockDecrement
from repositories import product_repository, sale_repository, stock_repository

SALE_ID = "00000000-0000-0000-0000-0000000000bb"


class FakeQuery:
    """Records builder calls and returns a canned response on execute()."""

    def __init__(self, client, name):
        self.client = client
        self.name = name
        self.calls = []

    def __getattr__(self, method):
        def record(*args, **kwargs):
            self.calls.append((method, args, kwargs))
            return self
        return record

    def execute(self):
        self.client.executed.append(self)
        return self.client.responses.pop(0)


class FakeClient:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.executed = []

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, name, params):
        query = FakeQuery(self, name)
        query.calls.append(("rpc", (params,), {}))
        return query


def _response(data=None, error=None):
    return SimpleNamespace(data=data, error=error)


@pytest.fixture
def fake_client(monkeypatch):
    def install(*responses):
        client = FakeClient(*responses)
        for module in (product_repository, sale_repository, stock_repository):
            monkeypatch.setattr(module, "get_supabase", lambda: client)
        return client
    return install


def test_load_stock_snapshot_maps_rows(fake_client) -> None:
    client = fake_client(_response([
        {
            "stock_batch_id": "b1",
            "product_id": "P1",
            "quantity": 7,
            "expiry_date_utc": "2024-01-10T00:00:00Z",
            "batch_number": "LOT-1",
        },
        {"stock_batch_id": "b2", "product_id": "P1", "quantity": "3", "expiry_date_utc": None},
    ]))

    batches = stock_repository.load_stock_snapshot("t1", ["P1"])

    assert [(b.stock_batch_id, b.quantity) for b in batches] == [("b1", 7), ("b2", 3)]
    assert batches[0].expiry_date == datetime(2024, 1, 10, tzinfo=timezone.utc)
    assert batches[0].batch_number == "LOT-1"
    assert batches[1].expiry_date is None

    methods = [c[0] for c in client.executed[0].calls]
    assert methods == ["select", "eq", "in_", "order"]


def test_load_stock_snapshot_with_no_products_skips_query(fake_client) -> None:
    client = fake_client()

    assert stock_repository.load_stock_snapshot("t1", []) == []
    assert client.executed == []


def test_load_stock_snapshot_raises_on_error(fake_client) -> None:
    fake_client(_response(error="permission denied"))

    with pytest.raises(RuntimeError):
        stock_repository.load_stock_snapshot("t1")


def test_list_products_maps_prices_to_decimal(fake_client) -> None:
    fake_client(_response([{"product_id": "P1", "name": "Paracetamol", "unit_price": 2.5}]))

    products = product_repository.list_products("t1")

    assert products[0].unit_price == Decimal("2.5")
    assert products[0].description is None


def test_line_items_round_trip_through_json_shape() -> None:
    lines = (SaleLineRequest(product_id="P1", quantity=2, unit_price=Decimal("3.10")),)

    encoded = sale_repository.encode_line_items(lines)

    assert encoded == [{"product_id": "P1", "quantity": 2, "unit_price": "3.10"}]
    assert sale_repository.decode_line_items(encoded) == lines
    assert sale_repository.decode_line_items(None) == ()


def _draft() -> SaleDraft:
    return SaleDraft.from_lines([SaleLineRequest(product_id="P1", quantity=2, unit_price=Decimal("3.00"))])


def test_commit_sale_atomic_sends_compare_and_set_payload(fake_client) -> None:
    client = fake_client(_response({"success": True, "sale_id": SALE_ID}))
    decrements = [StockDecrement(stock_batch_id="b1", new_quantity=3, previous_quantity=5)]

    result = sale_repository.commit_sale_atomic(
        "t1", _draft(), decrements, datetime(2025, 1, 1, tzinfo=timezone.utc)
    )

    assert result.success is True
    assert result.sale_id == UUID(SALE_ID)

    query = client.executed[0]
    assert query.name == "settle_sale_atomic"
    params = query.calls[0][1][0]
    assert params["p_tenant_id"] == "t1"
    assert params["p_total"] == "6.00"
    assert params["p_decrements"] == [{"stock_batch_id": "b1", "new_quantity": 3, "expected_quantity": 5}]
    assert params["p_items"] == [{"product_id": "P1", "quantity": 2, "unit_price": "3.00"}]


def test_commit_sale_atomic_reports_function_failure(fake_client) -> None:
    fake_client(_response({"success": False, "error": "STOCK_CONFLICT", "message": "changed"}))

    result = sale_repository.commit_sale_atomic("t1", _draft(), [], datetime(2025, 1, 1, tzinfo=timezone.utc))

    assert result.success is False
    assert result.is_conflict is True
    assert result.error_message == "changed"


def test_raised_conflict_payload_is_unwrapped() -> None:
    body = {
        "code": "P0001",
        "message": '{"success" : false, "error" : "STOCK_CONFLICT", "message" : "Stock batch b1 changed"}',
    }

    assert sale_repository._unwrap_raised_payload(body)["error"] == "STOCK_CONFLICT"
    assert sale_repository._unwrap_raised_payload({"message": "plain"}) == {"message": "plain"}


def test_commit_sale_atomic_requires_utc_sold_at(fake_client) -> None:
    fake_client()

    with pytest.raises(ValueError):
        sale_repository.commit_sale_atomic("t1", _draft(), [], datetime(2025, 1, 1))


def test_get_sale_by_id_maps_row(fake_client) -> None:
    fake_client(_response([{
        "sale_id": SALE_ID,
        "tenant_id": "t1",
        "total": "6.00",
        "items": [{"product_id": "P1", "quantity": 2, "unit_price": "3.00"}],
        "sold_at_utc": "2025-01-01T10:00:00+00:00",
    }]))

    record = sale_repository.get_sale_by_id("t1", UUID(SALE_ID))

    assert record is not None
    assert record.total == Decimal("6.00")
    assert record.line_items[0].quantity == 2
    assert record.sold_at == datetime(2025, 1, 1, 10, tzinfo=timezone.utc)


def test_get_sale_by_id_returns_none_when_missing(fake_client) -> None:
    fake_client(_response([]))

    assert sale_repository.get_sale_by_id("t1", UUID(SALE_ID)) is None


def test_get_sales_total_for_day(fake_client) -> None:
    client = fake_client(_response([{"total": "6.00"}, {"total": 4.5}]))

    total = sale_repository.get_sales_total_for_day("t1", date(2025, 1, 1))

    assert total == Decimal("10.50")
    calls = client.executed[0].calls
    assert ("gte", ("sold_at_utc", "2025-01-01T00:00:00+00:00"), {}) in calls
    assert ("lt", ("sold_at_utc", "2025-01-02T00:00:00+00:00"), {}) in calls


def test_get_products_by_ids_filters_and_short_circuits(fake_client) -> None:
    client = fake_client(_response([{"product_id": "P2", "name": "Syrup", "unit_price": "12.00"}]))

    assert product_repository.get_products_by_ids("t1", []) == []
    products = product_repository.get_products_by_ids("t1", ["P2", "P2"])

    assert [p.product_id for p in products] == ["P2"]
    assert ("in_", ("product_id", ["P2"]), {}) in client.executed[0].calls


def test_create_stock_batch_serializes_expiry(fake_client) -> None:
    client = fake_client(_response([{}]))
    expiry = datetime(2026, 3, 1, tzinfo=timezone.utc)

    batch = stock_repository.create_stock_batch("t1", "P1", 40, expiry_date=expiry, batch_number="LOT-9")

    assert batch.quantity == 40
    method, args, _ = client.executed[0].calls[0]
    assert method == "insert"
    payload = args[0]
    assert payload["stock_batch_id"] == batch.stock_batch_id
    assert payload["expiry_date_utc"] == "2026-03-01T00:00:00+00:00"
    assert payload["batch_number"] == "LOT-9"


def test_create_stock_batch_rejects_naive_expiry(fake_client) -> None:
    fake_client()

    with pytest.raises(ValueError):
        stock_repository.create_stock_batch("t1", "P1", 1, expiry_date=datetime(2026, 3, 1))


def test_list_sales_orders_newest_first(fake_client) -> None:
    client = fake_client(_response([]))

    assert sale_repository.list_sales("t1", limit=5) == []
    calls = client.executed[0].calls
    assert ("order", ("sold_at_utc",), {"desc": True}) in calls
    assert ("limit", (5,), {}) in calls
