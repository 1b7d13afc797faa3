"""
Sale repository (persistence).

This module provides persistence operations for sales:
- Atomic commit of a planned sale (insert sale + apply stock decrements) via
  the `settle_sale_atomic()` PostgreSQL function.
- Reads of committed SaleRecord values.

It does not enforce business rules (allocation, all-or-nothing); those are
decided by the domain before anything reaches this module. Line items are
encoded to JSON here and nowhere else.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence
from uuid import UUID, uuid4

from domain.sale import SaleDraft, SaleLineRequest, SaleRecord, StockDecrement
from domain.time import require_utc_timestamp
from repositories.client import get_supabase

# Supabase table name for sale records.
# Keep this aligned with your database schema.
_SALES_TABLE: str = "sales"

# Error code raised by settle_sale_atomic() when a batch quantity no longer
# matches the snapshot the plan was computed against.
STOCK_CONFLICT: str = "STOCK_CONFLICT"


@dataclass(frozen=True, slots=True)
class AtomicSettlementResult:
    """Result from the settle_sale_atomic PostgreSQL function."""
    success: bool
    sale_id: Optional[UUID]
    error_code: Optional[str]
    error_message: Optional[str]

    @property
    def is_conflict(self) -> bool:
        return self.error_code == STOCK_CONFLICT


def _to_iso_utc(dt: datetime, *, name: str) -> str:
    """Serialize a UTC datetime to ISO-8601 (timezone-aware, offset 0)."""

    require_utc_timestamp(name, dt)
    return dt.astimezone(timezone.utc).isoformat()


def _parse_utc_datetime(value: Any) -> datetime:
    """
    Parse a Supabase timestamp into a timezone-aware UTC datetime.

    Supabase commonly returns ISO-8601 strings, sometimes with a trailing 'Z'.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def encode_line_items(lines: Sequence[SaleLineRequest]) -> List[Dict[str, Any]]:
    """Encode line items for the `items` jsonb column. Prices travel as strings."""

    return [
        {
            "product_id": line.product_id,
            "quantity": line.quantity,
            "unit_price": str(line.unit_price),
        }
        for line in lines
    ]


def decode_line_items(items: Any) -> tuple[SaleLineRequest, ...]:
    """Decode the `items` jsonb column back into SaleLineRequest values."""

    return tuple(
        SaleLineRequest(
            product_id=str(item["product_id"]),
            quantity=int(item["quantity"]),
            unit_price=Decimal(str(item["unit_price"])),
        )
        for item in (items or [])
    )


def _unwrap_raised_payload(error_data: Mapping[str, Any]) -> Mapping[str, Any]:
    """
    settle_sale_atomic() aborts with `raise exception` whose message is a JSON
    object; PostgREST nests that text under "message". Return the inner object
    when present, else the error body unchanged.
    """

    message = error_data.get("message")
    if isinstance(message, str) and message.lstrip().startswith("{"):
        try:
            inner = json.loads(message)
        except ValueError:
            return error_data
        if isinstance(inner, dict):
            return inner
    return error_data


def _row_to_sale(row: Mapping[str, Any]) -> SaleRecord:
    """Convert a Supabase row into a SaleRecord."""

    return SaleRecord(
        sale_id=UUID(str(row["sale_id"])),
        tenant_id=str(row["tenant_id"]),
        total=Decimal(str(row["total"])),
        line_items=decode_line_items(row.get("items")),
        sold_at=_parse_utc_datetime(row["sold_at_utc"]),
    )


def commit_sale_atomic(
    tenant_id: str,
    draft: SaleDraft,
    decrements: Sequence[StockDecrement],
    sold_at: datetime,
) -> AtomicSettlementResult:
    """
    Insert a sale and apply its stock decrements in one transaction.

    Calls settle_sale_atomic() which:
    - Locks every referenced stock batch row
    - Verifies each row's quantity still equals previous_quantity
      (raises STOCK_CONFLICT otherwise)
    - Sets quantity := new_quantity for each batch
    - Inserts the sale row
    All in a single atomic transaction.

    Args:
        tenant_id: Owning tenant
        draft: Planned sale (total and line items)
        decrements: Planned stock decrements with their snapshot quantities
        sold_at: UTC timestamp of the sale

    Returns:
        AtomicSettlementResult with success status and sale_id or error
    """
    from postgrest.exceptions import APIError

    sale_id = uuid4()

    params: dict[str, Any] = {
        "p_sale_id": str(sale_id),
        "p_tenant_id": tenant_id,
        "p_total": str(draft.total),
        "p_items": encode_line_items(draft.line_items),
        "p_decrements": [
            {
                "stock_batch_id": d.stock_batch_id,
                "new_quantity": d.new_quantity,
                "expected_quantity": d.previous_quantity,
            }
            for d in decrements
        ],
        "p_sold_at": _to_iso_utc(sold_at, name="sold_at"),
    }

    try:
        response = get_supabase().rpc("settle_sale_atomic", params).execute()
    except APIError as e:
        # supabase-py raises APIError for JSON bodies returned by the function,
        # for success responses as well as errors.
        try:
            error_data = e.json() if callable(getattr(e, "json", None)) else {}
        except (TypeError, ValueError):
            error_data = {}
        error_data = _unwrap_raised_payload(error_data or {})

        if error_data.get("success") is True:
            return AtomicSettlementResult(
                success=True,
                sale_id=UUID(error_data["sale_id"]),
                error_code=None,
                error_message=None,
            )

        return AtomicSettlementResult(
            success=False,
            sale_id=None,
            error_code=error_data.get("error") or getattr(e, "code", None) or "API_ERROR",
            error_message=error_data.get("message", str(e)),
        )

    error = getattr(response, "error", None)
    if error:
        return AtomicSettlementResult(
            success=False,
            sale_id=None,
            error_code="RPC_ERROR",
            error_message=str(error),
        )

    result = response.data or {}

    if result.get("success"):
        return AtomicSettlementResult(
            success=True,
            sale_id=UUID(str(result.get("sale_id", sale_id))),
            error_code=None,
            error_message=None,
        )

    return AtomicSettlementResult(
        success=False,
        sale_id=None,
        error_code=result.get("error"),
        error_message=result.get("message"),
    )


def get_sale_by_id(tenant_id: str, sale_id: UUID) -> Optional[SaleRecord]:
    """
    Retrieve a single sale record by its ID.

    Returns:
        SaleRecord or None if not found
    """

    response = (
        get_supabase()
        .table(_SALES_TABLE)
        .select("*")
        .eq("tenant_id", tenant_id)
        .eq("sale_id", str(sale_id))
        .limit(1)
        .execute()
    )
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to get sale: {error}")

    rows = getattr(response, "data", None) or []

    if not rows:
        return None

    return _row_to_sale(rows[0])


def list_sales(tenant_id: str, limit: int = 100) -> List[SaleRecord]:
    """
    Retrieve the most recent sales for a tenant, newest first.

    Returns:
        List[SaleRecord] (possibly empty)
    """

    response = (
        get_supabase()
        .table(_SALES_TABLE)
        .select("*")
        .eq("tenant_id", tenant_id)
        .order("sold_at_utc", desc=True)
        .limit(limit)
        .execute()
    )
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to list sales: {error}")

    rows = getattr(response, "data", None) or []
    return [_row_to_sale(row) for row in rows]


def get_sales_total_for_day(tenant_id: str, day: date) -> Decimal:
    """
    Sum of sale totals for one UTC calendar day.

    Returns:
        Decimal total (0 when there were no sales)
    """

    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    end = start + timedelta(days=1)

    response = (
        get_supabase()
        .table(_SALES_TABLE)
        .select("total")
        .eq("tenant_id", tenant_id)
        .gte("sold_at_utc", start.isoformat())
        .lt("sold_at_utc", end.isoformat())
        .execute()
    )
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to total sales: {error}")

    rows = getattr(response, "data", None) or []
    return sum((Decimal(str(row["total"])) for row in rows), Decimal("0"))


__all__ = [
    "AtomicSettlementResult",
    "STOCK_CONFLICT",
    "commit_sale_atomic",
    "decode_line_items",
    "encode_line_items",
    "get_sale_by_id",
    "get_sales_total_for_day",
    "list_sales",
]
