"""
Stock repository (persistence).

This module provides *only* persistence operations for the StockBatch domain
entity: loading a snapshot for the sale engine and receiving new lots. It
contains no allocation rules. Stock decrements are applied exclusively by the
atomic settlement RPC in `sale_repository`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional
from uuid import uuid4

from domain.stock import StockBatch
from domain.time import require_utc_timestamp
from repositories.client import get_supabase

# Supabase table name for stock batches.
# Keep this aligned with your database schema.
_STOCK_TABLE: str = "stock_batches"


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


def _row_to_batch(row: Mapping[str, Any]) -> StockBatch:
    """Convert a Supabase row into a StockBatch."""

    expiry_val = row.get("expiry_date_utc")
    return StockBatch(
        stock_batch_id=str(row["stock_batch_id"]),
        product_id=str(row["product_id"]),
        quantity=int(row["quantity"]),
        expiry_date=_parse_utc_datetime(expiry_val) if expiry_val is not None else None,
        batch_number=row.get("batch_number"),
    )


def load_stock_snapshot(tenant_id: str, product_ids: Optional[Iterable[str]] = None) -> List[StockBatch]:
    """
    Load stock batches for a tenant, optionally restricted to some products.

    Rows are ordered by receiving time so that batches sharing an expiry date
    are consumed oldest-received first.

    Returns:
        List[StockBatch] (possibly empty)
    """

    query = get_supabase().table(_STOCK_TABLE).select("*").eq("tenant_id", tenant_id)

    if product_ids is not None:
        ids = sorted(set(product_ids))
        if not ids:
            return []
        query = query.in_("product_id", ids)

    response = query.order("created_at_utc").execute()
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to load stock snapshot: {error}")

    rows = getattr(response, "data", None) or []
    return [_row_to_batch(row) for row in rows]


def create_stock_batch(
    tenant_id: str,
    product_id: str,
    quantity: int,
    expiry_date: Optional[datetime] = None,
    batch_number: Optional[str] = None,
) -> StockBatch:
    """
    Receive a new lot into stock.

    Args:
        tenant_id: Owning tenant
        product_id: Product received
        quantity: Units received (>= 0)
        expiry_date: UTC expiry timestamp, or None if the lot never expires
        batch_number: Lot code printed on the pack

    Returns:
        The stored StockBatch
    """

    batch = StockBatch(
        stock_batch_id=str(uuid4()),
        product_id=product_id,
        quantity=quantity,
        expiry_date=expiry_date,
        batch_number=batch_number,
    )

    payload: dict[str, Any] = {
        "stock_batch_id": batch.stock_batch_id,
        "tenant_id": tenant_id,
        "product_id": product_id,
        "quantity": quantity,
        "expiry_date_utc": _to_iso_utc(expiry_date, name="expiry_date") if expiry_date is not None else None,
        "batch_number": batch_number,
        "created_at_utc": datetime.now(timezone.utc).isoformat(),
    }

    response = get_supabase().table(_STOCK_TABLE).insert(payload).execute()
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to create stock batch: {error}")

    return batch


__all__ = [
    "create_stock_batch",
    "load_stock_snapshot",
]
