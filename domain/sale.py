"""
Domain: Sale requests, planned sale records and stock decrements.

Rules implemented here:
- A sale is requested as a sequence of SaleLineRequest values; the unit price
  is supplied by the caller and never looked up.
- A SaleDraft is the planned, not-yet-persisted sale record:
  total = sum(unit_price * quantity) over the requested lines.
- A StockDecrement is the post-sale quantity for one batch:
  new_quantity = max(0, previous_quantity - consumed).
- A ShortageError describes a product whose requested quantity exceeds what
  its batches hold. Errors are values, not exceptions.
- A SaleRecord is a committed sale read back from storage; its sold_at is UTC.

This module captures values only. Allocation and settlement decisions live in
`allocation.py` and `settlement.py`. Storage encoding of line items belongs to
the persistence layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Sequence, Tuple
from uuid import UUID

from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class SaleLineRequest:
    """One requested line of a sale."""

    product_id: str
    quantity: int
    unit_price: Decimal

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValueError("quantity must be > 0")
        if self.unit_price < 0:
            raise ValueError("unit_price must be >= 0")

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True, slots=True)
class StockDecrement:
    """
    Planned quantity change for one stock batch.

    previous_quantity is the snapshot quantity the plan was computed against;
    the storage layer uses it as the compare-and-set guard.
    """

    stock_batch_id: str
    new_quantity: int
    previous_quantity: int

    @property
    def consumed_quantity(self) -> int:
        return self.previous_quantity - self.new_quantity


@dataclass(frozen=True, slots=True)
class SaleDraft:
    """Planned sale record. Not persisted; has no identifier."""

    total: Decimal
    line_items: Tuple[SaleLineRequest, ...]

    @staticmethod
    def from_lines(lines: Sequence[SaleLineRequest]) -> "SaleDraft":
        total = sum((line.line_total for line in lines), Decimal("0"))
        return SaleDraft(total=total, line_items=tuple(lines))


@dataclass(frozen=True, slots=True)
class ShortageError:
    """
    Requested quantity for a product exceeds the total across its batches.

    shortfall = requested - available.
    """

    product_id: str
    shortfall: int
    requested: int
    available: int

    @property
    def message(self) -> str:
        return f"Insufficient stock for product {self.product_id}. Need {self.shortfall} more units."


@dataclass(frozen=True, slots=True)
class SaleRecord:
    """
    Immutable record of a committed sale, as read back from storage.

    The identifier and timestamp are assigned by the persistence layer.
    """

    sale_id: UUID
    tenant_id: str
    total: Decimal
    line_items: Tuple[SaleLineRequest, ...]
    sold_at: datetime

    def __post_init__(self) -> None:
        require_utc_timestamp("sold_at", self.sold_at)


__all__ = [
    "SaleDraft",
    "SaleLineRequest",
    "SaleRecord",
    "ShortageError",
    "StockDecrement",
]
