"""
Domain: Stock batches (receiving lots) and FEFO ordering.

Rules implemented here:
- A StockBatch is one receiving lot of a product with its own quantity and
  optional expiry date.
- quantity >= 0 always.
- A batch without an expiry date never expires and sorts after every dated
  batch (effective expiry = +infinity).
- FEFO ordering is ascending by effective expiry; batches sharing the same
  effective expiry keep their input order.

This module contains only pure value objects: no I/O, no database, no frameworks.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class StockBatch:
    """
    Immutable snapshot of one receiving lot.

    Quantity changes are expressed by building a new instance
    (see `with_quantity`), never by mutating a snapshot.
    """

    stock_batch_id: str
    product_id: str
    quantity: int
    expiry_date: Optional[datetime] = None
    batch_number: Optional[str] = None

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValueError("quantity must be >= 0")
        if self.expiry_date is not None:
            require_utc_timestamp("expiry_date", self.expiry_date)

    @property
    def never_expires(self) -> bool:
        return self.expiry_date is None

    def with_quantity(self, quantity: int) -> "StockBatch":
        """Return a copy of this batch carrying `quantity`."""

        return StockBatch(
            stock_batch_id=self.stock_batch_id,
            product_id=self.product_id,
            quantity=quantity,
            expiry_date=self.expiry_date,
            batch_number=self.batch_number,
        )


def fefo_sort_key(batch: StockBatch) -> Tuple[bool, Optional[datetime]]:
    """
    Sort key for FEFO ordering.

    Undated batches map to (True, None) and sort after every (False, expiry)
    key. Two undated keys compare equal, so None is never ordered.
    """

    if batch.expiry_date is None:
        return (True, None)
    return (False, batch.expiry_date)


def fefo_order(batches: Iterable[StockBatch]) -> List[StockBatch]:
    """Return `batches` in FEFO order (stable for equal expiry)."""

    return sorted(batches, key=fefo_sort_key)


__all__ = [
    "StockBatch",
    "fefo_order",
    "fefo_sort_key",
]
