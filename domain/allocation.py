"""
Domain: FEFO stock allocation for a single product.

Given a product, a requested quantity and a snapshot of stock batches, decide
which batches to consume and how much from each.

Rules implemented here:
- Only batches of the requested product with quantity > 0 are candidates.
- Candidates are consumed earliest-expiry first; undated batches last; ties
  keep input order (FEFO).
- Each batch contributes min(batch.quantity, remaining) until the request is
  met or candidates run out.
- sum(consumed) == requested when remaining_quantity == 0; otherwise every
  candidate is fully consumed and remaining_quantity is the shortage.
- The input snapshot is never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .stock import StockBatch, fefo_order


@dataclass(frozen=True, slots=True)
class BatchAllocation:
    """Quantity taken from one batch. `batch` is the untouched snapshot."""

    batch: StockBatch
    consumed_quantity: int

    @property
    def stock_batch_id(self) -> str:
        return self.batch.stock_batch_id

    @property
    def remaining_in_batch(self) -> int:
        return self.batch.quantity - self.consumed_quantity

    def as_consumed_batch(self) -> StockBatch:
        """A new batch value carrying only the consumed quantity."""

        return self.batch.with_quantity(self.consumed_quantity)


@dataclass(frozen=True, slots=True)
class AllocationPlan:
    """Result of allocating one product."""

    product_id: str
    requested_quantity: int
    selected: Tuple[BatchAllocation, ...]
    remaining_quantity: int

    @property
    def allocated_quantity(self) -> int:
        return sum(a.consumed_quantity for a in self.selected)

    @property
    def is_fulfilled(self) -> bool:
        return self.remaining_quantity == 0


def select_stock_for_product(
    product_id: str,
    requested_quantity: int,
    available_batches: Sequence[StockBatch],
) -> AllocationPlan:
    """
    Select batches for `product_id` in FEFO order.

    Args:
        product_id: Product to allocate
        requested_quantity: Units requested (>= 0)
        available_batches: Snapshot of batches; may include other products

    Returns:
        AllocationPlan with the touched batches and any unconsumed remainder

    Raises:
        ValueError: If requested_quantity is negative

    Example:
        plan = select_stock_for_product("prod-1", 7, batches)
        # plan.selected -> (B1 x5, B2 x2), plan.remaining_quantity -> 0
    """
    if requested_quantity < 0:
        raise ValueError("requested_quantity must be >= 0")

    candidates = fefo_order(
        b for b in available_batches if b.product_id == product_id and b.quantity > 0
    )

    selected: List[BatchAllocation] = []
    remaining = requested_quantity

    for batch in candidates:
        if remaining <= 0:
            break
        take = min(batch.quantity, remaining)
        selected.append(BatchAllocation(batch=batch, consumed_quantity=take))
        remaining -= take

    return AllocationPlan(
        product_id=product_id,
        requested_quantity=requested_quantity,
        selected=tuple(selected),
        remaining_quantity=remaining,
    )


__all__ = [
    "AllocationPlan",
    "BatchAllocation",
    "select_stock_for_product",
]
