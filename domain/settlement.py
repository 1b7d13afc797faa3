"""
Domain: Sale validation and settlement planning.

Rules implemented here:
- Lines are aggregated by product before allocation (a sale may list the
  same product more than once).
- Each product is allocated FEFO; a product that cannot be fully allocated
  yields a ShortageError and contributes no decrements.
- A sale is all-or-nothing: any shortage rejects the whole sale and no
  decrements or draft are returned.
- The total is computed from the requested lines (caller prices), not from
  the allocated batches.

Nothing here persists anything. The caller commits the draft and the
decrements as one atomic unit against the same snapshot it passed in.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .allocation import AllocationPlan, select_stock_for_product
from .sale import SaleDraft, SaleLineRequest, ShortageError, StockDecrement
from .stock import StockBatch


@dataclass(frozen=True, slots=True)
class SaleValidation:
    """Outcome of validating a sale against a stock snapshot."""

    is_valid: bool
    errors: Tuple[ShortageError, ...]
    stock_decrements: Tuple[StockDecrement, ...]


@dataclass(frozen=True, slots=True)
class SettlementResult:
    """
    Outcome of planning a sale.

    success=True: sale_draft is set and stock_decrements lists every touched batch.
    success=False: sale_draft is None, stock_decrements is empty, errors explain why.
    """

    success: bool
    sale_draft: Optional[SaleDraft]
    stock_decrements: Tuple[StockDecrement, ...]
    errors: Tuple[ShortageError, ...]

    @property
    def error_messages(self) -> List[str]:
        return [e.message for e in self.errors]


def _aggregate_by_product(lines: Sequence[SaleLineRequest]) -> Dict[str, int]:
    """Sum requested quantity per product, preserving first-seen order."""

    totals: Dict[str, int] = {}
    for line in lines:
        totals[line.product_id] = totals.get(line.product_id, 0) + line.quantity
    return totals


def _decrements_for(plan: AllocationPlan) -> List[StockDecrement]:
    return [
        StockDecrement(
            stock_batch_id=allocation.stock_batch_id,
            new_quantity=max(0, allocation.batch.quantity - allocation.consumed_quantity),
            previous_quantity=allocation.batch.quantity,
        )
        for allocation in plan.selected
    ]


def validate_sale(
    lines: Sequence[SaleLineRequest],
    available_batches: Sequence[StockBatch],
) -> SaleValidation:
    """
    Check whether every product in `lines` can be fully allocated.

    Returns:
        SaleValidation with one ShortageError per short product and, for the
        products that allocate fully, one StockDecrement per consumed batch.
    """
    errors: List[ShortageError] = []
    decrements: List[StockDecrement] = []

    for product_id, requested in _aggregate_by_product(lines).items():
        plan = select_stock_for_product(product_id, requested, available_batches)

        if not plan.is_fulfilled:
            errors.append(ShortageError(
                product_id=product_id,
                shortfall=plan.remaining_quantity,
                requested=requested,
                available=plan.allocated_quantity,
            ))
            continue

        decrements.extend(_decrements_for(plan))

    return SaleValidation(
        is_valid=not errors,
        errors=tuple(errors),
        stock_decrements=tuple(decrements),
    )


def process_sale(
    lines: Sequence[SaleLineRequest],
    available_batches: Sequence[StockBatch],
) -> SettlementResult:
    """
    Plan a sale: validate it and, if valid, build the draft and decrements.

    An empty `lines` plans a zero-total sale with no decrements.

    Example:
        result = process_sale(lines, snapshot)
        if result.success:
            commit(result.sale_draft, result.stock_decrements)  # one transaction
        else:
            show(result.error_messages)
    """
    validation = validate_sale(lines, available_batches)

    if not validation.is_valid:
        return SettlementResult(
            success=False,
            sale_draft=None,
            stock_decrements=(),
            errors=validation.errors,
        )

    return SettlementResult(
        success=True,
        sale_draft=SaleDraft.from_lines(lines),
        stock_decrements=validation.stock_decrements,
        errors=(),
    )


__all__ = [
    "SaleValidation",
    "SettlementResult",
    "process_sale",
    "validate_sale",
]
