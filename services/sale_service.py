"""
Sale service for executing point-of-sale transactions.

Handles:
- Loading a stock snapshot for the products in the sale
- Planning the sale with the FEFO settlement engine (pure, all-or-nothing)
- Committing sale + stock decrements through settle_sale_atomic()
- Transparent retry when stock changed between snapshot and commit

Shortages are never retried: they are a business outcome for the user to
resolve (e.g. by reducing the quantity).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from domain.sale import SaleLineRequest, ShortageError, StockDecrement
from domain.settlement import process_sale
from repositories.sale_repository import commit_sale_atomic
from repositories.stock_repository import load_stock_snapshot
from services.config import ServiceConfig, get_config

logger = logging.getLogger(__name__)


class SaleFailure(str, Enum):
    SHORTAGE = "shortage"
    CONFLICT = "conflict"
    STORAGE = "storage"


@dataclass(frozen=True, slots=True)
class SaleRequest:
    """Request to sell the given lines from a tenant's stock."""
    tenant_id: str
    lines: Sequence[SaleLineRequest]


@dataclass(frozen=True, slots=True)
class SaleOutcome:
    """
    Result of a sale attempt.

    success: True if the sale was committed
    sale_id: Identifier assigned by storage (None on failure)
    total: Sale total (0 on failure)
    stock_decrements: Decrements applied (empty on failure)
    shortages: Per-product shortages (only for SHORTAGE failures)
    failure: Why the sale failed (None on success)
    errors: Human-readable messages (empty if success=True)
    attempts: Snapshot+commit attempts made
    """
    success: bool
    sale_id: Optional[UUID]
    total: Decimal
    stock_decrements: Tuple[StockDecrement, ...]
    shortages: Tuple[ShortageError, ...]
    failure: Optional[SaleFailure]
    errors: List[str]
    attempts: int


def _failed(
    failure: SaleFailure,
    errors: List[str],
    attempts: int,
    shortages: Tuple[ShortageError, ...] = (),
) -> SaleOutcome:
    return SaleOutcome(
        success=False,
        sale_id=None,
        total=Decimal("0.00"),
        stock_decrements=(),
        shortages=shortages,
        failure=failure,
        errors=errors,
        attempts=attempts,
    )


def execute_sale(request: SaleRequest, config: Optional[ServiceConfig] = None) -> SaleOutcome:
    """
    Execute a sale with optimistic concurrency.

    Process:
    1. Load a stock snapshot for the products in the sale
    2. Plan the sale against the snapshot (FEFO, all-or-nothing)
    3. If any product is short: REJECT the entire sale, nothing is persisted
    4. Commit sale + decrements atomically; each decrement only applies if
       the batch still holds the snapshot quantity
    5. On a stock conflict: go back to 1, up to sale_commit_max_attempts

    Args:
        request: SaleRequest with tenant_id and lines
        config: Service configuration (defaults to the environment)

    Returns:
        SaleOutcome with success status, sale_id and the applied decrements

    Example:
        outcome = execute_sale(SaleRequest(tenant_id="default", lines=[...]))
        if not outcome.success:
            print(outcome.errors)
    """
    config = config or get_config()
    max_attempts = config.sale_commit_max_attempts
    product_ids = {line.product_id for line in request.lines}

    for attempt in range(1, max_attempts + 1):
        snapshot = load_stock_snapshot(request.tenant_id, product_ids)
        plan = process_sale(request.lines, snapshot)

        if not plan.success:
            logger.warning(
                "Sale rejected for tenant %s: %s",
                request.tenant_id,
                "; ".join(plan.error_messages),
            )
            return _failed(SaleFailure.SHORTAGE, plan.error_messages, attempt, shortages=plan.errors)

        draft = plan.sale_draft
        sold_at = datetime.now(timezone.utc)
        result = commit_sale_atomic(request.tenant_id, draft, plan.stock_decrements, sold_at)

        if result.success:
            logger.info(
                "Sale %s committed for tenant %s (total=%s, batches=%d, attempt=%d)",
                result.sale_id,
                request.tenant_id,
                draft.total,
                len(plan.stock_decrements),
                attempt,
            )
            return SaleOutcome(
                success=True,
                sale_id=result.sale_id,
                total=draft.total,
                stock_decrements=plan.stock_decrements,
                shortages=(),
                failure=None,
                errors=[],
                attempts=attempt,
            )

        if result.is_conflict:
            logger.warning(
                "Stock changed while committing sale for tenant %s (attempt %d/%d), retrying",
                request.tenant_id,
                attempt,
                max_attempts,
            )
            continue

        logger.error(
            "Failed to commit sale for tenant %s: %s %s",
            request.tenant_id,
            result.error_code,
            result.error_message,
        )
        return _failed(
            SaleFailure.STORAGE,
            [f"Failed to record sale: {result.error_message or result.error_code}"],
            attempt,
        )

    return _failed(
        SaleFailure.CONFLICT,
        [
            f"Stock changed while the sale was being recorded ({max_attempts} attempts).",
            "Please try again.",
        ],
        max_attempts,
    )


__all__ = [
    "SaleFailure",
    "SaleOutcome",
    "SaleRequest",
    "execute_sale",
]
