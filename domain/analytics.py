"""
Domain: Read-only stock analytics.

- near_expiry: batches with stock whose expiry falls within a lookahead window.
- low_stock: batches with 0 < quantity <= threshold.
- stock_value: quantity-weighted catalog value per product and in total.

All functions are pure. `as_of` is always passed explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Sequence, Tuple

from .product import Product
from .stock import StockBatch, fefo_order
from .time import window_end

DEFAULT_NEAR_EXPIRY_DAYS = 30
DEFAULT_LOW_STOCK_THRESHOLD = 10


@dataclass(frozen=True, slots=True)
class ProductValuation:
    product_id: str
    value: Decimal
    quantity: int


@dataclass(frozen=True, slots=True)
class StockValuation:
    total_value: Decimal
    per_product: Tuple[ProductValuation, ...]


def near_expiry(
    batches: Sequence[StockBatch],
    *,
    as_of: datetime,
    days_threshold: int = DEFAULT_NEAR_EXPIRY_DAYS,
) -> List[StockBatch]:
    """
    Batches with quantity > 0 expiring on or before `as_of + days_threshold`.

    Already-expired batches with stock are included. Undated batches never are.
    Sorted ascending by expiry.
    """

    cutoff = window_end(as_of, days_threshold)
    return fefo_order(
        b for b in batches
        if b.quantity > 0 and b.expiry_date is not None and b.expiry_date <= cutoff
    )


def low_stock(
    batches: Sequence[StockBatch],
    threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
) -> List[StockBatch]:
    """Batches with 0 < quantity <= threshold, in input order."""

    return [b for b in batches if 0 < b.quantity <= threshold]


def stock_value(products: Sequence[Product], batches: Sequence[StockBatch]) -> StockValuation:
    """
    Value on-hand stock at catalog unit price.

    Batches are grouped by product and summed; products missing from the
    catalog are skipped. Per-product entries follow first-seen batch order.
    """

    catalog = {p.product_id: p for p in products}

    quantities: Dict[str, int] = {}
    for batch in batches:
        quantities[batch.product_id] = quantities.get(batch.product_id, 0) + batch.quantity

    per_product: List[ProductValuation] = []
    total = Decimal("0")
    for product_id, quantity in quantities.items():
        product = catalog.get(product_id)
        if product is None:
            continue
        value = product.unit_price * quantity
        per_product.append(ProductValuation(product_id=product_id, value=value, quantity=quantity))
        total += value

    return StockValuation(total_value=total, per_product=tuple(per_product))


__all__ = [
    "DEFAULT_LOW_STOCK_THRESHOLD",
    "DEFAULT_NEAR_EXPIRY_DAYS",
    "ProductValuation",
    "StockValuation",
    "low_stock",
    "near_expiry",
    "stock_value",
]
