"""
Stock report service.

Loads a tenant's stock snapshot (and catalog, for valuation) and runs the pure
analytics over it. Defaults for thresholds come from ServiceConfig; `as_of`
defaults to the current UTC time at this layer only.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from domain.analytics import StockValuation, low_stock, near_expiry, stock_value
from domain.stock import StockBatch, fefo_order
from repositories.product_repository import list_products
from repositories.stock_repository import load_stock_snapshot
from services.config import get_config

logger = logging.getLogger(__name__)


def near_expiry_report(
    tenant_id: str,
    days_threshold: Optional[int] = None,
    as_of: Optional[datetime] = None,
) -> List[StockBatch]:
    """Batches with stock expiring within `days_threshold` days of `as_of`."""

    days = get_config().near_expiry_days if days_threshold is None else days_threshold
    as_of = as_of or datetime.now(timezone.utc)

    batches = near_expiry(load_stock_snapshot(tenant_id), as_of=as_of, days_threshold=days)
    logger.debug("near-expiry report for %s: %d batches within %d days", tenant_id, len(batches), days)
    return batches


def low_stock_report(tenant_id: str, threshold: Optional[int] = None) -> List[StockBatch]:
    """Batches with 0 < quantity <= threshold."""

    limit = get_config().low_stock_threshold if threshold is None else threshold

    batches = low_stock(load_stock_snapshot(tenant_id), threshold=limit)
    logger.debug("low-stock report for %s: %d batches at or below %d", tenant_id, len(batches), limit)
    return batches


def stock_value_report(tenant_id: str) -> StockValuation:
    """Catalog value of on-hand stock, per product and in total."""

    valuation = stock_value(list_products(tenant_id), load_stock_snapshot(tenant_id))
    logger.debug("stock value for %s: %s over %d products", tenant_id, valuation.total_value, len(valuation.per_product))
    return valuation


def list_stock(tenant_id: str, product_id: Optional[str] = None) -> List[StockBatch]:
    """Stock batches in FEFO order, optionally for one product."""

    product_ids = [product_id] if product_id else None
    return fefo_order(load_stock_snapshot(tenant_id, product_ids))


__all__ = [
    "list_stock",
    "low_stock_report",
    "near_expiry_report",
    "stock_value_report",
]
