"""
Receiving service.

Books a delivered lot into stock. The product must exist in the tenant's
catalog; quantity and expiry are validated by the StockBatch entity.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from domain.stock import StockBatch
from repositories.product_repository import get_products_by_ids
from repositories.stock_repository import create_stock_batch

logger = logging.getLogger(__name__)


class UnknownProductError(LookupError):
    """Raised when stock is received for a product missing from the catalog."""

    def __init__(self, product_id: str):
        super().__init__(f"Product not found: {product_id}")
        self.product_id = product_id


def receive_stock(
    tenant_id: str,
    product_id: str,
    quantity: int,
    expiry_date: Optional[datetime] = None,
    batch_number: Optional[str] = None,
) -> StockBatch:
    """
    Receive a new lot of `product_id`.

    Raises:
        UnknownProductError: If the product is not in the tenant's catalog
        ValueError: If quantity is negative or expiry_date is not UTC
    """
    if not get_products_by_ids(tenant_id, [product_id]):
        raise UnknownProductError(product_id)

    batch = create_stock_batch(
        tenant_id,
        product_id,
        quantity,
        expiry_date=expiry_date,
        batch_number=batch_number,
    )
    logger.info(
        "Received %d units of %s for tenant %s (batch=%s, expiry=%s)",
        quantity,
        product_id,
        tenant_id,
        batch.stock_batch_id,
        expiry_date.isoformat() if expiry_date else "none",
    )
    return batch


__all__ = [
    "UnknownProductError",
    "receive_stock",
]
