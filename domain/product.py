"""
Domain: Product catalog entries.

Products are immutable reference data owned by the catalog. The engine only
reads them (for stock valuation); sale prices are supplied per line by the
caller and are never looked up here.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True, slots=True)
class Product:
    """Immutable catalog entry."""

    product_id: str
    name: str
    unit_price: Decimal
    description: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.product_id:
            raise ValueError("product_id must be a non-empty string")
        if self.unit_price < 0:
            raise ValueError("unit_price must be >= 0")
