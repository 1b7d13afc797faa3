"""
Product repository (catalog reads).

Fetches Product reference data per tenant. Products are read-only from the
point of view of the sale engine.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, List, Mapping

from domain.product import Product
from repositories.client import get_supabase

_PRODUCTS_TABLE: str = "products"


def _row_to_product(row: Mapping[str, Any]) -> Product:
    """Convert a Supabase row into a Product."""

    return Product(
        product_id=str(row["product_id"]),
        name=str(row["name"]),
        unit_price=Decimal(str(row["unit_price"])),
        description=row.get("description"),
    )


def list_products(tenant_id: str) -> List[Product]:
    """
    Retrieve every product in a tenant's catalog.

    Returns:
        List[Product] (possibly empty)
    """

    response = (
        get_supabase()
        .table(_PRODUCTS_TABLE)
        .select("*")
        .eq("tenant_id", tenant_id)
        .execute()
    )
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to list products: {error}")

    rows = getattr(response, "data", None) or []
    return [_row_to_product(row) for row in rows]


def get_products_by_ids(tenant_id: str, product_ids: Iterable[str]) -> List[Product]:
    """
    Retrieve the products with the given ids.

    Unknown ids are silently absent from the result.
    """

    ids = sorted(set(product_ids))
    if not ids:
        return []

    response = (
        get_supabase()
        .table(_PRODUCTS_TABLE)
        .select("*")
        .eq("tenant_id", tenant_id)
        .in_("product_id", ids)
        .execute()
    )
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to fetch products: {error}")

    rows = getattr(response, "data", None) or []
    return [_row_to_product(row) for row in rows]


__all__ = [
    "get_products_by_ids",
    "list_products",
]
