"""
Stock API Endpoints.

Endpoints for browsing stock batches and receiving new lots.
"""

import logging
from datetime import timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from api.models import StockBatchResponse, StockListResponse, StockReceiveRequest
from services.receiving_service import UnknownProductError, receive_stock
from services.stock_report_service import list_stock

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/stock",
    response_model=StockListResponse,
    summary="List Stock Batches",
    description="Stock batches in the order they will be sold (earliest expiry first, undated last)."
)
def get_stock(
    tenant_id: str = Query("default", description="Tenant (pharmacy) id"),
    product_id: Optional[str] = Query(None, description="Only batches of this product"),
):
    """
    List stock batches in FEFO order.

    **Example usage:**
    - All stock: `GET /api/v1/stock`
    - One product: `GET /api/v1/stock?product_id=prod-1`
    """
    try:
        batches = list_stock(tenant_id, product_id)
    except Exception as e:
        logger.exception("get_stock failed for tenant %s", tenant_id)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch stock: {str(e)}"
        )

    filters_applied = {}
    if product_id:
        filters_applied["product_id"] = product_id

    items = [StockBatchResponse.from_domain(b) for b in batches]
    return StockListResponse(items=items, total_count=len(items), filters_applied=filters_applied)


@router.post(
    "/stock",
    response_model=StockBatchResponse,
    status_code=201,
    summary="Receive Stock",
    description="Book a delivered lot into stock. The product must exist in the catalog."
)
def post_stock(request: StockReceiveRequest, tenant_id: str = Query("default", description="Tenant (pharmacy) id")):
    """
    Receive a lot.

    Expiry timestamps must carry an offset; they are stored in UTC.
    """
    expiry_date = request.expiry_date
    if expiry_date is not None:
        if expiry_date.tzinfo is None:
            raise HTTPException(status_code=422, detail="expiry_date must include a timezone offset")
        expiry_date = expiry_date.astimezone(timezone.utc)

    try:
        batch = receive_stock(
            tenant_id,
            request.product_id,
            request.quantity,
            expiry_date=expiry_date,
            batch_number=request.batch_number,
        )
    except UnknownProductError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.exception("post_stock failed for tenant %s", tenant_id)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to receive stock: {str(e)}"
        )

    return StockBatchResponse.from_domain(batch)
