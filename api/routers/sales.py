"""
Sales API Endpoints.

Endpoints for executing sales and reading committed sales.
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from api.models import (
    DailySalesResponse,
    SaleCreateRequest,
    SaleListResponse,
    SaleRecordResponse,
    SaleResponse,
    ShortageResponse,
    StockDecrementResponse,
)
from repositories.sale_repository import get_sale_by_id, get_sales_total_for_day, list_sales
from services.sale_service import SaleFailure, SaleOutcome, SaleRequest, execute_sale

logger = logging.getLogger(__name__)

router = APIRouter()

_FAILURE_STATUS = {
    SaleFailure.SHORTAGE: 422,
    SaleFailure.CONFLICT: 409,
    SaleFailure.STORAGE: 500,
}


def _to_response(outcome: SaleOutcome) -> SaleResponse:
    if outcome.success:
        message = "Sale completed successfully."
    elif outcome.failure == SaleFailure.SHORTAGE:
        message = "Sale rejected due to insufficient stock."
    else:
        message = "Sale failed. " + " ".join(outcome.errors)

    return SaleResponse(
        success=outcome.success,
        sale_id=outcome.sale_id,
        total=outcome.total,
        stock_decrements=[StockDecrementResponse.from_domain(d) for d in outcome.stock_decrements],
        shortages=[ShortageResponse.from_domain(s) for s in outcome.shortages],
        errors=outcome.errors,
        message=message,
    )


@router.post(
    "/sales",
    response_model=SaleResponse,
    status_code=201,
    summary="Execute Sale",
    description="Sell stock FEFO (earliest expiry first). All-or-nothing: any shortage rejects the whole sale.",
    responses={
        409: {"model": SaleResponse, "description": "Stock kept changing during commit"},
        422: {"model": SaleResponse, "description": "Insufficient stock for one or more products"},
    },
)
def create_sale(request: SaleCreateRequest, tenant_id: str = Query("default", description="Tenant (pharmacy) id")):
    """
    Execute a sale against the tenant's current stock.

    **Process:**
    1. Loads the stock batches for the products in the sale
    2. Allocates each product earliest-expiry first
    3. If any product is short, rejects the entire sale (nothing is recorded)
    4. Records the sale and the batch decrements in one transaction
    5. If stock changed concurrently, retries from step 1

    **Example request:**
    ```json
    {
      "items": [
        {"product_id": "prod-1", "quantity": 7, "unit_price": "2.50"}
      ]
    }
    ```
    """
    try:
        outcome = execute_sale(SaleRequest(
            tenant_id=tenant_id,
            lines=[item.to_domain() for item in request.items],
        ))
    except Exception as e:
        logger.exception("create_sale failed for tenant %s", tenant_id)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to execute sale: {str(e)}"
        )

    response = _to_response(outcome)
    if outcome.success:
        return response

    status_code = _FAILURE_STATUS.get(outcome.failure, 500)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(response))


@router.get(
    "/sales",
    response_model=SaleListResponse,
    summary="List Recent Sales",
)
def get_recent_sales(
    tenant_id: str = Query("default", description="Tenant (pharmacy) id"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of sales to return"),
):
    """Most recent sales first."""
    try:
        records = list_sales(tenant_id, limit=limit)
    except Exception as e:
        logger.exception("get_recent_sales failed for tenant %s", tenant_id)
        raise HTTPException(status_code=500, detail=f"Failed to fetch sales: {str(e)}")

    items = [SaleRecordResponse.from_domain(r) for r in records]
    return SaleListResponse(items=items, total_count=len(items))


@router.get(
    "/sales/today",
    response_model=DailySalesResponse,
    summary="Today's Sales Total",
)
def get_todays_sales(tenant_id: str = Query("default", description="Tenant (pharmacy) id")):
    """Sum of sale totals for the current UTC day."""
    today = datetime.now(timezone.utc).date()
    try:
        total = get_sales_total_for_day(tenant_id, today)
    except Exception as e:
        logger.exception("get_todays_sales failed for tenant %s", tenant_id)
        raise HTTPException(status_code=500, detail=f"Failed to fetch today's sales: {str(e)}")

    return DailySalesResponse(date=today.isoformat(), total=total)


@router.get(
    "/sales/{sale_id}",
    response_model=SaleRecordResponse,
    summary="Get Sale",
)
def get_sale(sale_id: UUID, tenant_id: str = Query("default", description="Tenant (pharmacy) id")):
    """Fetch one committed sale."""
    try:
        record = get_sale_by_id(tenant_id, sale_id)
    except Exception as e:
        logger.exception("get_sale failed for %s", sale_id)
        raise HTTPException(status_code=500, detail=f"Failed to fetch sale: {str(e)}")

    if record is None:
        raise HTTPException(status_code=404, detail=f"Sale not found: {sale_id}")

    return SaleRecordResponse.from_domain(record)
