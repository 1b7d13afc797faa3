"""
Reports API Endpoints.

Near-expiry, low-stock and stock-value reports.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from api.models import StockBatchResponse, StockListResponse, StockValueResponse
from services.stock_report_service import low_stock_report, near_expiry_report, stock_value_report

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/reports/near-expiry",
    response_model=StockListResponse,
    summary="Near-Expiry Stock",
    description="Batches with stock expiring within the lookahead window, soonest first. Undated batches never appear."
)
def get_near_expiry(
    tenant_id: str = Query("default", description="Tenant (pharmacy) id"),
    days: Optional[int] = Query(None, ge=0, le=3650, description="Lookahead in days (default from NEAR_EXPIRY_DAYS)"),
):
    try:
        batches = near_expiry_report(tenant_id, days_threshold=days)
    except Exception as e:
        logger.exception("get_near_expiry failed for tenant %s", tenant_id)
        raise HTTPException(status_code=500, detail=f"Failed to build near-expiry report: {str(e)}")

    filters_applied = {"days": days} if days is not None else {}
    items = [StockBatchResponse.from_domain(b) for b in batches]
    return StockListResponse(items=items, total_count=len(items), filters_applied=filters_applied)


@router.get(
    "/reports/low-stock",
    response_model=StockListResponse,
    summary="Low-Stock Batches",
    description="Batches with 0 < quantity <= threshold."
)
def get_low_stock(
    tenant_id: str = Query("default", description="Tenant (pharmacy) id"),
    threshold: Optional[int] = Query(None, ge=0, description="Threshold (default from LOW_STOCK_THRESHOLD)"),
):
    try:
        batches = low_stock_report(tenant_id, threshold=threshold)
    except Exception as e:
        logger.exception("get_low_stock failed for tenant %s", tenant_id)
        raise HTTPException(status_code=500, detail=f"Failed to build low-stock report: {str(e)}")

    filters_applied = {"threshold": threshold} if threshold is not None else {}
    items = [StockBatchResponse.from_domain(b) for b in batches]
    return StockListResponse(items=items, total_count=len(items), filters_applied=filters_applied)


@router.get(
    "/reports/stock-value",
    response_model=StockValueResponse,
    summary="Stock Valuation",
    description="On-hand quantity times catalog unit price, per product and in total."
)
def get_stock_value(tenant_id: str = Query("default", description="Tenant (pharmacy) id")):
    try:
        valuation = stock_value_report(tenant_id)
    except Exception as e:
        logger.exception("get_stock_value failed for tenant %s", tenant_id)
        raise HTTPException(status_code=500, detail=f"Failed to build stock value report: {str(e)}")

    return StockValueResponse.from_domain(valuation)
