"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.analytics import StockValuation
from domain.sale import SaleLineRequest, SaleRecord, ShortageError, StockDecrement
from domain.stock import StockBatch


# ============================================================================
# Sale Models
# ============================================================================

class SaleLineItem(BaseModel):
    """One requested line of a sale."""
    product_id: str = Field(..., min_length=1, description="Product being sold")
    quantity: int = Field(..., gt=0, description="Units requested")
    unit_price: Decimal = Field(..., ge=0, description="Price per unit charged to the customer")

    def to_domain(self) -> SaleLineRequest:
        return SaleLineRequest(
            product_id=self.product_id,
            quantity=self.quantity,
            unit_price=self.unit_price,
        )

    @staticmethod
    def from_domain(line: SaleLineRequest) -> "SaleLineItem":
        return SaleLineItem(product_id=line.product_id, quantity=line.quantity, unit_price=line.unit_price)


class SaleCreateRequest(BaseModel):
    """Request to execute a sale."""
    items: List[SaleLineItem] = Field(
        ...,
        min_length=1,
        description="Lines to sell; the same product may appear more than once"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "items": [
                    {"product_id": "prod-1", "quantity": 7, "unit_price": "2.50"},
                    {"product_id": "prod-2", "quantity": 1, "unit_price": "12.00"}
                ]
            }
        }


class StockDecrementResponse(BaseModel):
    """Quantity change applied to one stock batch."""
    stock_batch_id: str
    new_quantity: int
    previous_quantity: int

    @staticmethod
    def from_domain(decrement: StockDecrement) -> "StockDecrementResponse":
        return StockDecrementResponse(
            stock_batch_id=decrement.stock_batch_id,
            new_quantity=decrement.new_quantity,
            previous_quantity=decrement.previous_quantity,
        )


class ShortageResponse(BaseModel):
    """Product that could not be fully allocated."""
    product_id: str
    shortfall: int
    requested: int
    available: int

    @staticmethod
    def from_domain(error: ShortageError) -> "ShortageResponse":
        return ShortageResponse(
            product_id=error.product_id,
            shortfall=error.shortfall,
            requested=error.requested,
            available=error.available,
        )


class SaleResponse(BaseModel):
    """Response after sale execution."""
    success: bool
    sale_id: Optional[UUID] = None
    total: Decimal
    stock_decrements: List[StockDecrementResponse]
    shortages: List[ShortageResponse]
    errors: List[str]
    message: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "success": False,
                "sale_id": None,
                "total": "0.00",
                "stock_decrements": [],
                "shortages": [
                    {"product_id": "prod-1", "shortfall": 2, "requested": 12, "available": 10}
                ],
                "errors": ["Insufficient stock for product prod-1. Need 2 more units."],
                "message": "Sale rejected due to insufficient stock."
            }
        }


class SaleRecordResponse(BaseModel):
    """A committed sale."""
    sale_id: UUID
    tenant_id: str
    total: Decimal
    items: List[SaleLineItem]
    sold_at: datetime

    @staticmethod
    def from_domain(record: SaleRecord) -> "SaleRecordResponse":
        return SaleRecordResponse(
            sale_id=record.sale_id,
            tenant_id=record.tenant_id,
            total=record.total,
            items=[SaleLineItem.from_domain(line) for line in record.line_items],
            sold_at=record.sold_at,
        )


class SaleListResponse(BaseModel):
    items: List[SaleRecordResponse]
    total_count: int


class DailySalesResponse(BaseModel):
    date: str
    total: Decimal


# ============================================================================
# Stock Models
# ============================================================================

class StockBatchResponse(BaseModel):
    """Single stock batch in API response."""
    stock_batch_id: str
    product_id: str
    quantity: int
    expiry_date: Optional[datetime] = None
    batch_number: Optional[str] = None

    @staticmethod
    def from_domain(batch: StockBatch) -> "StockBatchResponse":
        return StockBatchResponse(
            stock_batch_id=batch.stock_batch_id,
            product_id=batch.product_id,
            quantity=batch.quantity,
            expiry_date=batch.expiry_date,
            batch_number=batch.batch_number,
        )

    class Config:
        json_schema_extra = {
            "example": {
                "stock_batch_id": "123e4567-e89b-12d3-a456-426614174000",
                "product_id": "prod-1",
                "quantity": 5,
                "expiry_date": "2024-01-10T00:00:00Z",
                "batch_number": "PCM-2401"
            }
        }


class StockReceiveRequest(BaseModel):
    """Request to receive a delivered lot into stock."""
    product_id: str = Field(..., min_length=1, description="Product received")
    quantity: int = Field(..., ge=0, description="Units received")
    expiry_date: Optional[datetime] = Field(None, description="Expiry timestamp with offset; omit if the lot never expires")
    batch_number: Optional[str] = Field(None, description="Lot code printed on the pack")

    class Config:
        json_schema_extra = {
            "example": {
                "product_id": "prod-1",
                "quantity": 40,
                "expiry_date": "2026-03-01T00:00:00Z",
                "batch_number": "PCM-2603"
            }
        }


class StockListResponse(BaseModel):
    """Response for stock listings and batch reports."""
    items: List[StockBatchResponse]
    total_count: int
    filters_applied: dict


class ProductValuationResponse(BaseModel):
    product_id: str
    value: Decimal
    quantity: int


class StockValueResponse(BaseModel):
    """Catalog value of on-hand stock."""
    total_value: Decimal
    per_product: List[ProductValuationResponse]

    @staticmethod
    def from_domain(valuation: StockValuation) -> "StockValueResponse":
        return StockValueResponse(
            total_value=valuation.total_value,
            per_product=[
                ProductValuationResponse(product_id=p.product_id, value=p.value, quantity=p.quantity)
                for p in valuation.per_product
            ],
        )

    class Config:
        json_schema_extra = {
            "example": {
                "total_value": "125.00",
                "per_product": [
                    {"product_id": "prod-1", "value": "25.00", "quantity": 10},
                    {"product_id": "prod-2", "value": "100.00", "quantity": 8}
                ]
            }
        }
