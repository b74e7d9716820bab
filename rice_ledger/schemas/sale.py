from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from decimal import Decimal
from typing import Optional

from rice_ledger.schemas.line_item import BagItemCreate, BagItemResponse
from rice_ledger.schemas.payment import PaymentResponse


class SaleCreate(BaseModel):
    """Schema for recording a sale of bagged stock to a customer."""
    customer_name: str = Field(..., min_length=1, max_length=255, description="Customer name")
    customer_phone: Optional[str] = Field(None, max_length=32, description="Customer phone")
    items: list[BagItemCreate] = Field(..., min_length=1, description="Products sold")
    paid_amount: Decimal = Field(default=Decimal("0"), ge=0, description="Amount paid up front")


class SaleResponse(BaseModel):
    """Schema for sale response with items and payments."""
    id: int
    customer_name: str
    customer_phone: Optional[str] = None
    items: list[BagItemResponse]
    total_amount: float
    paid_amount: float
    balance_amount: float
    payments: list[PaymentResponse]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SaleListResponse(BaseModel):
    """Schema for paginated sale list response."""
    items: list[SaleResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
