from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from decimal import Decimal
from typing import Optional

from rice_ledger.schemas.line_item import BagItemCreate, BagItemResponse
from rice_ledger.schemas.payment import PaymentResponse


class PurchaseCreate(BaseModel):
    """Schema for recording a purchase from a biller."""
    biller_name: str = Field(..., min_length=1, max_length=255, description="Supplier name")
    biller_phone: Optional[str] = Field(None, max_length=32, description="Supplier phone")
    items: list[BagItemCreate] = Field(..., min_length=1, description="Products purchased")
    paid_amount: Decimal = Field(default=Decimal("0"), ge=0, description="Amount paid up front")


class PurchaseResponse(BaseModel):
    """Schema for purchase response with items and payments."""
    id: int
    biller_name: str
    biller_phone: Optional[str] = None
    items: list[BagItemResponse]
    total_amount: float
    paid_amount: float
    balance_amount: float
    payments: list[PaymentResponse]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PurchaseListResponse(BaseModel):
    """Schema for paginated purchase list response."""
    items: list[PurchaseResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
