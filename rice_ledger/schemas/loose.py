from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from decimal import Decimal
from typing import Optional

from rice_ledger.schemas.payment import PaymentResponse


class LooseConvertRequest(BaseModel):
    """Schema for breaking bags of a product into loose stock."""
    product_id: int = Field(..., description="ID of the product to convert")
    bags_quantity: int = Field(..., gt=0, description="Number of bags to convert")


class LooseStockResponse(BaseModel):
    """Schema for a loose stock entry."""
    id: int
    product_id: Optional[int] = None
    product_name: str
    weight_per_bag: int
    bags_converted: int
    loose_quantity: float
    pool_size: float = Field(..., description="Kilograms ever converted into this entry")
    sold_quantity: float = Field(..., description="Kilograms sold out of this entry")
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LooseSaleItemCreate(BaseModel):
    """Line item for a retail bill, sold by the kilogram."""
    loose_stock_id: int = Field(..., description="ID of the loose stock entry")
    quantity_kg: Decimal = Field(..., gt=0, description="Kilograms sold")
    price_per_kg: Decimal = Field(..., gt=0, description="Price per kilogram")


class LooseSaleCreate(BaseModel):
    """Schema for creating a retail bill against loose stock."""
    customer_name: str = Field(..., min_length=1, max_length=255, description="Customer name")
    customer_phone: Optional[str] = Field(None, max_length=32, description="Customer phone")
    items: list[LooseSaleItemCreate] = Field(..., min_length=1, description="Loose stock sold")
    paid_amount: Decimal = Field(default=Decimal("0"), ge=0, description="Amount paid up front")


class LooseSaleItemResponse(BaseModel):
    id: int
    loose_stock_id: int
    product_name: str
    quantity_kg: float
    price_per_kg: float
    amount: float

    model_config = ConfigDict(from_attributes=True)


class LooseSaleResponse(BaseModel):
    """Schema for retail bill response with items and payments."""
    id: int
    customer_name: str
    customer_phone: Optional[str] = None
    items: list[LooseSaleItemResponse]
    total_amount: float
    paid_amount: float
    balance_amount: float
    payments: list[PaymentResponse]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LooseSaleListResponse(BaseModel):
    """Schema for paginated retail bill list response."""
    items: list[LooseSaleResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
