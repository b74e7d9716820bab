from pydantic import BaseModel, Field, ConfigDict, field_validator
from datetime import datetime
from typing import Optional

from rice_ledger.models.product import WEIGHT_VARIANTS


class ProductBase(BaseModel):
    """Base schema for Product with common attributes."""
    name: str = Field(..., min_length=1, max_length=255, description="Product name")
    weight_per_bag: int = Field(..., description=f"Kilograms per bag, one of {list(WEIGHT_VARIANTS)}")
    low_stock_alert: int = Field(default=0, ge=0, description="Bag count that triggers a low-stock warning")

    @field_validator("weight_per_bag")
    @classmethod
    def check_weight_variant(cls, value: int) -> int:
        if value not in WEIGHT_VARIANTS:
            raise ValueError(f"weight_per_bag must be one of {list(WEIGHT_VARIANTS)}")
        return value


class ProductCreate(ProductBase):
    """Schema for creating a new product. Products always start with no stock."""
    pass


class ProductUpdate(BaseModel):
    """
    Schema for updating an existing product. All fields are optional.

    Weight per bag cannot be changed once the product exists.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=255, description="Product name")
    low_stock_alert: Optional[int] = Field(None, ge=0, description="Low-stock threshold in bags")


class ProductResponse(ProductBase):
    """Schema for product response including all fields."""
    id: int
    quantity: int
    stock: float
    unit: str
    is_low_stock: bool
    created_at: datetime
    updated_at: datetime
    
    model_config = ConfigDict(from_attributes=True)


class ProductListResponse(BaseModel):
    """Schema for paginated product list response."""
    items: list[ProductResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
