from pydantic import BaseModel, Field, ConfigDict, model_validator
from decimal import Decimal
from typing import Optional


class BagItemCreate(BaseModel):
    """
    Line item for a purchase or sale of bagged stock.

    Give either ``quantity`` (bags) or ``weight`` (kg). A weight is turned
    into a bag count by rounding up to the next whole bag.
    """
    product_id: int = Field(..., description="ID of the product")
    quantity: Optional[int] = Field(None, gt=0, description="Number of bags")
    weight: Optional[Decimal] = Field(None, gt=0, description="Weight in kg, alternative to quantity")
    unit_price: Decimal = Field(..., gt=0, description="Price per bag")

    @model_validator(mode="after")
    def check_quantity_or_weight(self):
        if (self.quantity is None) == (self.weight is None):
            raise ValueError("Provide exactly one of quantity or weight")
        return self


class BagItemResponse(BaseModel):
    """Schema for a recorded purchase/sale line item."""
    id: int
    product_id: Optional[int] = None
    product_name: str
    weight_per_bag: int
    quantity: int
    unit_price: float
    weight: float
    amount: float

    model_config = ConfigDict(from_attributes=True)
