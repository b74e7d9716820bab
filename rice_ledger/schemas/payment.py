from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from decimal import Decimal
from typing import Optional

from rice_ledger.models.payment import TransactionKind


class PaymentCreate(BaseModel):
    """Schema for adding a payment to an existing transaction."""
    amount: Decimal = Field(..., gt=0, description="Amount paid, cannot exceed the balance")
    note: Optional[str] = Field(None, max_length=500, description="Optional note")


class PaymentApply(PaymentCreate):
    """Schema for adding a payment by transaction kind and ID."""
    transaction_kind: TransactionKind
    transaction_id: int


class PaymentResponse(BaseModel):
    """Schema for payment response."""
    id: int
    amount: float
    date: datetime
    note: Optional[str] = None
    transaction_kind: TransactionKind

    model_config = ConfigDict(from_attributes=True)


class PaymentReceipt(BaseModel):
    """Schema for the state of a transaction after a payment is applied."""
    transaction_kind: TransactionKind
    transaction_id: int
    total_amount: float
    paid_amount: float
    balance_amount: float
    payments: list[PaymentResponse]
