"""Errors raised by the ledger services.

Every error is raised before anything is committed, so the caller can fix
the input and resubmit. ``to_dict()`` gives the message together with the
error's own fields, ready to be sent to a client as JSON.
"""
from decimal import Decimal
from typing import Optional


def _plain(value):
    # Decimal isn't JSON serializable
    return float(value) if isinstance(value, Decimal) else value


class LedgerError(Exception):
    """Base class for all ledger rule violations."""
    code = "ledger_error"

    def to_dict(self) -> dict:
        return {"code": self.code, "message": str(self)}


class ValidationError(LedgerError):
    """Raised when input is missing or malformed."""
    code = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        return {**super().to_dict(), "field": self.field}


class NotFoundError(LedgerError):
    """Raised when a referenced product, transaction or loose stock entry doesn't exist."""
    code = "not_found"

    def __init__(self, entity: str, entity_id: int):
        super().__init__(f"{entity} with ID {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id

    def to_dict(self) -> dict:
        return {**super().to_dict(), "entity": self.entity, "entity_id": self.entity_id}


class InsufficientStockError(LedgerError):
    """Raised when a sale or conversion asks for more than is in stock."""
    code = "insufficient_stock"

    def __init__(self, product_name: str, available, requested, unit: str = "bags"):
        super().__init__(
            f"Insufficient stock for {product_name}. "
            f"Available: {available} {unit}, Requested: {requested} {unit}"
        )
        self.product_name = product_name
        self.available = available
        self.requested = requested
        self.unit = unit

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            "product_name": self.product_name,
            "available": _plain(self.available),
            "requested": _plain(self.requested),
            "unit": self.unit,
        }


class OverpaymentError(ValidationError):
    """Raised when a payment is larger than the outstanding balance."""
    code = "overpayment"

    def __init__(self, amount: Decimal, balance: Decimal):
        super().__init__(
            f"Payment amount {amount} exceeds balance {balance}",
            field="amount",
        )
        self.amount = amount
        self.balance = balance

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            "amount": _plain(self.amount),
            "balance": _plain(self.balance),
        }
