from sqlalchemy import Column, Numeric, DateTime

from rice_ledger.utils.clock import utcnow


class LedgerTotalsMixin:
    """Money columns shared by purchases, sales and loose sales."""

    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    paid_amount = Column(Numeric(12, 2), nullable=False, default=0)
    balance_amount = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
