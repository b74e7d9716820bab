from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
import enum

from rice_ledger.database import Base
from rice_ledger.utils.clock import utcnow


class TransactionKind(str, enum.Enum):
    """Enum for the kind of transaction a payment is applied to."""
    PURCHASE = "purchase"
    SALE = "sale"
    LOOSE_SALE = "loose_sale"


class Payment(Base):
    """
    Payment recorded against exactly one purchase, sale or loose sale.
    
    Attributes:
        id: Unique identifier for the payment
        amount: Amount paid (must be positive)
        date: When the payment was made
        note: Optional free-text note
        purchase_id / sale_id / loose_sale_id: Owning transaction (exactly one set)
    """
    __tablename__ = "payments"
    
    id = Column(Integer, primary_key=True, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    note = Column(String(500), nullable=True)
    purchase_id = Column(
        Integer, ForeignKey("purchases.id", ondelete="CASCADE"), nullable=True, index=True
    )
    sale_id = Column(
        Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=True, index=True
    )
    loose_sale_id = Column(
        Integer, ForeignKey("loose_sales.id", ondelete="CASCADE"), nullable=True, index=True
    )
    
    purchase = relationship("Purchase", back_populates="payments")
    sale = relationship("Sale", back_populates="payments")
    loose_sale = relationship("LooseSale", back_populates="payments")
    
    __table_args__ = (
        CheckConstraint('amount > 0', name='check_payment_amount_positive'),
        CheckConstraint(
            "(CASE WHEN purchase_id IS NULL THEN 0 ELSE 1 END)"
            " + (CASE WHEN sale_id IS NULL THEN 0 ELSE 1 END)"
            " + (CASE WHEN loose_sale_id IS NULL THEN 0 ELSE 1 END) = 1",
            name='check_payment_single_owner',
        ),
    )
    
    @property
    def transaction_kind(self) -> TransactionKind:
        if self.purchase_id is not None:
            return TransactionKind.PURCHASE
        if self.sale_id is not None:
            return TransactionKind.SALE
        return TransactionKind.LOOSE_SALE
    
    def __repr__(self):
        return f"<Payment(id={self.id}, amount={self.amount}, kind='{self.transaction_kind.value}')>"
