from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from rice_ledger.database import Base
from rice_ledger.models.mixins import LedgerTotalsMixin


class Purchase(LedgerTotalsMixin, Base):
    """
    Purchase of bagged stock from a biller (supplier).

    Line items are immutable once created; paid/balance amounts and the
    payments list change only through payments.
    """
    __tablename__ = "purchases"

    id = Column(Integer, primary_key=True, index=True)
    biller_name = Column(String(255), nullable=False, index=True)
    biller_phone = Column(String(32), nullable=True)

    items = relationship(
        "PurchaseItem",
        back_populates="purchase",
        cascade="all, delete-orphan",
        order_by="PurchaseItem.id",
    )
    payments = relationship(
        "Payment",
        back_populates="purchase",
        cascade="all, delete-orphan",
        order_by="Payment.id",
    )

    __table_args__ = (
        CheckConstraint('total_amount >= 0', name='check_purchase_total_non_negative'),
        CheckConstraint('paid_amount >= 0', name='check_purchase_paid_non_negative'),
        CheckConstraint('balance_amount >= 0', name='check_purchase_balance_non_negative'),
    )

    def __repr__(self):
        return f"<Purchase(id={self.id}, biller='{self.biller_name}', total={self.total_amount})>"


class PurchaseItem(Base):
    """
    One product line of a purchase.

    ``product_name`` and ``weight_per_bag`` are snapshots taken when the
    purchase was recorded, so later product edits or deletion leave the
    record intact.
    """
    __tablename__ = "purchase_items"

    id = Column(Integer, primary_key=True, index=True)
    purchase_id = Column(
        Integer, ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id = Column(
        Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True
    )
    product_name = Column(String(255), nullable=False)
    weight_per_bag = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    weight = Column(Numeric(12, 3), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)

    purchase = relationship("Purchase", back_populates="items")

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_purchase_item_quantity_positive'),
    )
