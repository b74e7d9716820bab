from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from rice_ledger.database import Base
from rice_ledger.models.mixins import LedgerTotalsMixin


class LooseSale(LedgerTotalsMixin, Base):
    """Retail bill for loose (kilogram) stock."""
    __tablename__ = "loose_sales"

    id = Column(Integer, primary_key=True, index=True)
    customer_name = Column(String(255), nullable=False, index=True)
    customer_phone = Column(String(32), nullable=True)

    items = relationship(
        "LooseSaleItem",
        back_populates="loose_sale",
        cascade="all, delete-orphan",
        order_by="LooseSaleItem.id",
    )
    payments = relationship(
        "Payment",
        back_populates="loose_sale",
        cascade="all, delete-orphan",
        order_by="Payment.id",
    )

    __table_args__ = (
        CheckConstraint('total_amount >= 0', name='check_loose_sale_total_non_negative'),
        CheckConstraint('paid_amount >= 0', name='check_loose_sale_paid_non_negative'),
        CheckConstraint('balance_amount >= 0', name='check_loose_sale_balance_non_negative'),
    )

    def __repr__(self):
        return f"<LooseSale(id={self.id}, customer='{self.customer_name}', total={self.total_amount})>"


class LooseSaleItem(Base):
    __tablename__ = "loose_sale_items"

    id = Column(Integer, primary_key=True, index=True)
    loose_sale_id = Column(
        Integer, ForeignKey("loose_sales.id", ondelete="CASCADE"), nullable=False, index=True
    )
    loose_stock_id = Column(Integer, ForeignKey("loose_stock.id"), nullable=False, index=True)
    product_name = Column(String(255), nullable=False)
    quantity_kg = Column(Numeric(12, 3), nullable=False)
    price_per_kg = Column(Numeric(12, 2), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)

    loose_sale = relationship("LooseSale", back_populates="items")

    __table_args__ = (
        CheckConstraint('quantity_kg > 0', name='check_loose_sale_item_quantity_positive'),
    )
