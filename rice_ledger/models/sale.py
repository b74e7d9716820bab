from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from rice_ledger.database import Base
from rice_ledger.models.mixins import LedgerTotalsMixin


class Sale(LedgerTotalsMixin, Base):
    """Sale of bagged stock to a customer. Mirrors Purchase with stock flowing out."""
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    customer_name = Column(String(255), nullable=False, index=True)
    customer_phone = Column(String(32), nullable=True)

    items = relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.id",
    )
    payments = relationship(
        "Payment",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="Payment.id",
    )

    __table_args__ = (
        CheckConstraint('total_amount >= 0', name='check_sale_total_non_negative'),
        CheckConstraint('paid_amount >= 0', name='check_sale_paid_non_negative'),
        CheckConstraint('balance_amount >= 0', name='check_sale_balance_non_negative'),
    )

    def __repr__(self):
        return f"<Sale(id={self.id}, customer='{self.customer_name}', total={self.total_amount})>"


class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(
        Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True
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

    sale = relationship("Sale", back_populates="items")

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_sale_item_quantity_positive'),
    )
