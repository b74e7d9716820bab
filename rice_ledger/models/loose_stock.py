from decimal import Decimal

from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, CheckConstraint

from rice_ledger.database import Base
from rice_ledger.utils.clock import utcnow
from rice_ledger.utils.quantities import to_kg


class LooseStock(Base):
    """
    Bulk kilograms taken out of bagged form for retail sale.

    There is one entry per product. ``bags_converted`` only grows; the
    pool it represents (``bags_converted * weight_per_bag``) minus every
    kilogram sold is what remains in ``loose_quantity``.
    """
    __tablename__ = "loose_stock"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(
        Integer,
        ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
        index=True,
    )
    product_name = Column(String(255), nullable=False)
    weight_per_bag = Column(Integer, nullable=False)
    bags_converted = Column(Integer, nullable=False, default=0)
    loose_quantity = Column(Numeric(12, 3), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint('bags_converted >= 0', name='check_bags_converted_non_negative'),
        CheckConstraint('loose_quantity >= 0', name='check_loose_quantity_non_negative'),
    )

    @property
    def pool_size(self) -> Decimal:
        """Total kilograms ever converted into this entry."""
        return to_kg(self.bags_converted * self.weight_per_bag)

    @property
    def sold_quantity(self) -> Decimal:
        return to_kg(self.pool_size - Decimal(self.loose_quantity))

    def __repr__(self):
        return f"<LooseStock(id={self.id}, product='{self.product_name}', loose_quantity={self.loose_quantity})>"
