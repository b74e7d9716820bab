from sqlalchemy import Column, Integer, String, Numeric, DateTime, CheckConstraint

from rice_ledger.database import Base
from rice_ledger.utils.clock import utcnow

# Standard pack sizes (kg per bag)
WEIGHT_VARIANTS = (1, 5, 10, 25, 26, 30, 50, 75)


class Product(Base):
    """
    Product model representing a bagged rice variety held in stock.
    
    Attributes:
        id: Unique identifier for the product
        name: Product name
        weight_per_bag: Kilograms per bag, one of WEIGHT_VARIANTS
        quantity: Number of bags in stock (non-negative)
        stock: Kilograms in stock, always quantity * weight_per_bag
        unit: Stock unit label
        low_stock_alert: Bag count at or below which the product is low on stock
        created_at: Timestamp when product was created
        updated_at: Timestamp when product was last updated
    """
    __tablename__ = "products"
    
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    weight_per_bag = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    stock = Column(Numeric(12, 3), nullable=False, default=0)
    unit = Column(String(16), nullable=False, default="kg")
    low_stock_alert = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    
    # Database-level constraints to ensure data integrity
    __table_args__ = (
        CheckConstraint('quantity >= 0', name='check_product_quantity_non_negative'),
        CheckConstraint('stock >= 0', name='check_product_stock_non_negative'),
        CheckConstraint('low_stock_alert >= 0', name='check_low_stock_alert_non_negative'),
        CheckConstraint(
            f"weight_per_bag IN ({', '.join(str(w) for w in WEIGHT_VARIANTS)})",
            name='check_weight_per_bag_variant',
        ),
    )
    
    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.low_stock_alert
    
    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', quantity={self.quantity}, stock={self.stock})>"
