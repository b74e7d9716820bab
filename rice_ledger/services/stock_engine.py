from decimal import Decimal
from typing import Iterable
import logging

from sqlalchemy.orm import Session

from rice_ledger.models.loose_sale import LooseSaleItem
from rice_ledger.models.loose_stock import LooseStock
from rice_ledger.models.product import Product
from rice_ledger.services.concurrency import lock_for_update
from rice_ledger.services.exceptions import NotFoundError
from rice_ledger.utils.quantities import to_kg

logger = logging.getLogger(__name__)


class StockAdjustmentEngine:
    """
    Applies the stock side of purchases, sales and loose conversions.
    
    The engine only mutates rows inside the caller's session; it never
    commits and never rejects for lack of stock. Availability checks
    belong to the ledger service, which runs them before calling in.
    Quantities are clamped at zero so stock can't go negative even if a
    check was skipped.
    
    Kilogram stock is always recomputed from the bag count and the
    product's current weight per bag, never incremented on its own.
    """
    
    def __init__(self, db: Session):
        self.db = db
    
    def apply_purchase(self, items: Iterable) -> None:
        """Add each line item's bags to its product."""
        for item in items:
            product = self._get_product(item.product_id)
            product.quantity += item.quantity
            self.recompute_stock(product)
            logger.debug(f"Product #{product.id} +{item.quantity} bags -> {product.quantity}")
    
    def apply_sale(self, items: Iterable) -> None:
        """Remove each line item's bags from its product, never below zero."""
        for item in items:
            product = self._get_product(item.product_id)
            product.quantity = max(0, product.quantity - item.quantity)
            self.recompute_stock(product)
            logger.debug(f"Product #{product.id} -{item.quantity} bags -> {product.quantity}")
    
    def convert_to_loose(self, product_id: int, bags_quantity: int, weight_per_bag: int) -> LooseStock:
        """
        Move bags out of a product into its loose stock pool.
        
        Creates the product's loose stock entry on first conversion and
        grows it on later ones.
        """
        product = self._get_product(product_id)
        product.quantity = max(0, product.quantity - bags_quantity)
        self.recompute_stock(product)
        
        added_kg = to_kg(bags_quantity * weight_per_bag)
        loose = (
            lock_for_update(self.db.query(LooseStock).filter(LooseStock.product_id == product_id))
            .first()
        )
        
        if loose is None:
            loose = LooseStock(
                product_id=product_id,
                product_name=product.name,
                weight_per_bag=weight_per_bag,
                bags_converted=bags_quantity,
                loose_quantity=added_kg,
            )
            self.db.add(loose)
            self.db.flush()
        else:
            loose.bags_converted += bags_quantity
            loose.loose_quantity = to_kg(Decimal(loose.loose_quantity) + added_kg)
        
        logger.debug(f"Loose stock #{loose.id} +{added_kg} kg -> {loose.loose_quantity}")
        return loose
    
    def apply_loose_sale(self, items: Iterable[LooseSaleItem]) -> None:
        """Remove each line item's kilograms from its loose stock entry, never below zero."""
        for item in items:
            loose = self.db.get(LooseStock, item.loose_stock_id)
            if loose is None:
                raise NotFoundError("Loose stock", item.loose_stock_id)
            remaining = Decimal(loose.loose_quantity) - Decimal(item.quantity_kg)
            loose.loose_quantity = to_kg(max(Decimal("0"), remaining))
    
    @staticmethod
    def recompute_stock(product: Product) -> None:
        """Set kilogram stock from the bag count."""
        product.stock = to_kg(product.quantity * product.weight_per_bag)
    
    def _get_product(self, product_id: int) -> Product:
        product = self.db.get(Product, product_id) if product_id is not None else None
        if product is None:
            raise NotFoundError("Product", product_id)
        return product
