from sqlalchemy.orm import Session
from typing import Optional, List
import math
import logging

from rice_ledger.models.product import Product, WEIGHT_VARIANTS
from rice_ledger.schemas.product import ProductCreate, ProductUpdate
from rice_ledger.services.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class ProductService:
    """
    Service class for Product operations.
    
    This service handles:
    - Creating new products (always with zero stock)
    - Reading and searching products
    - Updating product name and low-stock threshold
    - Deleting products
    
    Bag and kilogram stock are never written here; they change only
    through purchases, sales and loose conversions.
    """
    
    def __init__(self, db: Session):
        self.db = db
    
    def create(self, product_data: ProductCreate) -> Product:
        """
        Create a new product with no stock.
        
        Args:
            product_data: Product creation data
            
        Returns:
            Created product instance
            
        Raises:
            ValidationError: If the name is blank, the weight per bag is not
                a standard pack size or the alert threshold is negative
        """
        if not product_data.name or not product_data.name.strip():
            raise ValidationError("Product name is required", field="name")
        if product_data.weight_per_bag not in WEIGHT_VARIANTS:
            raise ValidationError(
                f"Weight per bag must be one of {list(WEIGHT_VARIANTS)}",
                field="weight_per_bag",
            )
        if product_data.low_stock_alert < 0:
            raise ValidationError("Low stock alert cannot be negative", field="low_stock_alert")
        
        product = Product(
            name=product_data.name,
            weight_per_bag=product_data.weight_per_bag,
            quantity=0,
            stock=0,
            unit="kg",
            low_stock_alert=product_data.low_stock_alert,
        )
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        
        logger.info(f"Product #{product.id} '{product.name}' created ({product.weight_per_bag} kg bags)")
        return product
    
    def get_by_id(self, product_id: int) -> Optional[Product]:
        """Get a product by ID."""
        return self.db.query(Product).filter(Product.id == product_id).first()
    
    def get_all(
        self, 
        page: int = 1, 
        page_size: int = 10,
        search: str = None
    ) -> tuple[List[Product], int, int]:
        """
        Get paginated list of products.
        
        Args:
            page: Page number (1-indexed)
            page_size: Number of items per page
            search: Optional search term for product name
            
        Returns:
            Tuple of (products list, total count, total pages)
        """
        query = self.db.query(Product)
        
        if search:
            query = query.filter(Product.name.ilike(f"%{search}%"))
        
        total = query.count()
        total_pages = math.ceil(total / page_size) if total > 0 else 1
        
        offset = (page - 1) * page_size
        products = query.order_by(Product.id.desc()).offset(offset).limit(page_size).all()
        
        return products, total, total_pages
    
    def get_low_stock(self) -> List[Product]:
        """Products whose bag count is at or below their alert threshold."""
        return (
            self.db.query(Product)
            .filter(Product.quantity <= Product.low_stock_alert)
            .order_by(Product.quantity.asc(), Product.id.asc())
            .all()
        )
    
    def update(self, product_id: int, product_data: ProductUpdate) -> Product:
        """
        Update an existing product.
        
        Args:
            product_id: ID of product to update
            product_data: Update data (only non-None fields are updated)
            
        Returns:
            Updated product
            
        Raises:
            NotFoundError: If the product doesn't exist
            ValidationError: If the new name is blank
        """
        product = self.get_by_id(product_id)
        
        if not product:
            raise NotFoundError("Product", product_id)
        
        update_data = product_data.model_dump(exclude_unset=True)
        if "name" in update_data and update_data["name"] is not None and not update_data["name"].strip():
            raise ValidationError("Product name is required", field="name")
        
        for field, value in update_data.items():
            if value is not None:
                setattr(product, field, value)
        
        self.db.commit()
        self.db.refresh(product)
        
        return product
    
    def delete(self, product_id: int) -> None:
        """
        Delete a product.
        
        Purchase, sale and loose stock records keep their own copy of the
        product name and bag weight, so history stays readable.
        
        Raises:
            NotFoundError: If the product doesn't exist
        """
        product = self.get_by_id(product_id)
        
        if not product:
            raise NotFoundError("Product", product_id)
        
        self.db.delete(product)
        self.db.commit()
        
        logger.info(f"Product #{product_id} deleted")
