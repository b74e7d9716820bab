from pydantic import BaseModel
from typing import Optional

from rice_ledger.schemas.loose import LooseSaleResponse, LooseStockResponse
from rice_ledger.schemas.product import ProductResponse
from rice_ledger.schemas.purchase import PurchaseResponse
from rice_ledger.schemas.sale import SaleResponse


class BillerReport(BaseModel):
    """Purchases grouped by biller, newest first."""
    biller_name: str
    biller_phone: Optional[str] = None
    total_amount: float
    paid_amount: float
    balance_amount: float
    purchases: list[PurchaseResponse]


class CustomerReport(BaseModel):
    """Sales grouped by customer, newest first."""
    customer_name: str
    customer_phone: Optional[str] = None
    total_amount: float
    paid_amount: float
    balance_amount: float
    sales: list[SaleResponse]


class LooseCustomerReport(BaseModel):
    """Retail bills grouped by customer, newest first."""
    customer_name: str
    customer_phone: Optional[str] = None
    total_amount: float
    paid_amount: float
    balance_amount: float
    sales: list[LooseSaleResponse]


class ProductReport(BaseModel):
    """Bags and money moved per product, from line item snapshots."""
    product_id: Optional[int] = None
    product_name: str
    weight_per_bag: int
    bags_purchased: int
    kg_purchased: float
    purchase_amount: float
    bags_sold: int
    kg_sold: float
    sales_amount: float
    current_quantity: Optional[int] = None
    current_stock: Optional[float] = None


class LooseStockSummary(BaseModel):
    entries: int
    total_bags_converted: int
    total_loose_quantity: float
    total_sold_quantity: float
    items: list[LooseStockResponse]


class DashboardSummary(BaseModel):
    """Headline figures for the whole business."""
    product_count: int
    total_stock_kg: float
    total_purchase_value: float
    total_sales_value: float
    total_loose_sales_value: float
    purchase_balance: float
    sales_balance: float
    loose_sales_balance: float
    low_stock_products: list[ProductResponse]
    recent_purchases: list[PurchaseResponse]
    recent_sales: list[SaleResponse]


class ReportsResponse(BaseModel):
    """All party-wise rollups in one response."""
    billers: list[BillerReport]
    customers: list[CustomerReport]
    loose_customers: list[LooseCustomerReport]
