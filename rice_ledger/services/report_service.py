from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

from sqlalchemy.orm import Session

from rice_ledger.models.loose_sale import LooseSale
from rice_ledger.models.loose_stock import LooseStock
from rice_ledger.models.product import Product
from rice_ledger.models.purchase import Purchase, PurchaseItem
from rice_ledger.models.sale import Sale, SaleItem
from rice_ledger.schemas.loose import LooseSaleResponse, LooseStockResponse
from rice_ledger.schemas.product import ProductResponse
from rice_ledger.schemas.purchase import PurchaseResponse
from rice_ledger.schemas.report import (
    BillerReport,
    CustomerReport,
    DashboardSummary,
    LooseCustomerReport,
    LooseStockSummary,
    ProductReport,
    ReportsResponse,
)
from rice_ledger.schemas.sale import SaleResponse

RECENT_LIMIT = 5


def group_by_party(transactions: Iterable, name_attr: str, phone_attr: str) -> Dict[Tuple, list]:
    """
    Group transactions by (name, phone), keeping input order.

    Keys are compared exactly as stored: "Ravi" and "ravi " are two
    different parties.
    """
    groups: Dict[Tuple, list] = {}
    for transaction in transactions:
        key = (getattr(transaction, name_attr), getattr(transaction, phone_attr))
        groups.setdefault(key, []).append(transaction)
    return groups


def sum_amounts(transactions: Iterable) -> Dict[str, Decimal]:
    totals = {
        "total_amount": Decimal("0"),
        "paid_amount": Decimal("0"),
        "balance_amount": Decimal("0"),
    }
    for transaction in transactions:
        totals["total_amount"] += Decimal(transaction.total_amount)
        totals["paid_amount"] += Decimal(transaction.paid_amount)
        totals["balance_amount"] += Decimal(transaction.balance_amount)
    return totals


class ReportService:
    """
    Read-only rollups over the ledger.

    Nothing is stored; every report is rebuilt from current records on
    each call.
    """

    def __init__(self, db: Session):
        self.db = db

    def biller_reports(self) -> List[BillerReport]:
        """Purchases grouped by biller; the most recently active biller comes first."""
        groups = group_by_party(self._newest_first(Purchase), "biller_name", "biller_phone")
        return [
            BillerReport(
                biller_name=name,
                biller_phone=phone,
                purchases=[PurchaseResponse.model_validate(p) for p in purchases],
                **sum_amounts(purchases),
            )
            for (name, phone), purchases in groups.items()
        ]

    def customer_reports(self) -> List[CustomerReport]:
        """Sales grouped by customer; the most recently active customer comes first."""
        groups = group_by_party(self._newest_first(Sale), "customer_name", "customer_phone")
        return [
            CustomerReport(
                customer_name=name,
                customer_phone=phone,
                sales=[SaleResponse.model_validate(s) for s in sales],
                **sum_amounts(sales),
            )
            for (name, phone), sales in groups.items()
        ]

    def loose_customer_reports(self) -> List[LooseCustomerReport]:
        """Retail bills grouped by customer."""
        groups = group_by_party(self._newest_first(LooseSale), "customer_name", "customer_phone")
        return [
            LooseCustomerReport(
                customer_name=name,
                customer_phone=phone,
                sales=[LooseSaleResponse.model_validate(s) for s in sales],
                **sum_amounts(sales),
            )
            for (name, phone), sales in groups.items()
        ]

    def all_reports(self) -> ReportsResponse:
        return ReportsResponse(
            billers=self.biller_reports(),
            customers=self.customer_reports(),
            loose_customers=self.loose_customer_reports(),
        )

    def product_reports(self) -> List[ProductReport]:
        """
        Bags, kilograms and money moved per product.

        Built from line item snapshots, so products that have since been
        deleted still show up under the name they were traded as.
        """
        rows: Dict[object, dict] = {}

        for product in self.db.query(Product).order_by(Product.name, Product.id).all():
            rows[product.id] = self._empty_product_row(product.id, product.name, product.weight_per_bag)
            rows[product.id]["current_quantity"] = product.quantity
            rows[product.id]["current_stock"] = product.stock

        for item in self.db.query(PurchaseItem).order_by(PurchaseItem.id).all():
            row = self._product_row(rows, item)
            row["bags_purchased"] += item.quantity
            row["kg_purchased"] += Decimal(item.weight)
            row["purchase_amount"] += Decimal(item.amount)

        for item in self.db.query(SaleItem).order_by(SaleItem.id).all():
            row = self._product_row(rows, item)
            row["bags_sold"] += item.quantity
            row["kg_sold"] += Decimal(item.weight)
            row["sales_amount"] += Decimal(item.amount)

        return [ProductReport(**row) for row in rows.values()]

    def loose_stock_summary(self) -> LooseStockSummary:
        pools = (
            self.db.query(LooseStock)
            .order_by(LooseStock.created_at.desc(), LooseStock.id.desc())
            .all()
        )
        return LooseStockSummary(
            entries=len(pools),
            total_bags_converted=sum(pool.bags_converted for pool in pools),
            total_loose_quantity=sum((Decimal(pool.loose_quantity) for pool in pools), Decimal("0")),
            total_sold_quantity=sum((pool.sold_quantity for pool in pools), Decimal("0")),
            items=[LooseStockResponse.model_validate(pool) for pool in pools],
        )

    def dashboard_summary(self) -> DashboardSummary:
        """Headline stock and money figures with low-stock products and recent activity."""
        products = self.db.query(Product).order_by(Product.name, Product.id).all()
        purchases = self._newest_first(Purchase)
        sales = self._newest_first(Sale)
        loose_sales = self._newest_first(LooseSale)

        purchase_totals = sum_amounts(purchases)
        sale_totals = sum_amounts(sales)
        loose_totals = sum_amounts(loose_sales)

        return DashboardSummary(
            product_count=len(products),
            total_stock_kg=sum((Decimal(p.stock) for p in products), Decimal("0")),
            total_purchase_value=purchase_totals["total_amount"],
            total_sales_value=sale_totals["total_amount"],
            total_loose_sales_value=loose_totals["total_amount"],
            purchase_balance=purchase_totals["balance_amount"],
            sales_balance=sale_totals["balance_amount"],
            loose_sales_balance=loose_totals["balance_amount"],
            low_stock_products=[
                ProductResponse.model_validate(p) for p in products if p.is_low_stock
            ],
            recent_purchases=[
                PurchaseResponse.model_validate(p) for p in purchases[:RECENT_LIMIT]
            ],
            recent_sales=[SaleResponse.model_validate(s) for s in sales[:RECENT_LIMIT]],
        )

    def _newest_first(self, model) -> list:
        return self.db.query(model).order_by(model.created_at.desc(), model.id.desc()).all()

    @staticmethod
    def _empty_product_row(product_id, product_name: str, weight_per_bag: int) -> dict:
        return {
            "product_id": product_id,
            "product_name": product_name,
            "weight_per_bag": weight_per_bag,
            "bags_purchased": 0,
            "kg_purchased": Decimal("0"),
            "purchase_amount": Decimal("0"),
            "bags_sold": 0,
            "kg_sold": Decimal("0"),
            "sales_amount": Decimal("0"),
            "current_quantity": None,
            "current_stock": None,
        }

    def _product_row(self, rows: Dict[object, dict], item) -> dict:
        # Lines of a deleted product have no product_id; group them by snapshot name
        key = item.product_id if item.product_id is not None else ("deleted", item.product_name)
        if key not in rows:
            rows[key] = self._empty_product_row(item.product_id, item.product_name, item.weight_per_bag)
        return rows[key]
