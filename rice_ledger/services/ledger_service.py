from collections import defaultdict
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Tuple, TypeVar
import math
import logging

from sqlalchemy.orm import Session

from rice_ledger.config import get_settings
from rice_ledger.models.loose_sale import LooseSale, LooseSaleItem
from rice_ledger.models.loose_stock import LooseStock
from rice_ledger.models.payment import Payment
from rice_ledger.models.product import Product
from rice_ledger.models.purchase import Purchase, PurchaseItem
from rice_ledger.models.sale import Sale, SaleItem
from rice_ledger.schemas.line_item import BagItemCreate
from rice_ledger.schemas.loose import LooseConvertRequest, LooseSaleCreate
from rice_ledger.schemas.purchase import PurchaseCreate
from rice_ledger.schemas.sale import SaleCreate
from rice_ledger.services.concurrency import lock_for_update, run_with_retry
from rice_ledger.services.exceptions import (
    InsufficientStockError,
    LedgerError,
    NotFoundError,
    ValidationError,
)
from rice_ledger.services.stock_engine import StockAdjustmentEngine
from rice_ledger.utils.clock import utcnow
from rice_ledger.utils.quantities import bags_for_weight, to_kg, to_money

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LedgerService:
    """
    Records purchases, sales, retail (loose) bills and loose conversions.

    Every write is one unit of work: the ledger record, its line items,
    the seed payment and the stock change are committed together or
    rolled back together.

    LOCKING:
    ========
    Product and loose stock rows are read with SELECT FOR UPDATE, in id
    order, before any availability check. A second sale of the same
    product waits for the first to commit and then sees the reduced
    stock, so two sales can never both take the last bags. Lock
    conflicts and deadlocks reported by the database are retried with
    backoff; business-rule errors are not.
    """

    def __init__(self, db: Session, engine: Optional[StockAdjustmentEngine] = None):
        self.db = db
        self.stock = engine or StockAdjustmentEngine(db)
        settings = get_settings()
        self.retry_attempts = settings.LOCK_RETRY_ATTEMPTS
        self.retry_backoff = settings.LOCK_RETRY_BACKOFF

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_purchase(self, purchase_data: PurchaseCreate) -> Purchase:
        """
        Record a purchase and add its bags to stock.

        Args:
            purchase_data: Biller, line items and amount paid up front. An amount
                above the total is recorded as the total.

        Returns:
            Created purchase with items and payments

        Raises:
            ValidationError: If the biller name is blank, there are no items,
                or a quantity or price is not positive
            NotFoundError: If a product doesn't exist
        """
        return self._unit_of_work(lambda: self._create_purchase(purchase_data), "purchase")

    def create_sale(self, sale_data: SaleCreate) -> Sale:
        """
        Record a sale and take its bags out of stock.

        All items are checked against current stock before anything is
        written; if any item is short, nothing is recorded.

        Raises:
            ValidationError, NotFoundError: As for purchases
            InsufficientStockError: If a product has fewer bags than requested
        """
        return self._unit_of_work(lambda: self._create_sale(sale_data), "sale")

    def create_loose_sale(self, sale_data: LooseSaleCreate) -> LooseSale:
        """
        Record a retail bill and take its kilograms out of loose stock.

        Raises:
            ValidationError, NotFoundError: As for purchases
            InsufficientStockError: If a loose stock entry has fewer kg than requested
        """
        return self._unit_of_work(lambda: self._create_loose_sale(sale_data), "loose sale")

    def convert_to_loose(self, convert_data: LooseConvertRequest) -> LooseStock:
        """
        Break bags of a product into its loose stock pool.

        Raises:
            ValidationError: If the bag count is not positive
            NotFoundError: If the product doesn't exist
            InsufficientStockError: If the product has fewer bags than requested
        """
        return self._unit_of_work(lambda: self._convert_to_loose(convert_data), "loose conversion")

    def _create_purchase(self, purchase_data: PurchaseCreate) -> Purchase:
        self._check_party(purchase_data.biller_name, "biller_name", "Biller name")
        self._check_items(purchase_data.items)

        products = self._lock_products(item.product_id for item in purchase_data.items)
        lines = [self._build_bag_line(PurchaseItem, item, products) for item in purchase_data.items]
        total = self._total(lines)
        paid, balance = self._settle(total, purchase_data.paid_amount)

        now = utcnow()
        purchase = Purchase(
            biller_name=purchase_data.biller_name,
            biller_phone=purchase_data.biller_phone or None,
            total_amount=total,
            paid_amount=paid,
            balance_amount=balance,
            created_at=now,
            updated_at=now,
            items=lines,
        )
        if paid > 0:
            purchase.payments.append(Payment(amount=paid, date=now))

        self.db.add(purchase)
        self.stock.apply_purchase(purchase.items)

        self.db.commit()
        self.db.refresh(purchase)

        logger.info(
            f"Purchase #{purchase.id} from '{purchase.biller_name}' recorded: "
            f"{len(lines)} item(s), total {total}, paid {paid}"
        )
        return purchase

    def _create_sale(self, sale_data: SaleCreate) -> Sale:
        self._check_party(sale_data.customer_name, "customer_name", "Customer name")
        self._check_items(sale_data.items)

        products = self._lock_products(item.product_id for item in sale_data.items)
        lines = [self._build_bag_line(SaleItem, item, products) for item in sale_data.items]

        # Check availability inside the lock; the same product may appear on several lines
        requested: Dict[int, int] = defaultdict(int)
        for line in lines:
            requested[line.product_id] += line.quantity
        for product_id, quantity in requested.items():
            product = products[product_id]
            if product.quantity < quantity:
                raise InsufficientStockError(product.name, product.quantity, quantity)

        total = self._total(lines)
        paid, balance = self._settle(total, sale_data.paid_amount)

        now = utcnow()
        sale = Sale(
            customer_name=sale_data.customer_name,
            customer_phone=sale_data.customer_phone or None,
            total_amount=total,
            paid_amount=paid,
            balance_amount=balance,
            created_at=now,
            updated_at=now,
            items=lines,
        )
        if paid > 0:
            sale.payments.append(Payment(amount=paid, date=now))

        self.db.add(sale)
        self.stock.apply_sale(sale.items)

        self.db.commit()
        self.db.refresh(sale)

        logger.info(
            f"Sale #{sale.id} to '{sale.customer_name}' recorded: "
            f"{len(lines)} item(s), total {total}, paid {paid}"
        )
        return sale

    def _create_loose_sale(self, sale_data: LooseSaleCreate) -> LooseSale:
        self._check_party(sale_data.customer_name, "customer_name", "Customer name")
        self._check_items(sale_data.items)

        pools = self._lock_loose_stock(item.loose_stock_id for item in sale_data.items)
        lines = []
        for item in sale_data.items:
            quantity_kg = to_kg(item.quantity_kg)
            price_per_kg = to_money(item.price_per_kg)
            if quantity_kg <= 0:
                raise ValidationError("Quantity must be positive", field="quantity_kg")
            if price_per_kg <= 0:
                raise ValidationError("Price per kg must be positive", field="price_per_kg")
            lines.append(
                LooseSaleItem(
                    loose_stock_id=item.loose_stock_id,
                    product_name=pools[item.loose_stock_id].product_name,
                    quantity_kg=quantity_kg,
                    price_per_kg=price_per_kg,
                    amount=to_money(price_per_kg * quantity_kg),
                )
            )

        requested: Dict[int, Decimal] = defaultdict(Decimal)
        for line in lines:
            requested[line.loose_stock_id] += line.quantity_kg
        for loose_stock_id, quantity_kg in requested.items():
            pool = pools[loose_stock_id]
            available = Decimal(pool.loose_quantity)
            if available < quantity_kg:
                raise InsufficientStockError(pool.product_name, available, quantity_kg, unit="kg")

        total = self._total(lines)
        paid, balance = self._settle(total, sale_data.paid_amount)

        now = utcnow()
        loose_sale = LooseSale(
            customer_name=sale_data.customer_name,
            customer_phone=sale_data.customer_phone or None,
            total_amount=total,
            paid_amount=paid,
            balance_amount=balance,
            created_at=now,
            updated_at=now,
            items=lines,
        )
        if paid > 0:
            loose_sale.payments.append(Payment(amount=paid, date=now))

        self.db.add(loose_sale)
        self.stock.apply_loose_sale(loose_sale.items)

        self.db.commit()
        self.db.refresh(loose_sale)

        logger.info(
            f"Loose sale #{loose_sale.id} to '{loose_sale.customer_name}' recorded: "
            f"{len(lines)} item(s), total {total}, paid {paid}"
        )
        return loose_sale

    def _convert_to_loose(self, convert_data: LooseConvertRequest) -> LooseStock:
        bags_quantity = convert_data.bags_quantity
        if bags_quantity is None or bags_quantity <= 0:
            raise ValidationError("Bags quantity must be positive", field="bags_quantity")

        product = self._lock_products([convert_data.product_id])[convert_data.product_id]
        if product.quantity < bags_quantity:
            raise InsufficientStockError(product.name, product.quantity, bags_quantity)

        loose = self.stock.convert_to_loose(product.id, bags_quantity, product.weight_per_bag)

        self.db.commit()
        self.db.refresh(loose)

        logger.info(
            f"Converted {bags_quantity} bag(s) of product #{product.id} to loose stock "
            f"#{loose.id} ({loose.loose_quantity} kg loose)"
        )
        return loose

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_purchase(self, purchase_id: int) -> Optional[Purchase]:
        """Get a purchase by ID."""
        return self.db.query(Purchase).filter(Purchase.id == purchase_id).first()

    def get_purchases(
        self, page: int = 1, page_size: int = 10, search: str = None
    ) -> Tuple[List[Purchase], int, int]:
        """Get paginated purchases, newest first, optionally filtered by biller name."""
        return self._paginate(Purchase, Purchase.biller_name, page, page_size, search)

    def get_sale(self, sale_id: int) -> Optional[Sale]:
        """Get a sale by ID."""
        return self.db.query(Sale).filter(Sale.id == sale_id).first()

    def get_sales(
        self, page: int = 1, page_size: int = 10, search: str = None
    ) -> Tuple[List[Sale], int, int]:
        """Get paginated sales, newest first, optionally filtered by customer name."""
        return self._paginate(Sale, Sale.customer_name, page, page_size, search)

    def get_loose_sale(self, loose_sale_id: int) -> Optional[LooseSale]:
        """Get a retail bill by ID."""
        return self.db.query(LooseSale).filter(LooseSale.id == loose_sale_id).first()

    def get_loose_sales(
        self, page: int = 1, page_size: int = 10, search: str = None
    ) -> Tuple[List[LooseSale], int, int]:
        """Get paginated retail bills, newest first, optionally filtered by customer name."""
        return self._paginate(LooseSale, LooseSale.customer_name, page, page_size, search)

    def get_loose_stock(self, loose_stock_id: int) -> Optional[LooseStock]:
        """Get a loose stock entry by ID."""
        return self.db.query(LooseStock).filter(LooseStock.id == loose_stock_id).first()

    def get_all_loose_stock(self) -> List[LooseStock]:
        """All loose stock entries, most recently created first."""
        return (
            self.db.query(LooseStock)
            .order_by(LooseStock.created_at.desc(), LooseStock.id.desc())
            .all()
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _unit_of_work(self, work: Callable[[], T], description: str) -> T:
        try:
            return run_with_retry(
                self.db,
                work,
                attempts=self.retry_attempts,
                backoff_base=self.retry_backoff,
            )
        except LedgerError as e:
            self.db.rollback()
            logger.warning(f"Rejected {description}: {e}")
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating {description}: {e}")
            raise

    def _lock_products(self, product_ids: Iterable[int]) -> Dict[int, Product]:
        ids = sorted(set(product_ids))
        products = (
            lock_for_update(
                self.db.query(Product).filter(Product.id.in_(ids)).order_by(Product.id)
            )
            .all()
        )
        found = {product.id: product for product in products}
        for product_id in ids:
            if product_id not in found:
                raise NotFoundError("Product", product_id)
        return found

    def _lock_loose_stock(self, loose_stock_ids: Iterable[int]) -> Dict[int, LooseStock]:
        ids = sorted(set(loose_stock_ids))
        pools = (
            lock_for_update(
                self.db.query(LooseStock).filter(LooseStock.id.in_(ids)).order_by(LooseStock.id)
            )
            .all()
        )
        found = {pool.id: pool for pool in pools}
        for loose_stock_id in ids:
            if loose_stock_id not in found:
                raise NotFoundError("Loose stock", loose_stock_id)
        return found

    @staticmethod
    def _check_party(name: Optional[str], field: str, label: str) -> None:
        # Names are stored exactly as given; reports group on the exact string
        if not name or not name.strip():
            raise ValidationError(f"{label} is required", field=field)

    @staticmethod
    def _check_items(items) -> None:
        if not items:
            raise ValidationError("At least one item is required", field="items")

    @staticmethod
    def _build_bag_line(line_model, item: BagItemCreate, products: Dict[int, Product]):
        """
        Build a purchase or sale line from the product's current snapshot.

        A weight is converted to bags rounding up, so a part bag is charged
        as a whole bag.
        """
        product = products[item.product_id]
        quantity = item.quantity
        if quantity is None and item.weight is not None:
            quantity = bags_for_weight(item.weight, product.weight_per_bag)
        if quantity is None or quantity <= 0:
            raise ValidationError(
                f"Quantity for {product.name} must be positive", field="quantity"
            )

        unit_price = to_money(item.unit_price)
        if unit_price <= 0:
            raise ValidationError(
                f"Unit price for {product.name} must be positive", field="unit_price"
            )

        return line_model(
            product_id=product.id,
            product_name=product.name,
            weight_per_bag=product.weight_per_bag,
            quantity=quantity,
            unit_price=unit_price,
            weight=to_kg(quantity * product.weight_per_bag),
            amount=to_money(unit_price * quantity),
        )

    @staticmethod
    def _total(lines) -> Decimal:
        return to_money(sum((Decimal(line.amount) for line in lines), Decimal("0")))

    @staticmethod
    def _settle(total: Decimal, paid_amount) -> Tuple[Decimal, Decimal]:
        """
        Return (paid, balance) for a new transaction.

        Paying more than the total up front is accepted; the recorded amount
        and the seed payment are capped at the total.
        """
        paid = to_money(paid_amount if paid_amount is not None else 0)
        if paid < 0:
            raise ValidationError("Paid amount cannot be negative", field="paid_amount")
        if paid > total:
            logger.info(f"Paid amount {paid} exceeds total {total}, recording {total}")
            paid = total
        return paid, to_money(max(Decimal("0"), total - paid))

    def _paginate(self, model, name_column, page: int, page_size: int, search: Optional[str]):
        query = self.db.query(model)

        if search:
            query = query.filter(name_column.ilike(f"%{search}%"))

        total = query.count()
        total_pages = math.ceil(total / page_size) if total > 0 else 1

        offset = (page - 1) * page_size
        records = (
            query.order_by(model.created_at.desc(), model.id.desc())
            .offset(offset)
            .limit(page_size)
            .all()
        )

        return records, total, total_pages
