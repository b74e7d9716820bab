"""Tests for ledger service rules that the HTTP layer can't reach."""
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from rice_ledger.models.product import Product
from rice_ledger.models.sale import Sale
from rice_ledger.schemas.line_item import BagItemCreate
from rice_ledger.schemas.purchase import PurchaseCreate
from rice_ledger.schemas.sale import SaleCreate
from rice_ledger.services.concurrency import run_with_retry
from rice_ledger.services.exceptions import InsufficientStockError, ValidationError
from rice_ledger.services.ledger_service import LedgerService
from rice_ledger.services.stock_engine import StockAdjustmentEngine


def locked_error():
    return OperationalError("UPDATE products", None, Exception("database is locked"))


@pytest.fixture
def product(db_session):
    product = Product(name="Basmati Rice", weight_per_bag=26, quantity=5, stock=Decimal("130"))
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture
def service(db_session):
    service = LedgerService(db_session)
    service.retry_backoff = 0
    return service


def sale_of(product_id, quantity=1, paid_amount=Decimal("0")):
    return SaleCreate(
        customer_name="Hotel Grand",
        items=[BagItemCreate(product_id=product_id, quantity=quantity, unit_price=Decimal("100"))],
        paid_amount=paid_amount,
    )


def test_zero_quantity_rejected(service, product):
    """Test a non-positive quantity is rejected even when schema checks are bypassed."""
    item = BagItemCreate.model_construct(
        product_id=product.id, quantity=0, weight=None, unit_price=Decimal("100")
    )
    data = PurchaseCreate.model_construct(
        biller_name="Rice Supplier Co.", biller_phone=None, items=[item], paid_amount=Decimal("0")
    )
    
    with pytest.raises(ValidationError) as exc_info:
        service.create_purchase(data)
    
    assert exc_info.value.field == "quantity"


def test_empty_items_rejected(service):
    data = PurchaseCreate.model_construct(
        biller_name="Rice Supplier Co.", biller_phone=None, items=[], paid_amount=Decimal("0")
    )
    
    with pytest.raises(ValidationError):
        service.create_purchase(data)


def test_negative_paid_amount_rejected(service, product):
    data = SaleCreate.model_construct(
        customer_name="Hotel Grand",
        customer_phone=None,
        items=[BagItemCreate(product_id=product.id, quantity=1, unit_price=Decimal("100"))],
        paid_amount=Decimal("-1"),
    )
    
    with pytest.raises(ValidationError):
        service.create_sale(data)


def test_paid_above_total_is_recorded_as_total(service, product):
    sale = service.create_sale(sale_of(product.id, quantity=1, paid_amount=Decimal("100.01")))
    
    assert sale.paid_amount == Decimal("100.00")
    assert sale.balance_amount == Decimal("0.00")
    assert [payment.amount for payment in sale.payments] == [Decimal("100.00")]
    assert sum(payment.amount for payment in sale.payments) == sale.paid_amount


def test_insufficient_stock_carries_detail(service, product):
    with pytest.raises(InsufficientStockError) as exc_info:
        service.create_sale(sale_of(product.id, quantity=6))
    
    error = exc_info.value
    assert (error.product_name, error.available, error.requested) == ("Basmati Rice", 5, 6)


def test_lock_conflicts_are_retried_then_rolled_back(db_session, service, product):
    """Test a storage conflict is retried and leaves nothing behind when it persists."""
    with patch.object(StockAdjustmentEngine, "apply_sale", side_effect=locked_error()) as apply_sale:
        with pytest.raises(OperationalError):
            service.create_sale(sale_of(product.id, quantity=2))
    
    assert apply_sale.call_count == service.retry_attempts
    assert db_session.query(Sale).count() == 0
    db_session.refresh(product)
    assert product.quantity == 5


def test_lock_conflict_recovers_on_retry(db_session, service, product):
    real_apply_sale = StockAdjustmentEngine.apply_sale
    calls = []
    
    def flaky(engine, items):
        calls.append(1)
        if len(calls) == 1:
            raise locked_error()
        return real_apply_sale(engine, items)
    
    with patch.object(StockAdjustmentEngine, "apply_sale", autospec=True, side_effect=flaky):
        sale = service.create_sale(sale_of(product.id, quantity=2))
    
    assert len(calls) == 2
    assert sale.id is not None
    assert db_session.query(Sale).count() == 1
    db_session.refresh(product)
    assert product.quantity == 3


def test_unexpected_error_rolls_back(db_session, service, product):
    with patch.object(StockAdjustmentEngine, "apply_sale", side_effect=RuntimeError("boom")):
        with pytest.raises(RuntimeError):
            service.create_sale(sale_of(product.id, quantity=1))
    
    assert db_session.query(Sale).count() == 0
    db_session.refresh(product)
    assert product.quantity == 5


def test_run_with_retry_does_not_retry_business_errors(db_session):
    func = MagicMock(side_effect=ValidationError("bad"))
    
    with pytest.raises(ValidationError):
        run_with_retry(db_session, func, attempts=3, backoff_base=0)
    
    assert func.call_count == 1


def test_run_with_retry_returns_first_success(db_session):
    func = MagicMock(side_effect=[locked_error(), "done"])
    
    assert run_with_retry(db_session, func, attempts=3, backoff_base=0) == "done"
    assert func.call_count == 2