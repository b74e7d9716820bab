from decimal import Decimal
from typing import Optional, Union
import logging

from sqlalchemy.orm import Session

from rice_ledger.config import get_settings
from rice_ledger.models.loose_sale import LooseSale
from rice_ledger.models.payment import Payment, TransactionKind
from rice_ledger.models.purchase import Purchase
from rice_ledger.models.sale import Sale
from rice_ledger.services.concurrency import lock_for_update, run_with_retry
from rice_ledger.services.exceptions import (
    LedgerError,
    NotFoundError,
    OverpaymentError,
    ValidationError,
)
from rice_ledger.utils.clock import utcnow
from rice_ledger.utils.quantities import to_money

logger = logging.getLogger(__name__)

Transaction = Union[Purchase, Sale, LooseSale]

TRANSACTION_MODELS = {
    TransactionKind.PURCHASE: (Purchase, "Purchase"),
    TransactionKind.SALE: (Sale, "Sale"),
    TransactionKind.LOOSE_SALE: (LooseSale, "Loose sale"),
}


class PaymentService:
    """
    Applies installment payments to purchases, sales and retail bills.
    
    Payments only move money: paid goes up, balance goes down. Stock is
    never touched here.
    """
    
    def __init__(self, db: Session):
        self.db = db
        settings = get_settings()
        self.retry_attempts = settings.LOCK_RETRY_ATTEMPTS
        self.retry_backoff = settings.LOCK_RETRY_BACKOFF
    
    def add_payment(
        self,
        kind: TransactionKind,
        transaction_id: int,
        amount,
        note: Optional[str] = None,
    ) -> Transaction:
        """
        Record a payment against a transaction.
        
        Args:
            kind: Which ledger the transaction belongs to
            transaction_id: ID of the purchase, sale or loose sale
            amount: Amount paid, must be positive and not exceed the balance
            note: Optional note stored with the payment
            
        Returns:
            The updated transaction
            
        Raises:
            ValidationError: If the amount is not positive
            OverpaymentError: If the amount exceeds the outstanding balance
            NotFoundError: If the transaction doesn't exist
        """
        kind = TransactionKind(kind)
        
        def _op():
            return self._apply(kind, transaction_id, amount, note)
        
        try:
            return run_with_retry(
                self.db, _op, attempts=self.retry_attempts, backoff_base=self.retry_backoff
            )
        except LedgerError as e:
            self.db.rollback()
            logger.warning(f"Rejected payment on {kind.value} #{transaction_id}: {e}")
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error adding payment to {kind.value} #{transaction_id}: {e}")
            raise
    
    def _apply(self, kind: TransactionKind, transaction_id: int, amount, note: Optional[str]) -> Transaction:
        amount = to_money(amount)
        if amount <= 0:
            raise ValidationError("Payment amount must be positive", field="amount")
        
        model, label = TRANSACTION_MODELS[kind]
        # Lock the transaction row so concurrent payments see each other's balance
        transaction = (
            lock_for_update(self.db.query(model).filter(model.id == transaction_id))
            .first()
        )
        if not transaction:
            raise NotFoundError(label, transaction_id)
        
        balance = Decimal(transaction.balance_amount)
        if amount > balance:
            raise OverpaymentError(amount, to_money(balance))
        
        transaction.payments.append(Payment(amount=amount, date=utcnow(), note=note or None))
        transaction.paid_amount = to_money(Decimal(transaction.paid_amount) + amount)
        transaction.balance_amount = to_money(max(Decimal("0"), balance - amount))
        
        self.db.commit()
        self.db.refresh(transaction)
        
        logger.info(
            f"Payment of {amount} applied to {kind.value} #{transaction.id}, "
            f"balance now {transaction.balance_amount}"
        )
        return transaction
