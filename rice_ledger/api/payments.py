from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from rice_ledger.api.errors import to_http_exception
from rice_ledger.database import get_db
from rice_ledger.schemas.payment import PaymentApply, PaymentReceipt, PaymentResponse
from rice_ledger.services.exceptions import LedgerError
from rice_ledger.services.payment_service import PaymentService

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post(
    "/",
    response_model=PaymentReceipt,
    status_code=status.HTTP_200_OK,
    summary="Add a payment to any transaction",
    description="""
    Record a payment against a purchase, sale or loose sale.
    
    The amount must be positive and cannot exceed the outstanding balance.
    Payments never change stock. Like the per-transaction payment routes,
    this returns 200 with the updated totals.
    """
)
def add_payment(
    payment_data: PaymentApply,
    db: Session = Depends(get_db)
):
    """
    Add a payment.
    
    - **transaction_kind**: purchase, sale or loose_sale (required)
    - **transaction_id**: ID of the transaction (required)
    - **amount**: Amount paid (required)
    - **note**: Free-text note (optional)
    """
    service = PaymentService(db)
    try:
        transaction = service.add_payment(
            payment_data.transaction_kind,
            payment_data.transaction_id,
            payment_data.amount,
            payment_data.note,
        )
    except LedgerError as e:
        raise to_http_exception(e)
    
    return PaymentReceipt(
        transaction_kind=payment_data.transaction_kind,
        transaction_id=transaction.id,
        total_amount=transaction.total_amount,
        paid_amount=transaction.paid_amount,
        balance_amount=transaction.balance_amount,
        payments=[PaymentResponse.model_validate(p) for p in transaction.payments],
    )
