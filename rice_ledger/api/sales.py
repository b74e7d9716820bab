from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from rice_ledger.api.errors import to_http_exception
from rice_ledger.database import get_db
from rice_ledger.models.payment import TransactionKind
from rice_ledger.schemas.payment import PaymentCreate
from rice_ledger.schemas.sale import (
    SaleCreate,
    SaleResponse,
    SaleListResponse
)
from rice_ledger.services.exceptions import LedgerError, NotFoundError
from rice_ledger.services.ledger_service import LedgerService
from rice_ledger.services.payment_service import PaymentService

router = APIRouter(prefix="/sales", tags=["Sales"])


@router.post(
    "/",
    response_model=SaleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a sale",
    description="""
    Sell bags to a customer.
    
    **Race Condition Handling:**
    Product rows are locked with SELECT FOR UPDATE before stock is checked.
    When two sales compete for the last bags, only one succeeds; the other
    receives a 400 error with an 'Insufficient stock' message naming the
    product and the bags still available. A rejected sale records nothing.
    """
)
def create_sale(
    sale_data: SaleCreate,
    db: Session = Depends(get_db)
):
    """
    Create a sale.
    
    - **customer_name**: Customer name (required)
    - **customer_phone**: Customer phone (optional)
    - **items**: One or more of {product_id, quantity or weight, unit_price}
    - **paid_amount**: Amount paid now, up to the total (optional)
    """
    service = LedgerService(db)
    try:
        return service.create_sale(sale_data)
    except LedgerError as e:
        raise to_http_exception(e)


@router.get(
    "/",
    response_model=SaleListResponse,
    summary="List all sales",
    description="Get a paginated list of sales, newest first."
)
def list_sales(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(10, ge=1, le=100, description="Items per page"),
    search: Optional[str] = Query(None, description="Search by customer name"),
    db: Session = Depends(get_db)
):
    """Get paginated list of sales."""
    service = LedgerService(db)
    sales, total, total_pages = service.get_sales(page, page_size, search)
    
    return SaleListResponse(
        items=[SaleResponse.model_validate(s) for s in sales],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages
    )


@router.get(
    "/{sale_id}",
    response_model=SaleResponse,
    summary="Get sale by ID"
)
def get_sale(
    sale_id: int,
    db: Session = Depends(get_db)
):
    """Get a sale with its items and payments."""
    service = LedgerService(db)
    sale = service.get_sale(sale_id)
    
    if not sale:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=NotFoundError("Sale", sale_id).to_dict()
        )
    
    return sale


@router.post(
    "/{sale_id}/payments",
    response_model=SaleResponse,
    summary="Receive payment for a sale",
    description="Record an installment received from the customer. The amount cannot exceed the balance."
)
def add_sale_payment(
    sale_id: int,
    payment_data: PaymentCreate,
    db: Session = Depends(get_db)
):
    """Add a payment to a sale."""
    service = PaymentService(db)
    try:
        return service.add_payment(
            TransactionKind.SALE, sale_id, payment_data.amount, payment_data.note
        )
    except LedgerError as e:
        raise to_http_exception(e)
