from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from rice_ledger.api.errors import to_http_exception
from rice_ledger.database import get_db
from rice_ledger.models.payment import TransactionKind
from rice_ledger.schemas.payment import PaymentCreate
from rice_ledger.schemas.purchase import (
    PurchaseCreate,
    PurchaseResponse,
    PurchaseListResponse
)
from rice_ledger.services.exceptions import LedgerError, NotFoundError
from rice_ledger.services.ledger_service import LedgerService
from rice_ledger.services.payment_service import PaymentService

router = APIRouter(prefix="/purchases", tags=["Purchases"])


@router.post(
    "/",
    response_model=PurchaseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a purchase",
    description="""
    Record bags bought from a biller.
    
    The purchase, its line items, the up-front payment (if any) and the
    stock increase are committed together. Each product's bag count goes
    up by the purchased quantity and its kilogram stock is recomputed.
    """
)
def create_purchase(
    purchase_data: PurchaseCreate,
    db: Session = Depends(get_db)
):
    """
    Create a purchase.
    
    - **biller_name**: Supplier name (required)
    - **biller_phone**: Supplier phone (optional)
    - **items**: One or more of {product_id, quantity or weight, unit_price}
    - **paid_amount**: Amount paid now, up to the total (optional)
    """
    service = LedgerService(db)
    try:
        return service.create_purchase(purchase_data)
    except LedgerError as e:
        raise to_http_exception(e)


@router.get(
    "/",
    response_model=PurchaseListResponse,
    summary="List all purchases",
    description="Get a paginated list of purchases, newest first."
)
def list_purchases(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(10, ge=1, le=100, description="Items per page"),
    search: Optional[str] = Query(None, description="Search by biller name"),
    db: Session = Depends(get_db)
):
    """Get paginated list of purchases."""
    service = LedgerService(db)
    purchases, total, total_pages = service.get_purchases(page, page_size, search)
    
    return PurchaseListResponse(
        items=[PurchaseResponse.model_validate(p) for p in purchases],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages
    )


@router.get(
    "/{purchase_id}",
    response_model=PurchaseResponse,
    summary="Get purchase by ID"
)
def get_purchase(
    purchase_id: int,
    db: Session = Depends(get_db)
):
    """Get a purchase with its items and payments."""
    service = LedgerService(db)
    purchase = service.get_purchase(purchase_id)
    
    if not purchase:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=NotFoundError("Purchase", purchase_id).to_dict()
        )
    
    return purchase


@router.post(
    "/{purchase_id}/payments",
    response_model=PurchaseResponse,
    summary="Pay towards a purchase",
    description="Record an installment paid to the biller. The amount cannot exceed the balance."
)
def add_purchase_payment(
    purchase_id: int,
    payment_data: PaymentCreate,
    db: Session = Depends(get_db)
):
    """Add a payment to a purchase."""
    service = PaymentService(db)
    try:
        return service.add_payment(
            TransactionKind.PURCHASE, purchase_id, payment_data.amount, payment_data.note
        )
    except LedgerError as e:
        raise to_http_exception(e)
