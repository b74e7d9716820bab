from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from rice_ledger.api.errors import to_http_exception
from rice_ledger.database import get_db
from rice_ledger.models.payment import TransactionKind
from rice_ledger.schemas.loose import (
    LooseConvertRequest,
    LooseSaleCreate,
    LooseSaleListResponse,
    LooseSaleResponse,
    LooseStockResponse,
)
from rice_ledger.schemas.payment import PaymentCreate
from rice_ledger.services.exceptions import LedgerError, NotFoundError
from rice_ledger.services.ledger_service import LedgerService
from rice_ledger.services.payment_service import PaymentService

stock_router = APIRouter(prefix="/loose-stock", tags=["Loose Stock"])
sales_router = APIRouter(prefix="/loose-sales", tags=["Loose Sales"])


@stock_router.post(
    "/convert",
    response_model=LooseStockResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Convert bags to loose stock",
    description="""
    Break bags of a product into loose kilograms for retail sale.
    
    The product loses the bags and its loose stock entry gains
    bags x weight-per-bag kilograms. The entry is created on the first
    conversion of a product.
    """
)
def convert_to_loose(
    convert_data: LooseConvertRequest,
    db: Session = Depends(get_db)
):
    """
    Convert bags to loose stock.
    
    - **product_id**: Product to take the bags from (required)
    - **bags_quantity**: Number of bags, at most the bags in stock (required)
    """
    service = LedgerService(db)
    try:
        return service.convert_to_loose(convert_data)
    except LedgerError as e:
        raise to_http_exception(e)


@stock_router.get(
    "/",
    response_model=list[LooseStockResponse],
    summary="List loose stock"
)
def list_loose_stock(db: Session = Depends(get_db)):
    """Get all loose stock entries."""
    service = LedgerService(db)
    return service.get_all_loose_stock()


@stock_router.get(
    "/{loose_stock_id}",
    response_model=LooseStockResponse,
    summary="Get loose stock entry by ID"
)
def get_loose_stock(
    loose_stock_id: int,
    db: Session = Depends(get_db)
):
    """Get a loose stock entry."""
    service = LedgerService(db)
    loose = service.get_loose_stock(loose_stock_id)
    
    if not loose:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=NotFoundError("Loose stock", loose_stock_id).to_dict()
        )
    
    return loose


@sales_router.post(
    "/",
    response_model=LooseSaleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a retail bill",
    description="""
    Sell loose stock by the kilogram.
    
    Every item is checked against its loose stock entry before anything is
    recorded; a short item rejects the whole bill with 'Insufficient stock'.
    """
)
def create_loose_sale(
    sale_data: LooseSaleCreate,
    db: Session = Depends(get_db)
):
    """
    Create a retail bill.
    
    - **customer_name**: Customer name (required)
    - **customer_phone**: Customer phone (optional)
    - **items**: One or more of {loose_stock_id, quantity_kg, price_per_kg}
    - **paid_amount**: Amount paid now, up to the total (optional)
    """
    service = LedgerService(db)
    try:
        return service.create_loose_sale(sale_data)
    except LedgerError as e:
        raise to_http_exception(e)


@sales_router.get(
    "/",
    response_model=LooseSaleListResponse,
    summary="List retail bills",
    description="Get a paginated list of retail bills, newest first."
)
def list_loose_sales(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(10, ge=1, le=100, description="Items per page"),
    search: Optional[str] = Query(None, description="Search by customer name"),
    db: Session = Depends(get_db)
):
    """Get paginated list of retail bills."""
    service = LedgerService(db)
    loose_sales, total, total_pages = service.get_loose_sales(page, page_size, search)
    
    return LooseSaleListResponse(
        items=[LooseSaleResponse.model_validate(s) for s in loose_sales],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages
    )


@sales_router.get(
    "/{loose_sale_id}",
    response_model=LooseSaleResponse,
    summary="Get retail bill by ID"
)
def get_loose_sale(
    loose_sale_id: int,
    db: Session = Depends(get_db)
):
    """Get a retail bill with its items and payments."""
    service = LedgerService(db)
    loose_sale = service.get_loose_sale(loose_sale_id)
    
    if not loose_sale:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=NotFoundError("Loose sale", loose_sale_id).to_dict()
        )
    
    return loose_sale


@sales_router.post(
    "/{loose_sale_id}/payments",
    response_model=LooseSaleResponse,
    summary="Receive payment for a retail bill"
)
def add_loose_sale_payment(
    loose_sale_id: int,
    payment_data: PaymentCreate,
    db: Session = Depends(get_db)
):
    """Add a payment to a retail bill."""
    service = PaymentService(db)
    try:
        return service.add_payment(
            TransactionKind.LOOSE_SALE, loose_sale_id, payment_data.amount, payment_data.note
        )
    except LedgerError as e:
        raise to_http_exception(e)
