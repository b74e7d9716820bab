from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rice_ledger.database import get_db
from rice_ledger.schemas.report import (
    BillerReport,
    CustomerReport,
    DashboardSummary,
    LooseCustomerReport,
    LooseStockSummary,
    ProductReport,
    ReportsResponse,
)
from rice_ledger.services.report_service import ReportService

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get(
    "/",
    response_model=ReportsResponse,
    summary="All party reports",
    description="Biller, customer and retail customer rollups in one response."
)
def list_reports(db: Session = Depends(get_db)):
    """Get every party-wise report."""
    return ReportService(db).all_reports()


@router.get(
    "/billers",
    response_model=list[BillerReport],
    summary="Biller-wise report",
    description="""
    Purchases grouped by biller name and phone, with total, paid and balance
    amounts. Grouping is on the exact name and phone as recorded.
    """
)
def biller_reports(db: Session = Depends(get_db)):
    """Get purchases grouped by biller."""
    return ReportService(db).biller_reports()


@router.get(
    "/customers",
    response_model=list[CustomerReport],
    summary="Customer-wise report",
    description="Sales grouped by customer name and phone."
)
def customer_reports(db: Session = Depends(get_db)):
    """Get sales grouped by customer."""
    return ReportService(db).customer_reports()


@router.get(
    "/loose-customers",
    response_model=list[LooseCustomerReport],
    summary="Retail customer report",
    description="Retail (loose) bills grouped by customer name and phone."
)
def loose_customer_reports(db: Session = Depends(get_db)):
    """Get retail bills grouped by customer."""
    return ReportService(db).loose_customer_reports()


@router.get(
    "/products",
    response_model=list[ProductReport],
    summary="Product-wise report",
    description="Bags, kilograms and amounts purchased and sold per product."
)
def product_reports(db: Session = Depends(get_db)):
    """Get purchase and sale totals per product."""
    return ReportService(db).product_reports()


@router.get(
    "/loose-stock",
    response_model=LooseStockSummary,
    summary="Loose stock summary"
)
def loose_stock_summary(db: Session = Depends(get_db)):
    """Get loose stock entries with totals."""
    return ReportService(db).loose_stock_summary()


@router.get(
    "/summary",
    response_model=DashboardSummary,
    summary="Dashboard summary",
    description="Stock and money totals, low-stock products and recent activity."
)
def dashboard_summary(db: Session = Depends(get_db)):
    """Get headline figures."""
    return ReportService(db).dashboard_summary()
