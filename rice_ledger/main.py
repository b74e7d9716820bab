from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from rice_ledger.config import get_settings
from rice_ledger.database import engine, Base
from rice_ledger.api import health, loose, payments, products, purchases, reports, sales

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    # Startup
    logger.info("Starting up application...")
    
    # Create database tables
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")
    
    yield
    
    # Shutdown
    logger.info("Shutting down application...")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="""
    Inventory and billing backend for a rice trading business:
    
    - **Products**: Bagged rice varieties with bag count and kilogram stock
    - **Purchases & Sales**: Multi-item bills that move stock in and out
    - **Loose Stock**: Bags broken into kilograms for retail bills
    - **Payments**: Installments against any purchase, sale or retail bill
    - **Reports**: Biller-wise, customer-wise and product-wise rollups
    
    ## Stock Consistency
    A product's kilogram stock is always its bag count times its bag weight.
    A bill and its stock change are committed together or not at all, and a
    sale that asks for more than is in stock is rejected in full.
    
    ## Concurrency
    Product and loose stock rows are locked with `SELECT FOR UPDATE` while a
    bill is checked and recorded, so concurrent sales cannot oversell.
    """,
    version=settings.APP_VERSION,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(health.router, prefix="/api/v1")
app.include_router(products.router, prefix="/api/v1")
app.include_router(purchases.router, prefix="/api/v1")
app.include_router(sales.router, prefix="/api/v1")
app.include_router(loose.stock_router, prefix="/api/v1")
app.include_router(loose.sales_router, prefix="/api/v1")
app.include_router(payments.router, prefix="/api/v1")
app.include_router(reports.router, prefix="/api/v1")


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/api/v1/health"
    }
