import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from quarry_erp.api.customers import router as customers_router
from quarry_erp.api.invoices import router as invoices_router
from quarry_erp.api.reports import router as reports_router
from quarry_erp.core.config import settings
from quarry_erp.db.errors import StoreError, StoreTimeoutError
from quarry_erp.services.billing import InvoiceConflictError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(message)s",
)

app = FastAPI(
    title="Quarry ERP Sales & Reporting API",
    version="0.1.0",
)


@app.exception_handler(StoreTimeoutError)
async def store_timeout_handler(request: Request, exc: StoreTimeoutError):
    return JSONResponse(status_code=504, content={"detail": str(exc), "retryable": True})


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    return JSONResponse(status_code=500, content={"detail": str(exc), "retryable": False})


@app.exception_handler(InvoiceConflictError)
async def invoice_conflict_handler(request: Request, exc: InvoiceConflictError):
    return JSONResponse(status_code=409, content={"detail": str(exc), "retryable": True})


@app.get("/health")
def health_check():
    return {"status": "ok"}

app.include_router(customers_router)
app.include_router(invoices_router)
app.include_router(reports_router)
