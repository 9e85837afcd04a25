"""Institute Billing - FastAPI Application."""

import logging

from fastapi import FastAPI

from institute_billing.api.v1.router import api_router
from institute_billing.core.config import settings
from institute_billing.core.exceptions import BillingError, billing_exception_handler

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_exception_handler(BillingError, billing_exception_handler)

# Include API routes
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}
