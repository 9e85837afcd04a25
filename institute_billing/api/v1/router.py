"""API v1 router aggregating all route modules."""

from fastapi import APIRouter

from institute_billing.api.v1.routes import audit, invoices, payments, plans, students

api_router = APIRouter()

api_router.include_router(students.router)
api_router.include_router(invoices.router)
api_router.include_router(plans.router)
api_router.include_router(payments.router)
api_router.include_router(audit.router)
