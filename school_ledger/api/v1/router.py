"""API v1 router aggregating all route modules."""

from fastapi import APIRouter

from school_ledger.api.v1.routes import billing, payments, reports

api_router = APIRouter()

api_router.include_router(billing.router)
api_router.include_router(payments.router)
api_router.include_router(reports.router)
