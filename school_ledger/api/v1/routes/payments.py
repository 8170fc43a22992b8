"""Payment routes.

These endpoints only build payment records; storing them is the job of the
payment recorder that calls this service.
"""

from fastapi import APIRouter, status

from school_ledger.core.deps import resolve_today, to_http_exception
from school_ledger.core.exceptions import LedgerError
from school_ledger.models.payment import PaymentRecord
from school_ledger.schemas.payment import (
    ChargeSettlementRequest,
    MonthlyPaymentRequest,
    PaymentEditRequest,
    PurchasePaymentRequest,
    RegistrationPaymentRequest,
)
from school_ledger.services import payment as payment_service

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/registration", response_model=PaymentRecord, status_code=status.HTTP_201_CREATED)
async def build_registration_payment(request: RegistrationPaymentRequest) -> PaymentRecord:
    """
    Build an enrollment or renewal payment.

    - **409**: the student has unpaid prior academic years
    - **400**: already registered for the year, or fees not configured
    """
    try:
        return payment_service.build_registration_payment(
            request.student,
            request.settings,
            request.academic_years,
            request.target_year,
            method=request.method,
            today=resolve_today(request.today),
            include_first_month=request.include_first_month,
            uniform_ids=request.uniform_ids,
            book_ids=request.book_ids,
            operator_name=request.operator_name,
        )
    except LedgerError as exc:
        raise to_http_exception(exc)


@router.post("/monthly", response_model=PaymentRecord, status_code=status.HTTP_201_CREATED)
async def build_monthly_payment(request: MonthlyPaymentRequest) -> PaymentRecord:
    """Build the payment of what remains due for a month."""
    try:
        return payment_service.build_monthly_payment(
            request.student,
            request.settings,
            request.academic_year,
            request.month,
            method=request.method,
            today=resolve_today(request.today),
            operator_name=request.operator_name,
        )
    except LedgerError as exc:
        raise to_http_exception(exc)


@router.post("/purchase", response_model=PaymentRecord, status_code=status.HTTP_201_CREATED)
async def build_purchase_payment(request: PurchasePaymentRequest) -> PaymentRecord:
    """Build a uniform or book purchase."""
    try:
        return payment_service.build_purchase_payment(
            request.student,
            request.settings,
            request.academic_year,
            request.payment_type,
            request.item_ids,
            method=request.method,
            today=resolve_today(request.today),
            operator_name=request.operator_name,
        )
    except LedgerError as exc:
        raise to_http_exception(exc)


@router.post("/settlement", response_model=PaymentRecord, status_code=status.HTTP_201_CREATED)
async def build_charge_settlement(request: ChargeSettlementRequest) -> PaymentRecord:
    """Build the payment of selected extra charges."""
    try:
        return payment_service.build_charge_settlement(
            request.student,
            request.academic_year,
            request.charge_ids,
            method=request.method,
            today=resolve_today(request.today),
            operator_name=request.operator_name,
        )
    except LedgerError as exc:
        raise to_http_exception(exc)


@router.post("/edit", response_model=PaymentRecord)
async def edit_payment(request: PaymentEditRequest) -> PaymentRecord:
    """Apply an edit to a payment; the amount is recomputed from its items."""
    try:
        return payment_service.apply_payment_edit(request.payment, request.changes)
    except LedgerError as exc:
        raise to_http_exception(exc)
