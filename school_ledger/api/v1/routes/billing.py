"""Billing routes."""

from fastapi import APIRouter

from school_ledger.core.deps import resolve_today, to_http_exception
from school_ledger.core.exceptions import LedgerError
from school_ledger.schemas.billing import (
    DebtAudit,
    DebtAuditRequest,
    FeeSchedule,
    FeeScheduleRequest,
    Ledger,
    LedgerRequest,
    MonthlyStatus,
    MonthlyStatusRequest,
    YearStatusRequest,
)
from school_ledger.services import debt_audit as debt_audit_service
from school_ledger.services import fee as fee_service
from school_ledger.services import ledger as ledger_service
from school_ledger.services import monthly_status as monthly_status_service

router = APIRouter(prefix="/billing", tags=["Billing"])


@router.post("/fees", response_model=FeeSchedule)
async def resolve_fees(request: FeeScheduleRequest) -> FeeSchedule:
    """Resolve every fee of a student after class overrides and discounts."""
    try:
        return fee_service.resolve_fee_schedule(request.student, request.settings)
    except LedgerError as exc:
        raise to_http_exception(exc)


@router.post("/monthly-status", response_model=MonthlyStatus)
async def get_monthly_status(request: MonthlyStatusRequest) -> MonthlyStatus:
    """Billing state of one month."""
    try:
        return monthly_status_service.get_monthly_status(
            request.student,
            request.settings,
            request.academic_year,
            request.month,
            today=resolve_today(request.today),
        )
    except LedgerError as exc:
        raise to_http_exception(exc)


@router.post("/monthly-statuses", response_model=list[MonthlyStatus])
async def get_year_statuses(request: YearStatusRequest) -> list[MonthlyStatus]:
    """Billing state of every month of an academic year."""
    try:
        return monthly_status_service.get_year_statuses(
            request.student,
            request.settings,
            request.academic_year,
            today=resolve_today(request.today),
        )
    except LedgerError as exc:
        raise to_http_exception(exc)


@router.post("/debt-audit", response_model=DebtAudit)
async def audit_debt(request: DebtAuditRequest) -> DebtAudit:
    """
    Audit prior academic years before an enrollment or renewal.

    A blocked audit is a normal result (200); the registration endpoint is
    the one that refuses the transaction.
    """
    try:
        return debt_audit_service.audit_debt(
            request.student,
            request.settings,
            request.academic_years,
            request.target_year,
        )
    except LedgerError as exc:
        raise to_http_exception(exc)


@router.post("/ledger", response_model=Ledger)
async def build_ledger(request: LedgerRequest) -> Ledger:
    """Chronological statement of account with running balance."""
    try:
        return ledger_service.build_ledger(
            request.student,
            request.settings,
            request.academic_year,
            today=resolve_today(request.today),
        )
    except LedgerError as exc:
        raise to_http_exception(exc)
