"""Report routes."""

from fastapi import APIRouter

from school_ledger.schemas.report import DailyClosing, DailyClosingRequest
from school_ledger.services import report as report_service

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.post("/daily-closing", response_model=DailyClosing)
async def get_daily_closing(request: DailyClosingRequest) -> DailyClosing:
    """Payments received on a day with totals by payment method."""
    return report_service.get_daily_closing(
        request.students,
        request.day,
        operator_name=request.operator_name,
    )
