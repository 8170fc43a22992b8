"""Monthly status service - derives the billing state of each student month."""

import logging
from datetime import date
from decimal import Decimal

from school_ledger.core import config
from school_ledger.core.exceptions import InvalidInput
from school_ledger.models.finance import AcademicYear, FinancialSettings
from school_ledger.models.payment import ChargeType
from school_ledger.models.student import Student
from school_ledger.schemas.billing import MonthlyState, MonthlyStatus
from school_ledger.services.fee import resolve_fee
from school_ledger.services.penalty import is_late, is_past_due, penalty_for_fee

logger = logging.getLogger(__name__)


def effective_start_month(student: Student, academic_year: AcademicYear) -> int:
    """
    First month a student is billed in an academic year.

    Students matriculated during the year start at their matriculation month
    (never before the year's first month). Students matriculated in a later
    year are not billed at all: the result is past the year's last month.
    """
    matriculation = student.matriculation_date
    if matriculation.year == academic_year.year:
        return max(academic_year.start_month, matriculation.month)
    if matriculation.year > academic_year.year:
        return academic_year.end_month + 1
    return academic_year.start_month


def get_month_total_paid(student: Student, year: int, month: int) -> Decimal:
    """Sum of monthly fee payments credited to a month."""
    return sum(
        (p.monthly_credit for p in student.payments_for_year(year) if p.reference_month == month),
        Decimal(0),
    )


def _is_future(year: int, month: int, today: date) -> bool:
    if year != today.year:
        return year > today.year
    return month > today.month


def get_monthly_status(
    student: Student,
    settings: FinancialSettings,
    academic_year: AcademicYear,
    month: int,
    today: date | None = None,
    epsilon: Decimal | None = None,
) -> MonthlyStatus:
    """
    Compute the status of one month of an academic year.

    States are checked in priority order: exempt, paid, partial, future,
    late, pending. A payment counts as complete when it falls short of the
    required amount by no more than ``epsilon``.
    """
    if not 1 <= month <= 12 or month > academic_year.end_month:
        raise InvalidInput(
            f"Month {month} is outside academic year {academic_year.year}",
            details={"month": month, "academic_year": academic_year.year},
        )
    today = today or date.today()
    if epsilon is None:
        epsilon = config.settings.PAID_EPSILON

    year = academic_year.year
    total_paid = get_month_total_paid(student, year, month)

    if month < effective_start_month(student, academic_year):
        return MonthlyStatus(
            academic_year=year,
            month=month,
            state=MonthlyState.EXEMPT,
            fee=Decimal(0),
            penalty=Decimal(0),
            total_required=Decimal(0),
            total_paid=total_paid,
            remaining=Decimal(0),
        )

    fee = resolve_fee(student, ChargeType.MONTHLY, settings)
    penalty = Decimal(0)
    if is_late(month, year, student, settings, today):
        penalty = penalty_for_fee(fee, settings)
    total_required = fee + penalty

    if total_paid >= total_required - epsilon:
        state = MonthlyState.PAID
    elif total_paid > 0:
        state = MonthlyState.PARTIAL
    elif _is_future(year, month, today):
        state = MonthlyState.FUTURE
    elif is_past_due(month, year, settings, today):
        state = MonthlyState.LATE
    else:
        state = MonthlyState.PENDING

    logger.debug(
        "Student %s %s-%02d: state=%s required=%s paid=%s",
        student.id,
        year,
        month,
        state.value,
        total_required,
        total_paid,
    )

    return MonthlyStatus(
        academic_year=year,
        month=month,
        state=state,
        fee=fee,
        penalty=penalty,
        total_required=total_required,
        total_paid=total_paid,
        remaining=max(Decimal(0), total_required - total_paid),
    )


def get_year_statuses(
    student: Student,
    settings: FinancialSettings,
    academic_year: AcademicYear,
    today: date | None = None,
    epsilon: Decimal | None = None,
) -> list[MonthlyStatus]:
    """Status of every billable month of an academic year."""
    today = today or date.today()
    return [
        get_monthly_status(student, settings, academic_year, month, today, epsilon)
        for month in academic_year.months
    ]
