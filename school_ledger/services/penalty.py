"""Penalty service - lateness of monthly fees and late surcharges."""

import calendar
from datetime import date, timedelta
from decimal import Decimal

from school_ledger.core.exceptions import InvalidInput
from school_ledger.models.finance import FinancialSettings
from school_ledger.models.payment import ChargeType
from school_ledger.models.student import Student
from school_ledger.schemas.validators import to_money
from school_ledger.services.fee import resolve_fee


def _check_month(month: int) -> None:
    if not 1 <= month <= 12:
        raise InvalidInput(f"Invalid month: {month}", details={"month": month})


def limit_date(year: int, month: int, settings: FinancialSettings) -> date:
    """Last day a monthly fee can be paid without penalty."""
    _check_month(month)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(settings.payment_limit_day, last_day))


def penalty_date(year: int, month: int, settings: FinancialSettings) -> date:
    """Day the late surcharge is incurred."""
    return limit_date(year, month, settings) + timedelta(days=1)


def is_past_due(
    target_month: int,
    year: int,
    settings: FinancialSettings,
    today: date | None = None,
) -> bool:
    """Whether the payment limit of a month has passed, regardless of profile."""
    _check_month(target_month)
    today = today or date.today()

    if year < today.year:
        return True
    if year > today.year:
        return False

    if target_month < today.month:
        return True
    if target_month == today.month:
        return today > limit_date(year, target_month, settings)
    return False


def is_late(
    target_month: int,
    year: int,
    student: Student,
    settings: FinancialSettings,
    today: date | None = None,
) -> bool:
    """Whether a month's fee is late and incurs a penalty for this student."""
    if student.financial_profile.waives_penalty:
        return False
    return is_past_due(target_month, year, settings, today)


def penalty_for_fee(monthly_fee: Decimal, settings: FinancialSettings) -> Decimal:
    """Late surcharge on a resolved monthly fee."""
    return to_money(monthly_fee * settings.late_penalty_percent / 100)


def get_penalty_amount(
    target_month: int,
    year: int,
    student: Student,
    settings: FinancialSettings,
    today: date | None = None,
) -> Decimal:
    """Penalty owed for a month, zero when the month is not late."""
    if not is_late(target_month, year, student, settings, today):
        return Decimal(0)
    return penalty_for_fee(resolve_fee(student, ChargeType.MONTHLY, settings), settings)
