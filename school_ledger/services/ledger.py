"""Ledger service - builds a student's statement of account."""

import logging
from datetime import date
from decimal import Decimal

from school_ledger.core import config
from school_ledger.models.finance import AcademicYear, FinancialSettings
from school_ledger.models.payment import (
    DEFAULT_ITEM_CATEGORY,
    PAYMENT_METHOD_LABELS,
    PAYMENT_TYPE_LABELS,
    ChargeType,
    PaymentRecord,
    PaymentType,
)
from school_ledger.models.student import Student
from school_ledger.schemas.billing import Ledger, LedgerCategory, LedgerEntry, LedgerEntryType
from school_ledger.schemas.validators import month_name
from school_ledger.services.fee import resolve_fee
from school_ledger.services.monthly_status import effective_start_month
from school_ledger.services.penalty import is_late, limit_date, penalty_date, penalty_for_fee

logger = logging.getLogger(__name__)

# Ledger category of each payment item category
ITEM_CATEGORIES = {
    ChargeType.ENROLLMENT: LedgerCategory.ENROLLMENT,
    ChargeType.RENEWAL: LedgerCategory.RENEWAL,
    ChargeType.MONTHLY: LedgerCategory.MONTHLY_FEE,
    ChargeType.EXAM: LedgerCategory.EXAM,
    ChargeType.UNIFORM: LedgerCategory.UNIFORM,
    ChargeType.MATERIAL: LedgerCategory.MATERIAL,
    ChargeType.FINE: LedgerCategory.EXTRA_CHARGE,
}


def _debit(
    on: date,
    description: str,
    category: LedgerCategory,
    amount: Decimal,
    **extra,
) -> LedgerEntry:
    return LedgerEntry(
        date=on,
        description=description,
        category=category,
        entry_type=LedgerEntryType.DEBIT,
        debit=amount,
        **extra,
    )


def last_billed_month(academic_year: AcademicYear, today: date) -> int:
    """Last month already billed; before start_month when nothing is billed yet."""
    if academic_year.year > today.year:
        return academic_year.start_month - 1
    if academic_year.year == today.year:
        return min(today.month, academic_year.end_month)
    return academic_year.end_month


def get_on_time_paid(student: Student, year: int, month: int, deadline: date) -> Decimal:
    """Monthly payments for a month made on or before its deadline."""
    return sum(
        (
            p.monthly_credit
            for p in student.payments_for_year(year)
            if p.reference_month == month and p.date <= deadline
        ),
        Decimal(0),
    )


def get_fee_entries(
    student: Student,
    settings: FinancialSettings,
    academic_year: AcademicYear,
    today: date,
    epsilon: Decimal,
) -> list[LedgerEntry]:
    """Monthly fee debits for elapsed months, with late penalties."""
    year = academic_year.year
    first = max(academic_year.start_month, effective_start_month(student, academic_year))
    last = last_billed_month(academic_year, today)
    if first > last:
        return []

    fee = resolve_fee(student, ChargeType.MONTHLY, settings)
    if fee <= 0:
        return []

    entries = []
    for month in range(first, last + 1):
        entries.append(
            _debit(
                date(year, month, 1),
                f"Monthly fee ({month_name(month)})",
                LedgerCategory.MONTHLY_FEE,
                fee,
                reference_month=month,
            )
        )

        if not is_late(month, year, student, settings, today):
            continue
        penalty = penalty_for_fee(fee, settings)
        if penalty <= 0:
            continue
        # A payment made after the deadline does not cancel the penalty
        paid_on_time = get_on_time_paid(student, year, month, limit_date(year, month, settings))
        if paid_on_time < fee - epsilon:
            entries.append(
                _debit(
                    penalty_date(year, month, settings),
                    f"Late payment penalty ({month_name(month)})",
                    LedgerCategory.PENALTY,
                    penalty,
                    reference_month=month,
                )
            )
    return entries


def get_extra_charge_entries(student: Student, year: int) -> list[LedgerEntry]:
    """Debits for extra charges dated within the year."""
    return [
        _debit(
            charge.date,
            charge.description,
            LedgerCategory.EXTRA_CHARGE,
            charge.amount,
            source_id=charge.id,
        )
        for charge in student.extra_charges
        if charge.date.year == year and charge.amount > 0
    ]


def get_payment_entries(payment: PaymentRecord) -> list[LedgerEntry]:
    """
    Entries produced by one payment.

    Non-monthly items are shown as charges incurred on the payment date,
    followed by the credit for the whole payment. Fine payments only credit:
    the extra charges they settle are already debited.
    """
    entries = []
    if payment.type != PaymentType.FINE:
        if payment.items:
            for item in payment.items:
                if item.category == ChargeType.MONTHLY or item.value <= 0:
                    continue
                entries.append(
                    _debit(
                        payment.date,
                        item.label,
                        ITEM_CATEGORIES[item.category],
                        item.value,
                        source_id=payment.id,
                    )
                )
        elif payment.type != PaymentType.MONTHLY and payment.amount > 0:
            entries.append(
                _debit(
                    payment.date,
                    payment.description or PAYMENT_TYPE_LABELS[payment.type],
                    ITEM_CATEGORIES[DEFAULT_ITEM_CATEGORY[payment.type]],
                    payment.amount,
                    source_id=payment.id,
                )
            )

    entries.append(
        LedgerEntry(
            date=payment.date,
            description=(
                f"Payment ({PAYMENT_TYPE_LABELS[payment.type]})"
                f" - {PAYMENT_METHOD_LABELS[payment.method]}"
            ),
            category=LedgerCategory.PAYMENT,
            entry_type=LedgerEntryType.CREDIT,
            credit=payment.amount,
            reference_month=payment.reference_month,
            source_id=payment.id,
        )
    )
    return entries


def build_ledger(
    student: Student,
    settings: FinancialSettings,
    academic_year: AcademicYear,
    today: date | None = None,
    epsilon: Decimal | None = None,
) -> Ledger:
    """
    Build the chronological debit/credit statement of an academic year.

    Entries are sorted by date (entries of the same day keep the order
    fees, extra charges, payments) and carry the running balance, where a
    positive balance is money owed by the student.
    """
    today = today or date.today()
    if epsilon is None:
        epsilon = config.settings.PAID_EPSILON
    year = academic_year.year

    entries = get_fee_entries(student, settings, academic_year, today, epsilon)
    entries.extend(get_extra_charge_entries(student, year))
    for payment in student.payments_for_year(year):
        entries.extend(get_payment_entries(payment))

    entries.sort(key=lambda entry: entry.date)

    running = Decimal(0)
    total_debit = Decimal(0)
    total_credit = Decimal(0)
    for entry in entries:
        total_debit += entry.debit
        total_credit += entry.credit
        running += entry.debit - entry.credit
        entry.balance = running

    logger.debug(
        "Ledger for student %s (%s): %d entries, balance %s",
        student.id,
        year,
        len(entries),
        running,
    )

    return Ledger(
        student_id=student.id,
        academic_year=year,
        entries=entries,
        total_debit=total_debit,
        total_credit=total_credit,
    )
