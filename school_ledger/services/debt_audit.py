"""Debt audit service - blocks registrations of students with unpaid past years."""

import logging
from collections.abc import Iterable
from decimal import Decimal

from school_ledger.core import config
from school_ledger.core.exceptions import BlockedByDebt
from school_ledger.models.finance import AcademicYear, FinancialSettings
from school_ledger.models.payment import ChargeType, PaymentRecord, PaymentType
from school_ledger.models.student import Student
from school_ledger.schemas.billing import DebtAudit, YearDebt
from school_ledger.services.fee import resolve_fee
from school_ledger.services.monthly_status import effective_start_month

logger = logging.getLogger(__name__)

# Payment types counted towards a year's tuition obligation
TUITION_PAYMENT_TYPES = (PaymentType.ENROLLMENT, PaymentType.RENEWAL, PaymentType.MONTHLY)
TUITION_CHARGE_TYPES = (ChargeType.ENROLLMENT, ChargeType.RENEWAL, ChargeType.MONTHLY)


def is_returning_student(student: Student, target_year: int) -> bool:
    """Whether the student registered in any year before the target year."""
    return any(p.is_registration and p.academic_year < target_year for p in student.payments)


def active_months(student: Student, academic_year: AcademicYear) -> int:
    """
    Number of months a student owes tuition for in an academic year.

    Counting starts at the student's effective start month. A suspension
    during the year stops the count at the suspension month (inclusive);
    a suspension in an earlier year leaves nothing to count.
    """
    start = effective_start_month(student, academic_year)
    months = max(0, academic_year.end_month - start + 1)

    if student.is_suspended:
        suspension = student.suspension_date
        if suspension.year == academic_year.year:
            months = min(months, max(0, suspension.month - start + 1))
        elif suspension.year < academic_year.year:
            months = 0

    return months


def get_year_obligation(
    student: Student,
    settings: FinancialSettings,
    academic_year: AcademicYear,
) -> tuple[Decimal, int]:
    """
    Tuition owed for a year (registration + monthly fees) and the months counted.

    A year without active months owes nothing, registration included.
    """
    months = active_months(student, academic_year)
    if months == 0:
        return Decimal(0), 0

    registration_type = (
        ChargeType.ENROLLMENT
        if academic_year.year == student.matriculation_year
        else ChargeType.RENEWAL
    )
    obligation = resolve_fee(student, registration_type, settings)
    obligation += resolve_fee(student, ChargeType.MONTHLY, settings) * months
    return obligation, months


def tuition_credit(payment: PaymentRecord) -> Decimal:
    """Part of a payment that pays registration or monthly fees."""
    if not payment.items:
        return payment.amount
    # Registration payments may bundle exam fees, uniforms and books
    return sum(
        (item.value for item in payment.items if item.category in TUITION_CHARGE_TYPES),
        Decimal(0),
    )


def get_year_paid(student: Student, year: int) -> Decimal:
    """Registration and monthly fees received for a year."""
    return sum(
        (tuition_credit(p) for p in student.payments_for_year(year, *TUITION_PAYMENT_TYPES)),
        Decimal(0),
    )


def audit_debt(
    student: Student,
    settings: FinancialSettings,
    academic_years: Iterable[AcademicYear],
    target_year: int,
    tolerance: Decimal | None = None,
) -> DebtAudit:
    """
    Audit prior academic years before registering a student for target_year.

    Only returning students are audited, and fully exempt students never
    owe anything. A year is reported when its obligation exceeds what was
    paid by more than ``tolerance``.
    """
    if tolerance is None:
        tolerance = config.settings.DEBT_TOLERANCE

    returning = is_returning_student(student, target_year)
    audit = DebtAudit(
        student_id=student.id,
        target_year=target_year,
        is_returning=returning,
        registration_type=PaymentType.RENEWAL if returning else PaymentType.ENROLLMENT,
    )
    if not returning or student.financial_profile.is_exempt:
        return audit

    for academic_year in sorted(academic_years, key=lambda ay: ay.year):
        year = academic_year.year
        if not student.matriculation_year <= year < target_year:
            continue

        obligation, months = get_year_obligation(student, settings, academic_year)
        paid = get_year_paid(student, year)
        if obligation > 0 and obligation - paid > tolerance:
            audit.debts.append(
                YearDebt(
                    academic_year=year,
                    active_months=months,
                    obligation=obligation,
                    paid=paid,
                )
            )

    if audit.blocked:
        logger.info(
            "Registration of student %s for %s blocked by debt in %s",
            student.id,
            target_year,
            audit.blocked_years,
        )
    return audit


def ensure_can_register(
    student: Student,
    settings: FinancialSettings,
    academic_years: Iterable[AcademicYear],
    target_year: int,
    tolerance: Decimal | None = None,
) -> DebtAudit:
    """Audit prior years and refuse the registration when any is unpaid."""
    audit = audit_debt(student, settings, academic_years, target_year, tolerance)
    if audit.blocked:
        raise BlockedByDebt(audit.blocked_years)
    return audit
