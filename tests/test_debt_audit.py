"""Tests for prior-year debt audit."""

from datetime import date
from decimal import Decimal

import pytest

from school_ledger.core.exceptions import BlockedByDebt
from school_ledger.models.finance import AcademicYear, AcademicYearStatus
from school_ledger.models.payment import ChargeType, PaymentItem, PaymentType
from school_ledger.models.student import FinancialProfile, ProfileStatus, StudentStatus
from school_ledger.services.debt_audit import (
    active_months,
    audit_debt,
    ensure_can_register,
    get_year_obligation,
    get_year_paid,
    is_returning_student,
)
from tests.conftest import FIFTH_GRADE, YEAR, make_payment, monthly_payment, registration_payment

PREVIOUS = YEAR - 1


@pytest.fixture
def returning_payments():
    """Enrollment in the previous year with February to September paid."""
    return [
        registration_payment(PaymentType.ENROLLMENT, 2000, date(PREVIOUS, 1, 15), academic_year=PREVIOUS),
        *[monthly_payment(month, 1000, academic_year=PREVIOUS) for month in range(2, 10)],
    ]


@pytest.fixture
def make_returning(make_student, returning_payments):
    def _make(**overrides):
        data = {
            "matriculation_date": date(PREVIOUS, 1, 15),
            "payments": returning_payments,
        }
        data.update(overrides)
        return make_student(**data)

    return _make


class TestReturningStudent:
    def test_new_student_is_not_returning(self, student):
        assert not is_returning_student(student, YEAR)

    def test_registration_in_earlier_year(self, make_returning):
        assert is_returning_student(make_returning(), YEAR)
        assert not is_returning_student(make_returning(), PREVIOUS)


class TestObligation:
    """Tests for what a year is expected to have paid."""

    def test_obligation_of_matriculation_year(self, make_returning, financial_settings, previous_year):
        obligation, months = get_year_obligation(make_returning(), financial_settings, previous_year)

        assert months == 10
        assert obligation == Decimal("12000")

    def test_later_years_use_renewal_fee(self, make_student, financial_settings, previous_year):
        student = make_student(matriculation_date=date(YEAR - 3, 1, 15))
        obligation, months = get_year_obligation(student, financial_settings, previous_year)

        assert months == 10
        assert obligation == Decimal("11500")

    def test_class_specific_fees(self, make_returning, financial_settings, previous_year):
        student = make_returning(desired_class=FIFTH_GRADE)
        obligation, _ = get_year_obligation(student, financial_settings, previous_year)

        assert obligation == Decimal("2500") + Decimal("1500") * 10

    def test_mid_year_matriculation(self, make_student, financial_settings, previous_year):
        student = make_student(matriculation_date=date(PREVIOUS, 6, 2))
        assert active_months(student, previous_year) == 6

    def test_suspension_during_year(self, make_returning, previous_year):
        student = make_returning(status=StudentStatus.SUSPENDED, suspension_date=date(PREVIOUS, 5, 20))
        assert active_months(student, previous_year) == 4

    def test_suspension_in_earlier_year(self, make_student, financial_settings, previous_year):
        student = make_student(
            matriculation_date=date(YEAR - 3, 1, 15),
            status=StudentStatus.SUSPENDED,
            suspension_date=date(YEAR - 2, 5, 20),
        )
        assert get_year_obligation(student, financial_settings, previous_year) == (Decimal(0), 0)

    def test_reactivated_student_counts_all_months(self, make_returning, previous_year):
        student = make_returning(status=StudentStatus.ACTIVE, suspension_date=date(PREVIOUS, 5, 20))
        assert active_months(student, previous_year) == 10

    def test_paid_counts_tuition_only(self, make_returning):
        student = make_returning()
        student.payments.append(
            registration_payment(PaymentType.UNIFORM, 400, date(PREVIOUS, 2, 1), academic_year=PREVIOUS)
        )
        assert get_year_paid(student, PREVIOUS) == Decimal("10000")

    def test_items_bundled_in_enrollment_not_tuition(self, make_student):
        """Uniforms and exam fees bought at registration do not pay tuition."""
        enrollment = make_payment(
            PaymentType.ENROLLMENT,
            5300,
            date(PREVIOUS, 1, 15),
            academic_year=PREVIOUS,
            reference_month=2,
            items=[
                PaymentItem(label="Enrollment", value=Decimal("2000"), category=ChargeType.ENROLLMENT),
                PaymentItem(label="Test/exam fees", value=Decimal("300"), category=ChargeType.EXAM),
                PaymentItem(label="First monthly fee (February)", value=Decimal("1000"), category=ChargeType.MONTHLY),
                PaymentItem(label="Shirt", value=Decimal("2000"), category=ChargeType.UNIFORM),
            ],
        )
        student = make_student(
            matriculation_date=date(PREVIOUS, 1, 15),
            payments=[enrollment, monthly_payment(3, 1000, academic_year=PREVIOUS)],
        )
        assert get_year_paid(student, PREVIOUS) == Decimal("4000")

    def test_suspended_before_first_billed_month(self, make_returning, financial_settings, previous_year):
        """Suspended in January, before classes start: nothing is owed."""
        student = make_returning(status=StudentStatus.SUSPENDED, suspension_date=date(PREVIOUS, 1, 20))
        assert get_year_obligation(student, financial_settings, previous_year) == (Decimal(0), 0)


class TestAuditDebt:
    """Tests for blocking registrations with unpaid years."""

    def test_unpaid_months_block_renewal(self, make_returning, financial_settings, previous_year, academic_year):
        """Enrollment 2000 and eight months paid out of ten leaves 2000 owed."""
        audit = audit_debt(make_returning(), financial_settings, [previous_year, academic_year], YEAR)

        assert audit.is_returning
        assert audit.registration_type == PaymentType.RENEWAL
        assert audit.blocked
        assert audit.blocked_years == [PREVIOUS]
        debt = audit.debts[0]
        assert debt.obligation == Decimal("12000")
        assert debt.paid == Decimal("10000")
        assert debt.outstanding == Decimal("2000")

    def test_new_student_never_blocked(self, student, financial_settings, previous_year):
        audit = audit_debt(student, financial_settings, [previous_year], YEAR)

        assert not audit.is_returning
        assert audit.registration_type == PaymentType.ENROLLMENT
        assert audit.debts == []
        assert not audit.blocked

    def test_exempt_student_never_blocked(self, make_returning, financial_settings, previous_year):
        student = make_returning(financial_profile=FinancialProfile(status=ProfileStatus.FULL_EXEMPT))
        assert not audit_debt(student, financial_settings, [previous_year], YEAR).blocked

    def test_shortfall_within_tolerance(self, make_returning, returning_payments, financial_settings, previous_year):
        payments = [
            *returning_payments,
            monthly_payment(10, 1000, academic_year=PREVIOUS),
            monthly_payment(11, 600, academic_year=PREVIOUS),
        ]
        audit = audit_debt(make_returning(payments=payments), financial_settings, [previous_year], YEAR)

        assert not audit.blocked

    def test_uniform_bundled_in_enrollment_still_blocked(self, make_student, financial_settings, previous_year):
        """Enrollment 2000 plus a 3000 uniform, months 2 to 8 paid: 3000 of tuition owed."""
        enrollment = make_payment(
            PaymentType.ENROLLMENT,
            5000,
            date(PREVIOUS, 1, 15),
            academic_year=PREVIOUS,
            items=[
                PaymentItem(label="Enrollment", value=Decimal("2000"), category=ChargeType.ENROLLMENT),
                PaymentItem(label="Uniform", value=Decimal("3000"), category=ChargeType.UNIFORM),
            ],
        )
        student = make_student(
            matriculation_date=date(PREVIOUS, 1, 15),
            payments=[
                enrollment,
                *[monthly_payment(month, 1000, academic_year=PREVIOUS) for month in range(2, 9)],
            ],
        )
        audit = audit_debt(student, financial_settings, [previous_year], YEAR)

        assert audit.blocked_years == [PREVIOUS]
        assert audit.debts[0].paid == Decimal("9000")
        assert audit.debts[0].outstanding == Decimal("3000")

    def test_custom_tolerance(self, make_returning, financial_settings, previous_year):
        audit = audit_debt(
            make_returning(), financial_settings, [previous_year], YEAR, tolerance=Decimal("5000")
        )
        assert not audit.blocked

    def test_suspended_in_year_owes_active_months(self, make_returning, financial_settings, previous_year):
        """Suspended in May: enrollment plus February to May."""
        student = make_returning(status=StudentStatus.SUSPENDED, suspension_date=date(PREVIOUS, 5, 20))
        assert not audit_debt(student, financial_settings, [previous_year], YEAR).blocked

    def test_years_outside_range_ignored(self, make_returning, financial_settings, academic_year):
        """Only years from matriculation up to, not including, the target year."""
        older = AcademicYear(year=YEAR - 5, status=AcademicYearStatus.CLOSED)
        audit = audit_debt(make_returning(), financial_settings, [older, academic_year], YEAR)

        assert audit.debts == []

    def test_ensure_can_register_raises(self, make_returning, financial_settings, previous_year):
        with pytest.raises(BlockedByDebt) as exc_info:
            ensure_can_register(make_returning(), financial_settings, [previous_year], YEAR)

        assert exc_info.value.years == [PREVIOUS]
        assert exc_info.value.details == {"years": [PREVIOUS]}

    def test_ensure_can_register_returns_audit(self, student, financial_settings, previous_year):
        audit = ensure_can_register(student, financial_settings, [previous_year], YEAR)
        assert not audit.blocked
