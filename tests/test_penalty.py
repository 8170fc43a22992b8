"""Tests for late payment rules."""

from datetime import date
from decimal import Decimal

import pytest

from school_ledger.core.exceptions import InvalidInput
from school_ledger.models.finance import FinancialSettings
from school_ledger.models.student import FinancialProfile, ProfileStatus
from school_ledger.services.penalty import (
    get_penalty_amount,
    is_late,
    is_past_due,
    limit_date,
    penalty_date,
    penalty_for_fee,
)
from tests.conftest import FIFTH_GRADE, TODAY, YEAR


class TestLimitDate:
    """Tests for the payment deadline of a month."""

    def test_limit_day(self, financial_settings):
        assert limit_date(YEAR, 3, financial_settings) == date(YEAR, 3, 10)
        assert penalty_date(YEAR, 3, financial_settings) == date(YEAR, 3, 11)

    def test_limit_day_clamped_to_month_length(self):
        settings = FinancialSettings(monthly_fee=Decimal("1000"), payment_limit_day=31)

        assert limit_date(YEAR, 2, settings) == date(YEAR, 2, 28)
        assert limit_date(2024, 2, settings) == date(2024, 2, 29)
        assert penalty_date(YEAR, 4, settings) == date(YEAR, 5, 1)

    def test_invalid_month(self, financial_settings):
        with pytest.raises(InvalidInput):
            limit_date(YEAR, 13, financial_settings)


class TestPastDue:
    """Tests for lateness of a month."""

    @pytest.mark.parametrize(
        "month,today,expected",
        [
            (3, date(YEAR, 3, 10), False),  # Limit day itself is on time
            (3, date(YEAR, 3, 11), True),
            (2, date(YEAR, 3, 1), True),
            (4, TODAY, False),
        ],
    )
    def test_same_year(self, financial_settings, month, today, expected):
        assert is_past_due(month, YEAR, financial_settings, today) is expected

    def test_past_year_always_due(self, financial_settings):
        assert is_past_due(11, YEAR - 1, financial_settings, TODAY)

    def test_future_year_never_due(self, financial_settings):
        assert not is_past_due(2, YEAR + 1, financial_settings, TODAY)


class TestPenaltyAmount:
    """Tests for late surcharges."""

    def test_penalty_percentage(self, financial_settings):
        assert penalty_for_fee(Decimal("1000"), financial_settings) == Decimal("100.00")
        assert penalty_for_fee(Decimal("1234.55"), financial_settings) == Decimal("123.46")

    def test_penalty_uses_class_fee(self, make_student, financial_settings):
        student = make_student(desired_class=FIFTH_GRADE)
        assert get_penalty_amount(3, YEAR, student, financial_settings, TODAY) == Decimal("150.00")

    def test_no_penalty_before_deadline(self, student, financial_settings):
        assert get_penalty_amount(4, YEAR, student, financial_settings, TODAY) == 0

    @pytest.mark.parametrize("status", [ProfileStatus.NO_PENALTY, ProfileStatus.FULL_EXEMPT])
    def test_profile_waives_penalty(self, make_student, financial_settings, status):
        student = make_student(financial_profile=FinancialProfile(status=status))

        assert not is_late(2, YEAR, student, financial_settings, TODAY)
        assert get_penalty_amount(2, YEAR, student, financial_settings, TODAY) == 0
