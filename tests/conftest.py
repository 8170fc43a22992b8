"""Test configuration and fixtures."""

from collections.abc import AsyncGenerator, Callable
from datetime import date
from decimal import Decimal
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from main import app
from school_ledger.models.finance import (
    AcademicYear,
    AcademicYearStatus,
    CatalogItem,
    ClassFeeRow,
    FinancialSettings,
)
from school_ledger.models.payment import (
    ChargeType,
    PaymentItem,
    PaymentMethod,
    PaymentRecord,
    PaymentType,
)
from school_ledger.models.student import Student

# Fixed evaluation date: year 2025, month 3, day 15 (past the limit day 10)
TODAY = date(2025, 3, 15)
YEAR = 2025
FIFTH_GRADE = "5ª Classe"

_payment_counter = 0


def make_payment(
    payment_type: PaymentType,
    amount: Decimal | int | str,
    on: date,
    academic_year: int = YEAR,
    reference_month: int | None = None,
    items: list[PaymentItem] | None = None,
    method: PaymentMethod = PaymentMethod.CASH,
    operator_name: str | None = "Operator",
) -> PaymentRecord:
    """Build a payment record for tests."""
    global _payment_counter
    _payment_counter += 1
    amount = Decimal(str(amount))
    return PaymentRecord(
        id=f"pay_test_{_payment_counter}",
        date=on,
        amount=amount,
        type=payment_type,
        method=method,
        academic_year=academic_year,
        reference_month=reference_month,
        items=items or [],
        operator_name=operator_name,
    )


def monthly_payment(
    month: int,
    amount: Decimal | int | str = 1000,
    on: date | None = None,
    academic_year: int = YEAR,
) -> PaymentRecord:
    """Monthly fee payment credited to a month."""
    return make_payment(
        PaymentType.MONTHLY,
        amount,
        on or date(academic_year, month, 5),
        academic_year=academic_year,
        reference_month=month,
    )


def registration_payment(
    payment_type: PaymentType,
    amount: Decimal | int | str,
    on: date,
    academic_year: int = YEAR,
) -> PaymentRecord:
    """Enrollment or renewal payment with a single tagged item."""
    amount = Decimal(str(amount))
    return make_payment(
        payment_type,
        amount,
        on,
        academic_year=academic_year,
        items=[
            PaymentItem(
                label=payment_type.value.title(),
                value=amount,
                category=ChargeType(payment_type.value),
            )
        ],
    )


@pytest.fixture
def financial_settings() -> FinancialSettings:
    """Fee configuration: monthly 1000, limit day 10, 10% penalty."""
    return FinancialSettings(
        currency="MZN",
        enrollment_fee=Decimal("2000"),
        renewal_fee=Decimal("1500"),
        monthly_fee=Decimal("1000"),
        exam_fee=Decimal("300"),
        class_specific_fees=[
            ClassFeeRow(
                class_level=FIFTH_GRADE,
                enrollment_fee=Decimal("2500"),
                renewal_fee=Decimal("1800"),
                monthly_fee=Decimal("1500"),
            ),
        ],
        payment_limit_day=10,
        late_penalty_percent=Decimal("10"),
        uniforms=[
            CatalogItem(id="uni_shirt", name="Shirt", price=Decimal("400")),
            CatalogItem(id="uni_trousers", name="Trousers", price=Decimal("600")),
        ],
        books=[
            CatalogItem(id="book_math5", name="Mathematics 5", price=Decimal("250"), class_level=FIFTH_GRADE),
            CatalogItem(id="book_math6", name="Mathematics 6", price=Decimal("300"), class_level="6ª Classe"),
        ],
    )


@pytest.fixture
def academic_year() -> AcademicYear:
    """Current academic year: February to November."""
    return AcademicYear(year=YEAR, status=AcademicYearStatus.IN_PROGRESS, start_month=2, end_month=11)


@pytest.fixture
def previous_year() -> AcademicYear:
    """Closed academic year before the current one."""
    return AcademicYear(year=YEAR - 1, status=AcademicYearStatus.CLOSED, start_month=2, end_month=11)


@pytest.fixture
def make_student() -> Callable[..., Student]:
    """Factory for student snapshots."""

    def _make(**overrides: Any) -> Student:
        data = {
            "id": "std_001",
            "name": "Ana Machava",
            "birth_date": date(2014, 6, 1),
            "desired_class": "4ª Classe",
            "matriculation_date": date(YEAR, 1, 20),
        }
        data.update(overrides)
        return Student(**data)

    return _make


@pytest.fixture
def student(make_student: Callable[..., Student]) -> Student:
    """Student matriculated in January of the current year, no payments."""
    return make_student()


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Get async HTTP client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


def snapshot(model: Any) -> Any:
    """JSON-ready dump of a model for request bodies."""
    return model.model_dump(mode="json")
