"""Report schemas."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel

from school_ledger.models.payment import PaymentMethod, PaymentType
from school_ledger.models.student import Student


class DailyClosingLine(BaseModel):
    """One payment received during the day."""

    payment_id: str
    student_id: str
    student_name: str
    class_level: str | None
    type: PaymentType
    method: PaymentMethod
    amount: Decimal
    operator_name: str | None


class DailyClosing(BaseModel):
    """Daily cash closing sheet."""

    day: date
    operator_name: str | None
    lines: list[DailyClosingLine]
    operators: list[str]
    total_payments: int
    total_amount: Decimal
    by_method: dict[str, Decimal]


class DailyClosingRequest(BaseModel):
    """Schema for requesting a daily closing."""

    students: list[Student]
    day: date
    operator_name: str | None = None
