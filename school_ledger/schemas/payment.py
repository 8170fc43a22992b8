"""Payment schemas."""

from datetime import date as Date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from school_ledger.models.finance import AcademicYear, FinancialSettings
from school_ledger.models.payment import PaymentItem, PaymentMethod, PaymentRecord, PaymentType
from school_ledger.models.student import Student
from school_ledger.schemas.validators import Month


class PaymentUpdate(BaseModel):
    """Schema for editing an existing payment."""

    date: Date | None = None
    method: PaymentMethod | None = None
    description: str | None = None
    items: list[PaymentItem] | None = None


class PaymentNotification(BaseModel):
    """Notice handed to the recorder once a payment is stored."""

    title: str
    message: str
    student_id: str
    payment_id: str
    amount: Decimal
    created_at: datetime


class RegistrationPaymentRequest(BaseModel):
    """Schema for building an enrollment or renewal payment."""

    student: Student
    settings: FinancialSettings
    academic_years: list[AcademicYear]
    target_year: int
    method: PaymentMethod = PaymentMethod.CASH
    include_first_month: bool = True
    uniform_ids: list[str] = Field(default_factory=list)
    book_ids: list[str] = Field(default_factory=list)
    operator_name: str | None = None
    today: Date | None = None


class MonthlyPaymentRequest(BaseModel):
    """Schema for building a monthly fee payment."""

    student: Student
    settings: FinancialSettings
    academic_year: AcademicYear
    month: Month
    method: PaymentMethod = PaymentMethod.CASH
    operator_name: str | None = None
    today: Date | None = None


class PurchasePaymentRequest(BaseModel):
    """Schema for building a uniform or book purchase."""

    student: Student
    settings: FinancialSettings
    academic_year: int
    payment_type: PaymentType
    item_ids: list[str]
    method: PaymentMethod = PaymentMethod.CASH
    operator_name: str | None = None
    today: Date | None = None


class ChargeSettlementRequest(BaseModel):
    """Schema for paying a student's extra charges."""

    student: Student
    academic_year: int
    charge_ids: list[str]
    method: PaymentMethod = PaymentMethod.CASH
    operator_name: str | None = None
    today: Date | None = None


class PaymentEditRequest(BaseModel):
    """Schema for editing a payment record."""

    payment: PaymentRecord
    changes: PaymentUpdate
