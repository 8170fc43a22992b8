"""Billing schemas."""

from datetime import date as Date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, computed_field

from school_ledger.models.finance import AcademicYear, FinancialSettings
from school_ledger.models.payment import PaymentType
from school_ledger.models.student import Student
from school_ledger.schemas.validators import Month


class MonthlyState(str, Enum):
    """Billing state of one student month."""

    EXEMPT = "exempt"  # Before the student's effective start
    PENDING = "pending"  # Unpaid, not yet due
    PARTIAL = "partial"
    PAID = "paid"
    LATE = "late"  # Unpaid and past the payment limit
    FUTURE = "future"


class FeeSchedule(BaseModel):
    """Fees resolved for one student; None where nothing is configured."""

    enrollment: Decimal | None
    renewal: Decimal | None
    monthly: Decimal | None
    exam: Decimal


class MonthlyStatus(BaseModel):
    """Derived payment status of one month."""

    academic_year: int
    month: int
    state: MonthlyState
    fee: Decimal
    penalty: Decimal
    total_required: Decimal
    total_paid: Decimal
    remaining: Decimal

    model_config = ConfigDict(frozen=True)

    @property
    def is_fully_paid(self) -> bool:
        return self.state in (MonthlyState.PAID, MonthlyState.EXEMPT)

    @property
    def is_partially_paid(self) -> bool:
        return self.state == MonthlyState.PARTIAL


class YearDebt(BaseModel):
    """Unresolved obligation of one prior academic year."""

    academic_year: int
    active_months: int
    obligation: Decimal
    paid: Decimal

    @computed_field
    @property
    def outstanding(self) -> Decimal:
        return self.obligation - self.paid


class DebtAudit(BaseModel):
    """Result of auditing prior years before an enrollment or renewal."""

    student_id: str
    target_year: int
    is_returning: bool
    registration_type: PaymentType
    debts: list[YearDebt] = []

    @computed_field
    @property
    def blocked_years(self) -> list[int]:
        return [debt.academic_year for debt in self.debts]

    @computed_field
    @property
    def blocked(self) -> bool:
        return bool(self.debts)


class LedgerEntryType(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


class LedgerCategory(str, Enum):
    """What a ledger entry accounts for."""

    MONTHLY_FEE = "monthly_fee"
    PENALTY = "penalty"
    EXTRA_CHARGE = "extra_charge"
    ENROLLMENT = "enrollment"
    RENEWAL = "renewal"
    EXAM = "exam"
    UNIFORM = "uniform"
    MATERIAL = "material"
    PAYMENT = "payment"


class LedgerEntry(BaseModel):
    """One statement line."""

    date: Date
    description: str
    category: LedgerCategory
    entry_type: LedgerEntryType
    debit: Decimal = Decimal(0)
    credit: Decimal = Decimal(0)
    balance: Decimal = Decimal(0)  # Running balance after this entry
    reference_month: int | None = None
    source_id: str | None = None  # Payment or extra charge the entry comes from


class Ledger(BaseModel):
    """Chronological statement of account for one academic year."""

    student_id: str
    academic_year: int
    entries: list[LedgerEntry]
    total_debit: Decimal
    total_credit: Decimal

    @computed_field
    @property
    def balance(self) -> Decimal:
        """Positive means the student owes money."""
        return self.total_debit - self.total_credit


class FeeScheduleRequest(BaseModel):
    """Schema for resolving a student's fees."""

    student: Student
    settings: FinancialSettings


class MonthlyStatusRequest(BaseModel):
    """Schema for the status of one month."""

    student: Student
    settings: FinancialSettings
    academic_year: AcademicYear
    month: Month
    today: Date | None = None


class YearStatusRequest(BaseModel):
    """Schema for the status of every month of a year."""

    student: Student
    settings: FinancialSettings
    academic_year: AcademicYear
    today: Date | None = None


class DebtAuditRequest(BaseModel):
    """Schema for auditing prior-year debt."""

    student: Student
    settings: FinancialSettings
    academic_years: list[AcademicYear]
    target_year: int


class LedgerRequest(BaseModel):
    """Schema for building a statement of account."""

    student: Student
    settings: FinancialSettings
    academic_year: AcademicYear
    today: Date | None = None
