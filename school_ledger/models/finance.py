"""Academic year and financial settings models."""

from decimal import Decimal
from enum import Enum

from pydantic import Field, model_validator

from school_ledger.core.config import settings
from school_ledger.models.base import LedgerModel
from school_ledger.schemas.validators import Label, Money, Month


class AcademicYearStatus(str, Enum):
    """Lifecycle of an academic year."""

    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"


class AcademicYear(LedgerModel):
    """Academic year and the months it bills."""

    year: int = Field(ge=1900, le=2999)
    status: AcademicYearStatus = AcademicYearStatus.PLANNED
    start_month: Month = 2
    end_month: Month = 11

    @model_validator(mode="after")
    def validate_months(self) -> "AcademicYear":
        if self.end_month < self.start_month:
            raise ValueError("end_month must not precede start_month")
        return self

    @property
    def months(self) -> range:
        """Billable months, in order."""
        return range(self.start_month, self.end_month + 1)


class ClassFeeRow(LedgerModel):
    """Fees overriding the global defaults for one class level."""

    class_level: Label
    enrollment_fee: Money | None = None
    renewal_fee: Money | None = None
    monthly_fee: Money | None = None
    exam_fee: Money | None = None


class CatalogItem(LedgerModel):
    """Uniform piece or book sold by the school."""

    id: str = Field(min_length=1)
    name: Label
    price: Money
    class_level: str | None = None  # Books are sold per class


class FinancialSettings(LedgerModel):
    """School-wide fee configuration."""

    currency: str = "MZN"
    enrollment_fee: Money | None = None
    renewal_fee: Money | None = None
    monthly_fee: Money | None = None
    exam_fee: Money = Decimal(0)
    class_specific_fees: list[ClassFeeRow] = Field(default_factory=list)
    payment_limit_day: int = Field(default=settings.DEFAULT_PAYMENT_LIMIT_DAY, ge=1, le=31)
    late_penalty_percent: Decimal = Field(default=Decimal(0), ge=0)
    uniforms: list[CatalogItem] = Field(default_factory=list)
    books: list[CatalogItem] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_class_levels(self) -> "FinancialSettings":
        """Each class level may be overridden only once."""
        levels = [row.class_level for row in self.class_specific_fees]
        if len(levels) != len(set(levels)):
            raise ValueError("class_specific_fees has duplicate class levels")
        return self

    def fee_row_for(self, class_level: str | None) -> ClassFeeRow | None:
        """Class-specific fee row, if one is configured."""
        if not class_level:
            return None
        for row in self.class_specific_fees:
            if row.class_level == class_level:
                return row
        return None

    def books_for(self, class_level: str | None) -> list[CatalogItem]:
        """Books sold to a class level."""
        return [b for b in self.books if b.class_level is None or b.class_level == class_level]
