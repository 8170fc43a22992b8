"""Student model."""

from collections import Counter
from datetime import date as Date
from decimal import Decimal
from enum import Enum

from pydantic import Field, model_validator

from school_ledger.models.base import LedgerModel
from school_ledger.models.payment import ChargeType, ExtraCharge, PaymentRecord, PaymentType
from school_ledger.schemas.validators import Percentage


class StudentStatus(str, Enum):
    """Enrollment status of a student."""

    ACTIVE = "active"
    SUSPENDED = "suspended"
    TRANSFERRED = "transferred"
    INACTIVE = "inactive"


class ProfileStatus(str, Enum):
    """Financial treatment applied to a student."""

    NORMAL = "normal"
    PARTIAL_DISCOUNT = "partial_discount"  # discount_percentage off affected_types
    FULL_EXEMPT = "full_exempt"  # Pays nothing
    NO_PENALTY = "no_penalty"  # Pays fees but never late fees


class FinancialProfile(LedgerModel):
    """Per-student discount, exemption or penalty waiver."""

    status: ProfileStatus = ProfileStatus.NORMAL
    discount_percentage: Percentage = Decimal(0)
    affected_types: set[ChargeType] = Field(default_factory=set)

    @property
    def is_exempt(self) -> bool:
        return self.status == ProfileStatus.FULL_EXEMPT

    @property
    def waives_penalty(self) -> bool:
        return self.status in (ProfileStatus.NO_PENALTY, ProfileStatus.FULL_EXEMPT)


class Student(LedgerModel):
    """Student snapshot with payment history."""

    id: str = Field(min_length=1)
    name: str = ""
    birth_date: Date | None = None
    status: StudentStatus = StudentStatus.ACTIVE
    desired_class: str | None = None  # Class level used for class-specific fees
    matriculation_date: Date
    suspension_date: Date | None = None
    financial_profile: FinancialProfile = Field(default_factory=FinancialProfile)
    payments: list[PaymentRecord] = Field(default_factory=list)
    extra_charges: list[ExtraCharge] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_single_registration(self) -> "Student":
        """At most one enrollment or renewal payment per academic year."""
        counts = Counter(p.academic_year for p in self.payments if p.is_registration)
        duplicated = sorted(year for year, count in counts.items() if count > 1)
        if duplicated:
            raise ValueError(
                f"More than one enrollment/renewal payment for academic years: {duplicated}"
            )
        return self

    @property
    def matriculation_year(self) -> int:
        return self.matriculation_date.year

    @property
    def is_suspended(self) -> bool:
        """Suspended with a known suspension date."""
        return self.status == StudentStatus.SUSPENDED and self.suspension_date is not None

    def payments_for_year(
        self,
        academic_year: int,
        *types: PaymentType,
    ) -> list[PaymentRecord]:
        """Payments credited to an academic year, optionally limited to some types."""
        return [
            p
            for p in self.payments
            if p.academic_year == academic_year and (not types or p.type in types)
        ]

    def __repr__(self) -> str:
        return f"<Student(id={self.id}, name={self.name})>"
