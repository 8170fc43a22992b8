# Billing snapshot models

from school_ledger.models.finance import (
    AcademicYear,
    AcademicYearStatus,
    CatalogItem,
    ClassFeeRow,
    FinancialSettings,
)
from school_ledger.models.payment import (
    ChargeType,
    ExtraCharge,
    PaymentItem,
    PaymentMethod,
    PaymentRecord,
    PaymentType,
)
from school_ledger.models.student import (
    FinancialProfile,
    ProfileStatus,
    Student,
    StudentStatus,
)

__all__ = [
    "AcademicYear",
    "AcademicYearStatus",
    "CatalogItem",
    "ClassFeeRow",
    "FinancialSettings",
    "ChargeType",
    "ExtraCharge",
    "PaymentItem",
    "PaymentMethod",
    "PaymentRecord",
    "PaymentType",
    "FinancialProfile",
    "ProfileStatus",
    "Student",
    "StudentStatus",
]
