"""Fee service - resolves what a student is charged for each fee type."""

import logging
from decimal import Decimal

from school_ledger.core.exceptions import InvalidInput
from school_ledger.models.finance import CatalogItem, FinancialSettings
from school_ledger.models.payment import ChargeType
from school_ledger.models.student import FinancialProfile, ProfileStatus, Student
from school_ledger.schemas.billing import FeeSchedule
from school_ledger.schemas.validators import to_money

logger = logging.getLogger(__name__)

# Settings / class row attribute holding the fee of each configurable type
FEE_FIELDS = {
    ChargeType.ENROLLMENT: "enrollment_fee",
    ChargeType.RENEWAL: "renewal_fee",
    ChargeType.MONTHLY: "monthly_fee",
    ChargeType.EXAM: "exam_fee",
}


def apply_profile(profile: FinancialProfile, base: Decimal, charge_type: ChargeType) -> Decimal:
    """Apply a student's exemption or discount to a base price."""
    if profile.status == ProfileStatus.FULL_EXEMPT:
        return Decimal(0)
    if profile.status == ProfileStatus.PARTIAL_DISCOUNT and charge_type in profile.affected_types:
        return to_money(base * (1 - profile.discount_percentage / 100))
    return to_money(base)


def get_base_fee(
    class_level: str | None,
    charge_type: ChargeType,
    settings: FinancialSettings,
) -> Decimal:
    """
    Base fee of a type before any student profile is applied.

    A class-specific row wins over the global default; a row that leaves the
    type unset falls back to the global value.
    """
    field = FEE_FIELDS.get(charge_type)
    if field is None:
        raise InvalidInput(
            f"Charge type '{charge_type.value}' has no configured fee",
            details={"charge_type": charge_type.value},
        )

    row = settings.fee_row_for(class_level)
    base = getattr(row, field) if row is not None else None
    if base is None:
        base = getattr(settings, field)
    if base is None:
        raise InvalidInput(
            f"No {charge_type.value} fee configured for class '{class_level}'",
            details={"charge_type": charge_type.value, "class_level": class_level},
        )
    return base


def resolve_fee(
    student: Student,
    charge_type: ChargeType,
    settings: FinancialSettings,
) -> Decimal:
    """Effective fee a student pays for a charge type."""
    if student.financial_profile.is_exempt:
        return Decimal(0)

    base = get_base_fee(student.desired_class, charge_type, settings)
    fee = apply_profile(student.financial_profile, base, charge_type)
    logger.debug(
        "Resolved %s fee for student %s: base=%s effective=%s",
        charge_type.value,
        student.id,
        base,
        fee,
    )
    return fee


def resolve_catalog_price(
    student: Student,
    item: CatalogItem,
    charge_type: ChargeType,
) -> Decimal:
    """Price of a uniform or book after the student's profile."""
    if charge_type not in (ChargeType.UNIFORM, ChargeType.MATERIAL):
        raise InvalidInput(f"Catalog items cannot be charged as '{charge_type.value}'")
    return apply_profile(student.financial_profile, item.price, charge_type)


def resolve_fee_schedule(student: Student, settings: FinancialSettings) -> FeeSchedule:
    """All configured fees for a student, None where a type is not configured."""
    resolved: dict[str, Decimal | None] = {}
    for charge_type in (ChargeType.ENROLLMENT, ChargeType.RENEWAL, ChargeType.MONTHLY):
        try:
            resolved[charge_type.value] = resolve_fee(student, charge_type, settings)
        except InvalidInput:
            resolved[charge_type.value] = None

    return FeeSchedule(
        enrollment=resolved["enrollment"],
        renewal=resolved["renewal"],
        monthly=resolved["monthly"],
        exam=resolve_fee(student, ChargeType.EXAM, settings),
    )
