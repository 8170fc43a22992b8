"""Payment service - builds payment records for the payment recorder."""

import logging
from collections.abc import Iterable, Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Protocol
from uuid import uuid4

from school_ledger.core.exceptions import InvalidInput
from school_ledger.models.finance import AcademicYear, CatalogItem, FinancialSettings
from school_ledger.models.payment import (
    DEFAULT_ITEM_CATEGORY,
    PAYMENT_TYPE_LABELS,
    ChargeType,
    PaymentItem,
    PaymentMethod,
    PaymentRecord,
    PaymentType,
)
from school_ledger.models.student import Student
from school_ledger.schemas.billing import MonthlyState
from school_ledger.schemas.payment import PaymentNotification, PaymentUpdate
from school_ledger.schemas.validators import month_name
from school_ledger.services.debt_audit import ensure_can_register
from school_ledger.services.fee import get_base_fee, resolve_catalog_price, resolve_fee
from school_ledger.services.monthly_status import get_monthly_status

logger = logging.getLogger(__name__)


class PaymentRecorder(Protocol):
    """Collaborator that persists students and delivers notifications."""

    def save_student(self, student: Student) -> None:
        """Atomically replace the stored student record."""

    def notify(self, notification: PaymentNotification) -> None:
        """Deliver a payment notification to the administrators."""


def new_payment_id() -> str:
    return f"pay_{uuid4().hex[:16]}"


def _make_payment(
    payment_type: PaymentType,
    items: list[PaymentItem],
    academic_year: int,
    method: PaymentMethod,
    today: date,
    description: str,
    operator_name: str | None,
    reference_month: int | None = None,
) -> PaymentRecord:
    return PaymentRecord(
        id=new_payment_id(),
        date=today,
        amount=sum((item.value for item in items), Decimal(0)),
        type=payment_type,
        method=method,
        academic_year=academic_year,
        reference_month=reference_month,
        items=items,
        description=description,
        operator_name=operator_name,
    )


def _find_academic_year(academic_years: Iterable[AcademicYear], year: int) -> AcademicYear:
    for academic_year in academic_years:
        if academic_year.year == year:
            return academic_year
    raise InvalidInput(f"Academic year {year} is not configured", details={"academic_year": year})


def _pick_catalog_items(
    catalog: Sequence[CatalogItem],
    item_ids: Iterable[str],
    kind: str,
) -> list[CatalogItem]:
    by_id = {item.id: item for item in catalog}
    picked = []
    for item_id in item_ids:
        if item_id not in by_id:
            raise InvalidInput(f"Unknown {kind} '{item_id}'", details={"item_id": item_id})
        picked.append(by_id[item_id])
    return picked


def first_month_reference(academic_year: AcademicYear, today: date) -> int:
    """
    Month credited by the first monthly fee paid at registration.

    Registering before classes start pays the first month of the year;
    registering mid-year pays the current month. Early registration for a
    following year always pays its first month.
    """
    if academic_year.year > today.year:
        return academic_year.start_month
    return min(max(academic_year.start_month, today.month), academic_year.end_month)


def build_registration_payment(
    student: Student,
    settings: FinancialSettings,
    academic_years: Sequence[AcademicYear],
    target_year: int,
    method: PaymentMethod = PaymentMethod.CASH,
    today: date | None = None,
    include_first_month: bool = True,
    uniform_ids: Iterable[str] = (),
    book_ids: Iterable[str] = (),
    operator_name: str | None = None,
) -> PaymentRecord:
    """
    Build the enrollment or renewal payment of a student for target_year.

    Returning students pay a renewal, new students an enrollment. The whole
    transaction is refused with BlockedByDebt when prior years are unpaid.
    """
    today = today or date.today()

    if student.payments_for_year(target_year, PaymentType.ENROLLMENT, PaymentType.RENEWAL):
        raise InvalidInput(
            f"Student {student.id} is already registered for {target_year}",
            details={"student_id": student.id, "academic_year": target_year},
        )
    academic_year = _find_academic_year(academic_years, target_year)
    audit = ensure_can_register(student, settings, academic_years, target_year)

    payment_type = audit.registration_type
    charge_type = ChargeType(payment_type.value)
    label = PAYMENT_TYPE_LABELS[payment_type]
    if student.desired_class:
        label = f"{label} ({student.desired_class})"

    items = [
        PaymentItem(
            label=label,
            value=resolve_fee(student, charge_type, settings),
            category=charge_type,
        )
    ]

    if get_base_fee(student.desired_class, ChargeType.EXAM, settings) > 0:
        items.append(
            PaymentItem(
                label="Test/exam fees",
                value=resolve_fee(student, ChargeType.EXAM, settings),
                category=ChargeType.EXAM,
            )
        )

    reference_month = None
    if include_first_month:
        reference_month = first_month_reference(academic_year, today)
        items.append(
            PaymentItem(
                label=f"First monthly fee ({month_name(reference_month)})",
                value=resolve_fee(student, ChargeType.MONTHLY, settings),
                category=ChargeType.MONTHLY,
            )
        )

    for uniform in _pick_catalog_items(settings.uniforms, uniform_ids, "uniform"):
        items.append(
            PaymentItem(
                label=uniform.name,
                value=resolve_catalog_price(student, uniform, ChargeType.UNIFORM),
                category=ChargeType.UNIFORM,
            )
        )
    for book in _pick_catalog_items(settings.books_for(student.desired_class), book_ids, "book"):
        items.append(
            PaymentItem(
                label=book.name,
                value=resolve_catalog_price(student, book, ChargeType.MATERIAL),
                category=ChargeType.MATERIAL,
            )
        )

    payment = _make_payment(
        payment_type,
        items,
        target_year,
        method,
        today,
        f"{PAYMENT_TYPE_LABELS[payment_type]} payment for academic year {target_year}",
        operator_name,
        reference_month=reference_month,
    )
    logger.info(
        "Built %s payment %s for student %s: %s",
        payment_type.value,
        payment.id,
        student.id,
        payment.amount,
    )
    return payment


def build_monthly_payment(
    student: Student,
    settings: FinancialSettings,
    academic_year: AcademicYear,
    month: int,
    method: PaymentMethod = PaymentMethod.CASH,
    today: date | None = None,
    operator_name: str | None = None,
) -> PaymentRecord:
    """Build the payment of what remains due for one month, penalty included."""
    today = today or date.today()
    status = get_monthly_status(student, settings, academic_year, month, today)

    if status.state == MonthlyState.EXEMPT:
        raise InvalidInput(
            f"{month_name(month)} {academic_year.year} is not billed for student {student.id}",
            details={"month": month, "academic_year": academic_year.year},
        )
    if status.state == MonthlyState.PAID:
        raise InvalidInput(
            f"{month_name(month)} {academic_year.year} is already fully paid",
            details={"month": month, "academic_year": academic_year.year},
        )

    label = f"Monthly fee ({month_name(month)})"
    if status.state == MonthlyState.PARTIAL:
        label += " - remainder"

    payment = _make_payment(
        PaymentType.MONTHLY,
        [PaymentItem(label=label, value=status.remaining, category=ChargeType.MONTHLY)],
        academic_year.year,
        method,
        today,
        "Monthly fee payment",
        operator_name,
        reference_month=month,
    )
    logger.info(
        "Built monthly payment %s for student %s (%s-%02d): %s",
        payment.id,
        student.id,
        academic_year.year,
        month,
        payment.amount,
    )
    return payment


def build_purchase_payment(
    student: Student,
    settings: FinancialSettings,
    academic_year: int,
    payment_type: PaymentType,
    item_ids: Iterable[str],
    method: PaymentMethod = PaymentMethod.CASH,
    today: date | None = None,
    operator_name: str | None = None,
) -> PaymentRecord:
    """Build the payment of uniforms or books bought outside registration."""
    today = today or date.today()
    if payment_type == PaymentType.UNIFORM:
        catalog, kind = settings.uniforms, "uniform"
    elif payment_type == PaymentType.MATERIAL:
        catalog, kind = settings.books_for(student.desired_class), "book"
    else:
        raise InvalidInput(f"'{payment_type.value}' is not a purchase")

    charge_type = DEFAULT_ITEM_CATEGORY[payment_type]
    items = [
        PaymentItem(
            label=item.name,
            value=resolve_catalog_price(student, item, charge_type),
            category=charge_type,
        )
        for item in _pick_catalog_items(catalog, item_ids, kind)
    ]
    if not items:
        raise InvalidInput("Select at least one item to buy")

    return _make_payment(
        payment_type,
        items,
        academic_year,
        method,
        today,
        f"{PAYMENT_TYPE_LABELS[payment_type]} purchase",
        operator_name,
    )


def build_charge_settlement(
    student: Student,
    academic_year: int,
    charge_ids: Iterable[str],
    method: PaymentMethod = PaymentMethod.CASH,
    today: date | None = None,
    operator_name: str | None = None,
) -> PaymentRecord:
    """Build the payment settling selected unpaid extra charges."""
    today = today or date.today()
    charges = {charge.id: charge for charge in student.extra_charges}

    items = []
    for charge_id in charge_ids:
        charge = charges.get(charge_id)
        if charge is None:
            raise InvalidInput(f"Unknown extra charge '{charge_id}'", details={"charge_id": charge_id})
        if charge.is_paid:
            raise InvalidInput(f"Extra charge '{charge_id}' is already paid", details={"charge_id": charge_id})
        items.append(PaymentItem(label=charge.description, value=charge.amount, category=ChargeType.FINE))
    if not items:
        raise InvalidInput("Select at least one extra charge to pay")

    return _make_payment(
        PaymentType.FINE,
        items,
        academic_year,
        method,
        today,
        "Debt / damages payment",
        operator_name,
    )


def apply_payment_edit(payment: PaymentRecord, changes: PaymentUpdate) -> PaymentRecord:
    """
    Apply an explicit edit to a payment.

    The amount is always recomputed from the resulting items. A payment
    stored without items is edited as a single item carrying its amount.
    """
    update_data = changes.model_dump(exclude_unset=True, exclude_none=True, exclude={"items"})

    if changes.items is not None:
        items = list(changes.items)
        if not items:
            raise InvalidInput("A payment must have at least one item")
    elif payment.items:
        items = list(payment.items)
    else:
        items = [
            PaymentItem(
                label=payment.description or PAYMENT_TYPE_LABELS[payment.type],
                value=payment.amount,
                category=DEFAULT_ITEM_CATEGORY[payment.type],
            )
        ]

    data = payment.model_dump()
    data.update(update_data)
    data["items"] = [item.model_dump() for item in items]
    data["amount"] = sum((item.value for item in items), Decimal(0))

    edited = PaymentRecord.parse(data)
    logger.info("Edited payment %s: amount %s -> %s", payment.id, payment.amount, edited.amount)
    return edited


def add_payment(student: Student, payment: PaymentRecord) -> Student:
    """New student snapshot with a payment appended."""
    data = student.model_dump()
    data["payments"].append(payment.model_dump())
    return Student.parse(data)


def replace_payment(student: Student, payment: PaymentRecord) -> Student:
    """New student snapshot with an edited payment in place of the old one."""
    if not any(p.id == payment.id for p in student.payments):
        raise InvalidInput(f"Unknown payment '{payment.id}'", details={"payment_id": payment.id})
    payments = [payment if p.id == payment.id else p for p in student.payments]
    return Student.parse({**student.model_dump(), "payments": [p.model_dump() for p in payments]})


def remove_payment(student: Student, payment_id: str) -> Student:
    """New student snapshot without a payment. Nothing else is recomputed."""
    payments = [p for p in student.payments if p.id != payment_id]
    if len(payments) == len(student.payments):
        raise InvalidInput(f"Unknown payment '{payment_id}'", details={"payment_id": payment_id})
    logger.info("Removed payment %s from student %s", payment_id, student.id)
    return student.model_copy(update={"payments": payments})


def mark_charges_paid(student: Student, charge_ids: Iterable[str]) -> Student:
    """New student snapshot with the given extra charges flagged as paid."""
    charge_ids = set(charge_ids)
    charges = [
        charge.model_copy(update={"is_paid": True}) if charge.id in charge_ids else charge
        for charge in student.extra_charges
    ]
    return student.model_copy(update={"extra_charges": charges})


def build_payment_notification(
    student: Student,
    payment: PaymentRecord,
    currency: str,
) -> PaymentNotification:
    """Notice sent to administrators when a payment is received."""
    operator = payment.operator_name or "unknown operator"
    return PaymentNotification(
        title="Payment received",
        message=(
            f"Payment of {payment.amount} {currency} received from "
            f"{student.name or student.id} ({PAYMENT_TYPE_LABELS[payment.type]}) by {operator}."
        ),
        student_id=student.id,
        payment_id=payment.id,
        amount=payment.amount,
        created_at=datetime.now(),
    )


def record_payment(
    recorder: PaymentRecorder,
    student: Student,
    payment: PaymentRecord,
    currency: str,
    settled_charge_ids: Iterable[str] = (),
) -> Student:
    """
    Hand a new payment to the recorder.

    The updated student is validated before the recorder sees it, so an
    invalid payment never reaches storage.
    """
    updated = mark_charges_paid(add_payment(student, payment), settled_charge_ids)
    recorder.save_student(updated)
    recorder.notify(build_payment_notification(updated, payment, currency))
    logger.info("Recorded payment %s for student %s", payment.id, student.id)
    return updated
