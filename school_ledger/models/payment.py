"""Payment and extra charge models."""

from datetime import date as Date
from decimal import Decimal
from enum import Enum

from pydantic import ConfigDict, Field, model_validator

from school_ledger.models.base import LedgerModel
from school_ledger.schemas.validators import Label, Money, Month


class ChargeType(str, Enum):
    """What a fee or payment item is charged for."""

    ENROLLMENT = "enrollment"
    RENEWAL = "renewal"
    MONTHLY = "monthly"
    EXAM = "exam"
    UNIFORM = "uniform"
    MATERIAL = "material"
    FINE = "fine"


class PaymentType(str, Enum):
    """Kind of payment transaction."""

    ENROLLMENT = "enrollment"  # First registration of a new student
    RENEWAL = "renewal"  # Registration of a returning student
    MONTHLY = "monthly"
    UNIFORM = "uniform"
    MATERIAL = "material"
    FINE = "fine"  # Settlement of extra charges (damages, fines)


REGISTRATION_TYPES = (PaymentType.ENROLLMENT, PaymentType.RENEWAL)

# Item category used when a payment arrives without explicit item tags
DEFAULT_ITEM_CATEGORY = {
    PaymentType.ENROLLMENT: ChargeType.ENROLLMENT,
    PaymentType.RENEWAL: ChargeType.RENEWAL,
    PaymentType.MONTHLY: ChargeType.MONTHLY,
    PaymentType.UNIFORM: ChargeType.UNIFORM,
    PaymentType.MATERIAL: ChargeType.MATERIAL,
    PaymentType.FINE: ChargeType.FINE,
}


class PaymentMethod(str, Enum):
    """How payment was received."""

    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    MPESA = "mpesa"
    EMOLA = "emola"
    MKESH = "mkesh"
    POS = "pos"


PAYMENT_TYPE_LABELS = {
    PaymentType.ENROLLMENT: "Enrollment",
    PaymentType.RENEWAL: "Renewal",
    PaymentType.MONTHLY: "Monthly fee",
    PaymentType.UNIFORM: "Uniform",
    PaymentType.MATERIAL: "Material",
    PaymentType.FINE: "Fines/Damages",
}

PAYMENT_METHOD_LABELS = {
    PaymentMethod.CASH: "Cash",
    PaymentMethod.BANK_TRANSFER: "Bank transfer",
    PaymentMethod.MPESA: "M-Pesa",
    PaymentMethod.EMOLA: "e-Mola",
    PaymentMethod.MKESH: "mKesh",
    PaymentMethod.POS: "POS",
}


class PaymentItem(LedgerModel):
    """One line of a payment receipt."""

    label: Label
    value: Money
    category: ChargeType


class PaymentRecord(LedgerModel):
    """A payment received from a student."""

    id: str = Field(min_length=1)
    date: Date
    amount: Money
    type: PaymentType
    method: PaymentMethod = PaymentMethod.CASH
    academic_year: int = Field(ge=1900, le=2999)
    reference_month: Month | None = None  # Month a monthly fee is credited to
    items: list[PaymentItem] = Field(default_factory=list)
    description: str = ""
    operator_name: str | None = None

    @model_validator(mode="before")
    @classmethod
    def tag_untagged_items(cls, data):
        """Items without a category inherit the one implied by the payment type."""
        if not isinstance(data, dict) or not data.get("items"):
            return data
        try:
            default = DEFAULT_ITEM_CATEGORY[PaymentType(data.get("type"))]
        except ValueError:
            return data
        items = []
        for item in data["items"]:
            if isinstance(item, dict) and item.get("category") is None:
                item = {**item, "category": default}
            items.append(item)
        return {**data, "items": items}

    @model_validator(mode="after")
    def validate_amount(self) -> "PaymentRecord":
        """Amount must match the items when items are present."""
        if self.items and self.amount != self.items_total:
            raise ValueError(
                f"amount {self.amount} does not match the sum of item values {self.items_total}"
            )
        return self

    @model_validator(mode="after")
    def validate_reference_month(self) -> "PaymentRecord":
        """Monthly payments must say which month they pay."""
        if self.type == PaymentType.MONTHLY and self.reference_month is None:
            raise ValueError("reference_month is required for monthly payments")
        return self

    @property
    def items_total(self) -> Decimal:
        """Sum of all item values."""
        return sum((item.value for item in self.items), Decimal(0))

    @property
    def is_registration(self) -> bool:
        return self.type in REGISTRATION_TYPES

    @property
    def monthly_credit(self) -> Decimal:
        """Amount credited to the payment's reference month."""
        if self.reference_month is None:
            return Decimal(0)
        if self.type == PaymentType.MONTHLY:
            return self.amount
        # Registration payments may bundle the first monthly fee
        return sum(
            (item.value for item in self.items if item.category == ChargeType.MONTHLY),
            Decimal(0),
        )

    def __repr__(self) -> str:
        return f"<PaymentRecord(id={self.id}, type={self.type.value}, amount={self.amount})>"


class ExtraCharge(LedgerModel):
    """One-off charge billed to a student (damages, fines)."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    description: Label
    amount: Money
    date: Date
    expense_ref: str | None = None  # Linked expense record
    is_paid: bool = False
