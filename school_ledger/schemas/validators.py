"""Custom validators and types."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from pydantic import AfterValidator, Field

CENT = Decimal("0.01")

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def validate_label(value: str) -> str:
    """
    Normalize a free-text label.

    Collapses runs of whitespace and strips the ends:
    - "  Uniform   (shirt) " -> "Uniform (shirt)"

    Blank labels are rejected.
    """
    normalized = " ".join(value.split())
    if not normalized:
        raise ValueError("Label must not be blank")
    return normalized


def to_money(value: Decimal) -> Decimal:
    """Round an amount to cents."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def month_name(month: int) -> str:
    """Return the English name of a calendar month (1-12)."""
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    return MONTH_NAMES[month - 1]


# Non-negative currency amount
Money = Annotated[Decimal, Field(ge=0)]

# Percentage between 0 and 100
Percentage = Annotated[Decimal, Field(ge=0, le=100)]

# Calendar month number
Month = Annotated[int, Field(ge=1, le=12)]

Label = Annotated[str, Field(max_length=200), AfterValidator(validate_label)]
