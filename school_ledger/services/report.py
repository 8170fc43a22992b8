"""Report service - daily cash closing."""

from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from school_ledger.models.student import Student
from school_ledger.schemas.report import DailyClosing, DailyClosingLine


def get_daily_closing(
    students: Iterable[Student],
    day: date,
    operator_name: str | None = None,
) -> DailyClosing:
    """Payments received on a day, optionally by one operator, with totals by method."""
    lines = []
    for student in students:
        for payment in student.payments:
            if payment.date != day:
                continue
            if operator_name and payment.operator_name != operator_name:
                continue
            lines.append(
                DailyClosingLine(
                    payment_id=payment.id,
                    student_id=student.id,
                    student_name=student.name,
                    class_level=student.desired_class,
                    type=payment.type,
                    method=payment.method,
                    amount=payment.amount,
                    operator_name=payment.operator_name,
                )
            )
    lines.sort(key=lambda line: line.payment_id)

    total_amount = Decimal("0")
    by_method: dict[str, Decimal] = {}
    for line in lines:
        total_amount += line.amount
        method = line.method.value
        by_method[method] = by_method.get(method, Decimal("0")) + line.amount

    operators = sorted({line.operator_name for line in lines if line.operator_name})

    return DailyClosing(
        day=day,
        operator_name=operator_name,
        lines=lines,
        operators=operators,
        total_payments=len(lines),
        total_amount=total_amount,
        by_method=by_method,
    )
