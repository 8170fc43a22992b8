"""Billing engine exceptions."""

from typing import Any


class LedgerError(Exception):
    """Base class for errors raised by the billing engine."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class InvalidInput(LedgerError):
    """Data that cannot be billed: malformed, negative or unconfigured."""


class BlockedByDebt(LedgerError):
    """Enrollment or renewal refused because prior years are unpaid."""

    def __init__(self, years: list[int], message: str | None = None):
        self.years = list(years)
        super().__init__(
            message or f"Student has unpaid debt for academic years: {', '.join(map(str, years))}",
            details={"years": self.years},
        )
