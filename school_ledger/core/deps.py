"""Helpers shared by FastAPI routes."""

from datetime import date

from fastapi import HTTPException, status

from school_ledger.core.exceptions import BlockedByDebt, LedgerError


def to_http_exception(exc: LedgerError) -> HTTPException:
    """Translate an engine error into the HTTP error returned to the client."""
    if isinstance(exc, BlockedByDebt):
        status_code = status.HTTP_409_CONFLICT
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    return HTTPException(
        status_code=status_code,
        detail={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )


def resolve_today(today: date | None) -> date:
    """Date a request is evaluated at, defaulting to the server date."""
    return today or date.today()
