"""Base model for billing snapshot data."""

from typing import Any, Self

from pydantic import BaseModel, ConfigDict, ValidationError

from school_ledger.core.exceptions import InvalidInput


class LedgerModel(BaseModel):
    """Base class for all snapshot models handed to the engine."""

    model_config = ConfigDict(from_attributes=True, use_enum_values=False)

    @classmethod
    def parse(cls, data: Any) -> Self:
        """Validate external data, raising InvalidInput on any error."""
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise InvalidInput(
                f"Invalid {cls.__name__} data",
                details={"errors": exc.errors(include_url=False)},
            ) from exc
