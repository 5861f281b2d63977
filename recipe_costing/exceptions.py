"""Exceptions raised by the costing core and the persistence helpers.

Hierarchy:
    CostingError
    ├── InputError          (400) malformed or missing field
    ├── NotFoundError       (404) referenced entity is absent
    ├── IntegrityError      (409) uniqueness or reference conflict
    └── ComputationError    (422) degenerate arithmetic
        MarginOutOfRange    (400) is both an InputError and a ComputationError

Every error carries enough context (field, entity, entity_id) for the HTTP
layer to build a precise message.
"""

from typing import Any, Optional


class CostingError(Exception):
    """Base class for all errors the application reports to a caller."""

    status_code = 500

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        entity: Optional[str] = None,
        entity_id: Any = None,
    ):
        self.message = message
        self.field = field
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(message)


class InputError(CostingError):
    """Raised when a field is malformed, missing or out of range."""

    status_code = 400


class ComputationError(CostingError):
    """Raised before an operation would produce Infinity, NaN or a nonsensical value."""

    status_code = 422


class MarginOutOfRange(InputError, ComputationError):
    """Raised when a target margin is not strictly between 0 and 100 percent."""

    def __init__(self, margin: Any, field: str = "desired_profit_margin"):
        self.margin = margin
        super().__init__(
            f"Profit margin must be greater than 0 and less than 100, got {margin}",
            field=field,
        )


class NotFoundError(CostingError):
    """Raised when a referenced recipe, ingredient, vendor or packing item does not exist."""

    status_code = 404

    def __init__(self, entity: str, entity_id: Any, field: Optional[str] = None):
        super().__init__(
            f"{entity} {entity_id} not found",
            field=field,
            entity=entity,
            entity_id=entity_id,
        )


class IntegrityError(CostingError):
    """Raised on a uniqueness or referential conflict at the persistence boundary."""

    status_code = 409
