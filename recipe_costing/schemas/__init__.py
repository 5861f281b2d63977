from pydantic import BaseModel
from typing import Any, Optional


class ErrorResponse(BaseModel):
    """Standard error response"""
    success: bool = False
    message: str
    detail: Optional[str] = None
    field: Optional[str] = None
    entity: Optional[str] = None
    entity_id: Optional[Any] = None


def not_blank(value: Optional[str]) -> Optional[str]:
    """Strip surrounding whitespace; None passes through for partial updates."""
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value
