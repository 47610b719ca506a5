# backend/bucktrax/errors.py
from __future__ import annotations

from typing import Any, Optional


class BuckTraxValidationError(ValueError):
    """A month or weight value was rejected before any write happened."""

    def __init__(self, message: str, field: str, subject: Optional[Any] = None):
        super().__init__(message)
        self.field = field
        self.subject = subject

    def to_detail(self) -> dict:
        return {
            "message": str(self),
            "field": self.field,
            "subject": getattr(self.subject, "name", self.subject),
        }


class InvalidMonthsError(BuckTraxValidationError):
    pass


class InvalidWeightError(BuckTraxValidationError):
    pass


class PropertyNotFoundError(LookupError):
    def __init__(self, property_id: int):
        super().__init__(f"property {property_id} not found")
        self.property_id = property_id
