"""
Typed failures raised by the premium engine.
"""

from typing import List, Optional


class PremiumEngineError(Exception):
    """Base class for engine failures."""


class QuoteValidationError(PremiumEngineError, ValueError):
    """Applicant or pricing input outside its documented domain."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]

    @classmethod
    def from_pydantic(cls, exc) -> "QuoteValidationError":
        """Flatten a pydantic ValidationError into readable messages."""
        errors = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ())) or "profile"
            errors.append(f"{location}: {error.get('msg')}")
        return cls(f"Invalid applicant profile: {'; '.join(errors)}", errors)


class RatingConfigError(PremiumEngineError):
    """Rating or explanation configuration is missing or malformed."""
