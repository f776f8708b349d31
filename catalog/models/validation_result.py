"""Validation result data models."""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional


@dataclass
class ValidationError:
    """A single field-level validation failure."""

    field: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {"field": self.field, "message": self.message}


@dataclass
class ValidationResult:
    """Every failing field of one validation pass."""

    errors: List[ValidationError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    @property
    def fields(self) -> List[str]:
        """Names of the failing fields, in the order they were checked."""
        return [error.field for error in self.errors]

    def add_error(self, field_name: str, message: str):
        """Add an error to the result."""
        self.errors.append(ValidationError(field=field_name, message=message))

    def extend(self, error: Optional[ValidationError]):
        """Append *error* when a validator reported one."""
        if error is not None:
            self.errors.append(error)

    def error_for(self, field_name: str) -> Optional[str]:
        """Message reported for *field_name*, if any."""
        for error in self.errors:
            if error.field == field_name:
                return error.message
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "isValid": self.is_valid,
            "errors": [error.to_dict() for error in self.errors]
        }

    def get_summary(self) -> str:
        """Get a human-readable summary."""
        if self.is_valid:
            return "Validation passed"

        summary_lines = [f"Validation failed ({len(self.errors)} field(s)):"]
        for error in self.errors:
            summary_lines.append(f"  - {error.field}: {error.message}")
        return "\n".join(summary_lines)
