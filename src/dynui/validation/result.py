"""Validation outcome of a single property."""

from pydantic import Field

from dynui.models import MutableModel


class ValidationResult(MutableModel):
    """Errors and warnings collected for one property value.

    Errors block the assignment, warnings never do.
    """

    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """Whether no error has been recorded."""
        return not self.errors

    def add_error(self, message: str) -> None:
        """Record a blocking problem."""
        self.errors.append(message)

    def add_warning(self, message: str) -> None:
        """Record a non-blocking problem."""
        self.warnings.append(message)

    def merge(self, other: 'ValidationResult') -> 'ValidationResult':
        """Combine two results into a new one."""
        return ValidationResult(
            errors=[*self.errors, *other.errors],
            warnings=[*self.warnings, *other.warnings],
        )
