"""Input validation exceptions."""

from typing import Optional, Any, Iterable
from .base import SortwiseError

class ValidationError(SortwiseError):
    """Base class for validation errors."""

    def __init__(
        self,
        message: str,
        *,
        field_name: Optional[str] = None,
        field_value: Optional[Any] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        if field_name:
            self.add_context('field_name', field_name)
        if field_value is not None:
            self.add_context('field_value', str(field_value))

    def _get_default_error_code(self) -> str:
        return "VALIDATION_ERROR"


class UnknownCategoryError(ValidationError):
    """Raised when a label cannot be mapped onto the waste category vocabulary."""
    def __init__(self, label: str, *, known: Optional[Iterable[str]] = None, **kwargs):
        super().__init__(f"Unknown waste category: {label!r}", field_name="label", field_value=label, **kwargs)
        if known:
            known = sorted(known)
            self.add_context('known_categories', known)
            self.add_suggestion(f"Use one of: {', '.join(known)}")

    def _get_default_error_code(self) -> str:
        return "UNKNOWN_CATEGORY"


class RecordValidationError(ValidationError):
    """Raised when a scan or feedback payload cannot be turned into a record."""
    def __init__(self, message: str, *, line_number: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        if line_number is not None:
            self.add_context('line_number', line_number)

    def _get_default_error_code(self) -> str:
        return "RECORD_VALIDATION_FAILED"


class ParameterValidationError(ValidationError):
    """Raised when parameter validation fails."""
    def __init__(
        self,
        parameter_name: str,
        parameter_value: Any,
        expected_type: Optional[str] = None,
        **kwargs
    ):
        message = f"Invalid parameter '{parameter_name}': {parameter_value}"
        super().__init__(message, field_name=parameter_name, field_value=str(parameter_value), **kwargs)
        if expected_type:
            self.add_context('expected_type', expected_type)
        self.add_suggestion(f"Check the value and type of parameter '{parameter_name}'")

    def _get_default_error_code(self) -> str:
        return "PARAMETER_VALIDATION_FAILED"
