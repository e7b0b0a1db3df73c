"""Custom exceptions for the sortwise package."""

# Base exceptions
from .base import (
    SortwiseError,
    ConfigurationError,
    ResourceError,
    DatabaseError,
    ImageStoreError,
)

# Processing exceptions
from .processing import (
    ProcessingError,
    RepositoryError,
    BatchImportError,
)

# Validation exceptions
from .validation import (
    ValidationError,
    UnknownCategoryError,
    RecordValidationError,
    ParameterValidationError,
)

__all__ = [
    # Base
    "SortwiseError",
    "ConfigurationError",
    "ResourceError",
    "DatabaseError",
    "ImageStoreError",

    # Processing
    "ProcessingError",
    "RepositoryError",
    "BatchImportError",

    # Validation
    "ValidationError",
    "UnknownCategoryError",
    "RecordValidationError",
    "ParameterValidationError",
]
