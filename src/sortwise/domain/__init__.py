"""Core domain records and collaborator interfaces."""

from .models import (
    DEFAULT_SCAN_POINTS,
    FeedbackAnnotation,
    ModelSlot,
    ScanRecord,
)

__all__ = [
    "DEFAULT_SCAN_POINTS",
    "FeedbackAnnotation",
    "ModelSlot",
    "ScanRecord",
]
