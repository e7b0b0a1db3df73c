"""Feedback-driven accuracy scoring."""

from .accuracy import AccuracyCounts, AccuracyModel

__all__ = [
    "AccuracyCounts",
    "AccuracyModel",
]
