"""Classification inputs and ensemble result models."""

from .classification import (
    ClassificationInput,
    EnsembleFlag,
    EnsembleMetrics,
    EnsembleResult,
    ReasonCode,
    RecommendationStrength,
)

__all__ = [
    "ClassificationInput",
    "EnsembleFlag",
    "EnsembleMetrics",
    "EnsembleResult",
    "ReasonCode",
    "RecommendationStrength",
]
