"""Ensemble classification and the waste category vocabulary."""

from .engine import EnsembleDecisionEngine, EnsembleThresholds, decide
from .categories import WasteCategory, canonical_label, normalize_label, category_info
from .explanations import explain

__all__ = [
    "EnsembleDecisionEngine",
    "EnsembleThresholds",
    "decide",
    "WasteCategory",
    "canonical_label",
    "normalize_label",
    "category_info",
    "explain",
]
