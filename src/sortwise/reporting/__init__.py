"""Aggregate statistics and dashboard analytics over stored scans."""

from .aggregate import StatisticsReport, summarize, top_labels, cumulative_accuracy_trend
from .analytics import (
    build_dashboard,
    cohen_kappa,
    confidence_calibration,
    disagreement_rate,
    per_category_accuracy,
    agreement_timeline,
    waste_composition,
)

__all__ = [
    "StatisticsReport",
    "summarize",
    "top_labels",
    "cumulative_accuracy_trend",
    "build_dashboard",
    "cohen_kappa",
    "confidence_calibration",
    "disagreement_rate",
    "per_category_accuracy",
    "agreement_timeline",
    "waste_composition",
]
