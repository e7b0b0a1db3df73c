"""
sortwise: reconcile a user's waste label with two image classifiers and
report how the three agree over time.
"""

from sortwise.models.classification import ClassificationInput, EnsembleResult
from sortwise.domain.models import ScanRecord
from sortwise.classification.engine import decide
from sortwise.reporting.aggregate import StatisticsReport, summarize

__version__ = "0.1.0"

__all__ = [
    "decide",
    "summarize",
    "ClassificationInput",
    "EnsembleResult",
    "StatisticsReport",
    "ScanRecord",
    "__version__",
]
