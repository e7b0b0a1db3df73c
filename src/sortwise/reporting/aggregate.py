"""
Aggregate statistics over stored scan records.

Re-derives agreement and accuracy directly from each record's raw opinions and
its stored final label (used as the ground-truth proxy). Never calls the
decision engine.
"""

import logging
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from .records import view

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 5


@dataclass
class LabelCount:
    label: str
    count: int


@dataclass
class TrendPoint:
    index: int
    correct: int     # 1 when human == stored final label


@dataclass
class AgreementCounts:
    human_model_a: int = 0
    human_model_b: int = 0
    model_a_model_b: int = 0
    all_three: int = 0
    human_ensemble: int = 0


@dataclass
class StatisticsReport:
    """Population-level agreement and accuracy metrics."""
    total_scans: int = 0
    agreement: AgreementCounts = field(default_factory=AgreementCounts)
    model_a_correct: int = 0
    model_b_correct: int = 0
    human_accuracy: float = 0.0
    model_a_accuracy: float = 0.0
    model_b_accuracy: float = 0.0
    model_a_avg_confidence: float = 0.0
    model_b_avg_confidence: float = 0.0
    human_label_counts: Dict[str, int] = field(default_factory=dict)
    model_a_label_counts: Dict[str, int] = field(default_factory=dict)
    model_b_label_counts: Dict[str, int] = field(default_factory=dict)
    top_human: List[LabelCount] = field(default_factory=list)
    top_model_a: List[LabelCount] = field(default_factory=list)
    top_model_b: List[LabelCount] = field(default_factory=list)
    accuracy_trend: List[TrendPoint] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return self.total_scans > 0

    def agreement_percentages(self) -> Dict[str, float]:
        """Each agreement counter as a percentage of all scans."""
        counts = asdict(self.agreement)
        if not self.has_data:
            return {k: 0.0 for k in counts}
        return {k: v / self.total_scans * 100 for k, v in counts.items()}

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["has_data"] = self.has_data
        d["agreement_percentages"] = self.agreement_percentages()
        return d


def top_labels(counts: Dict[str, int], k: int = DEFAULT_TOP_K) -> List[LabelCount]:
    """Count descending; sorted() is stable so ties keep first-seen order."""
    ranked = sorted(counts.items(), key=lambda kv: -kv[1])
    return [LabelCount(label, count) for label, count in ranked[:k]]


def _bump(counts: Dict[str, int], label: Optional[str]) -> None:
    if label is not None:
        counts[label] = counts.get(label, 0) + 1


def _same(x: Optional[str], y: Optional[str]) -> bool:
    return x is not None and y is not None and x == y


def summarize(records: Sequence[Any], *, top_k: int = DEFAULT_TOP_K) -> StatisticsReport:
    """
    Single pass over ``records`` (ScanRecord objects or stored mappings).

    An empty population gives an all-zero report whose ``has_data`` is False.
    Missing labels never match and missing confidences count as zero.
    """
    records = list(records or ())
    n = len(records)
    if n == 0:
        logger.debug("summarize: no records")
        return StatisticsReport()

    report = StatisticsReport(total_scans=n)
    agreement = report.agreement
    sum_conf_a = 0.0
    sum_conf_b = 0.0

    for index, record in enumerate(records):
        r = view(record)

        _bump(report.human_label_counts, r.human)
        _bump(report.model_a_label_counts, r.model_a)
        _bump(report.model_b_label_counts, r.model_b)

        if _same(r.human, r.model_a):
            agreement.human_model_a += 1
        if _same(r.human, r.model_b):
            agreement.human_model_b += 1
        if _same(r.model_a, r.model_b):
            agreement.model_a_model_b += 1
        if _same(r.human, r.model_a) and _same(r.model_a, r.model_b):
            agreement.all_three += 1
        human_right = _same(r.human, r.final_label)
        if human_right:
            agreement.human_ensemble += 1

        if _same(r.model_a, r.final_label):
            report.model_a_correct += 1
        if _same(r.model_b, r.final_label):
            report.model_b_correct += 1

        sum_conf_a += r.model_a_confidence
        sum_conf_b += r.model_b_confidence

        report.accuracy_trend.append(TrendPoint(index=index, correct=1 if human_right else 0))

    report.human_accuracy = agreement.human_ensemble / n * 100
    report.model_a_accuracy = report.model_a_correct / n * 100
    report.model_b_accuracy = report.model_b_correct / n * 100
    report.model_a_avg_confidence = (sum_conf_a / n) * 100
    report.model_b_avg_confidence = (sum_conf_b / n) * 100

    report.top_human = top_labels(report.human_label_counts, top_k)
    report.top_model_a = top_labels(report.model_a_label_counts, top_k)
    report.top_model_b = top_labels(report.model_b_label_counts, top_k)

    logger.debug("summarize: %d records, human accuracy %.1f%%", n, report.human_accuracy)
    return report


def cumulative_accuracy_trend(trend: Union[StatisticsReport, Iterable[TrendPoint]]) -> List[float]:
    """Running human accuracy (percent) after each point of the trend."""
    if isinstance(trend, StatisticsReport):
        trend = trend.accuracy_trend
    out: List[float] = []
    correct = 0
    for seen, point in enumerate(trend, start=1):
        correct += point.correct
        out.append(correct / seen * 100)
    return out
