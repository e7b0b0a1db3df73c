"""Dashboard metrics layered on top of the aggregate statistics."""

from collections import defaultdict
from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from .aggregate import StatisticsReport, summarize
from .records import RecordView, view

CALIBRATION_EDGES = (20, 40, 60, 80)
CALIBRATION_BINS = ("0-20", "20-40", "40-60", "60-80", "80-100")


@dataclass
class CalibrationBin:
    correct: int = 0
    total: int = 0

    @property
    def accuracy(self) -> Optional[float]:
        return self.correct / self.total if self.total else None


@dataclass
class CalibrationReport:
    bins: Dict[str, CalibrationBin] = field(
        default_factory=lambda: {name: CalibrationBin() for name in CALIBRATION_BINS}
    )

    def calibration_error(self) -> float:
        """Mean |accuracy - 0.5| over the non-empty bins (0.0 with no data)."""
        accs = [b.accuracy for b in self.bins.values() if b.total]
        if not accs:
            return 0.0
        return float(np.mean(np.abs(np.asarray(accs) - 0.5)))


@dataclass
class CategoryAccuracy:
    label: str
    count: int
    human_accuracy: float
    model_a_accuracy: float


@dataclass
class TimelinePoint:
    date: str
    total: int
    human_accuracy: float
    model_a_accuracy: float
    model_b_accuracy: float


@dataclass
class Composition:
    total_scans: int
    total_points: int
    items: List[Dict[str, Any]]


def _views(records: Sequence[Any]) -> List[RecordView]:
    return [view(r) for r in records or ()]


def _pct(part: int, whole: int) -> float:
    return part / whole * 100 if whole else 0.0


def cohen_kappa(records: Sequence[Any]) -> float:
    """Human vs model A agreement corrected for chance."""
    views = _views(records)
    n = len(views)
    if n == 0:
        return 0.0
    observed = 0
    freq: Dict[str, int] = defaultdict(int)
    for v in views:
        if v.human is not None and v.human == v.model_a:
            observed += 1
        if v.human is not None:
            freq[v.human] += 1
        if v.model_a is not None:
            freq[v.model_a] += 1
    counts = np.fromiter(freq.values(), dtype=float, count=len(freq))
    pe = float(np.sum((counts / (2 * n)) ** 2)) if counts.size else 0.0
    po = observed / n
    if pe >= 1.0:
        return 0.0
    return (po - pe) / (1 - pe)


def disagreement_rate(records: Sequence[Any]) -> float:
    """
    Percent of scans where human, model A and model B are three distinct labels.

    A scan with any missing label is never counted as split, but it still
    counts toward the total.
    """
    views = _views(records)
    split = sum(
        1 for v in views
        if None not in (v.human, v.model_a, v.model_b)
        and len({v.human, v.model_a, v.model_b}) == 3
    )
    return _pct(split, len(views))


def confidence_calibration(records: Sequence[Any]) -> CalibrationReport:
    """
    Bin scans by the mean model confidence, rounded half up to a whole percent;
    a scan counts as correct when either model matches the stored final label.
    """
    report = CalibrationReport()
    views = _views(records)
    if not views:
        return report
    avg = np.array([(v.model_a_confidence + v.model_b_confidence) / 2 * 100 for v in views])
    idx = np.digitize(np.floor(avg + 0.5), CALIBRATION_EDGES, right=False)
    for v, i in zip(views, idx):
        b = report.bins[CALIBRATION_BINS[min(int(i), len(CALIBRATION_BINS) - 1)]]
        b.total += 1
        if v.final_label is not None and v.final_label in (v.model_a, v.model_b):
            b.correct += 1
    return report


def per_category_accuracy(records: Sequence[Any], limit: int = 6) -> List[CategoryAccuracy]:
    """Human and model A accuracy per stored final label, most frequent first."""
    stats: Dict[str, List[int]] = {}
    for v in _views(records):
        if v.final_label is None:
            continue
        row = stats.setdefault(v.final_label, [0, 0, 0])   # total, human, model_a
        row[0] += 1
        row[1] += v.human == v.final_label
        row[2] += v.model_a == v.final_label
    ranked = sorted(stats.items(), key=lambda kv: -kv[1][0])
    return [
        CategoryAccuracy(label, total, _pct(h, total), _pct(a, total))
        for label, (total, h, a) in ranked[:limit]
    ]


def _day(value: Any) -> Optional[str]:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str) and len(value) >= 10:
        try:
            return date.fromisoformat(value[:10]).isoformat()
        except ValueError:
            return None
    return None


def agreement_timeline(records: Sequence[Any], days: int = 14) -> List[TimelinePoint]:
    """Daily accuracy of each classifier against the final label, oldest first."""
    by_day: Dict[str, List[int]] = {}
    for v in _views(records):
        day = _day(v.created_at)
        if day is None:
            continue
        row = by_day.setdefault(day, [0, 0, 0, 0])   # total, human, a, b
        row[0] += 1
        if v.final_label is not None:
            row[1] += v.human == v.final_label
            row[2] += v.model_a == v.final_label
            row[3] += v.model_b == v.final_label
    ordered = sorted(by_day.items())[-days:] if days > 0 else []
    return [
        TimelinePoint(day, total, _pct(h, total), _pct(a, total), _pct(b, total))
        for day, (total, h, a, b) in ordered
    ]


def waste_composition(records: Sequence[Any], default_points: int = 10) -> Composition:
    views = _views(records)
    counts: Dict[str, int] = {}
    points = 0
    for v in views:
        points += v.points if v.points is not None else default_points
        if v.final_label is not None:
            counts[v.final_label] = counts.get(v.final_label, 0) + 1
    items = [
        {"label": label, "count": count, "percent": _pct(count, len(views))}
        for label, count in sorted(counts.items(), key=lambda kv: -kv[1])
    ]
    return Composition(total_scans=len(views), total_points=points, items=items)


def build_dashboard(records: Sequence[Any], *, top_k: int = 5, timeline_days: int = 14) -> Dict[str, Any]:
    """Everything the statistics screens show, as one JSON-ready dict."""
    records = list(records or ())
    report: StatisticsReport = summarize(records, top_k=top_k)
    calibration = confidence_calibration(records)
    return {
        "summary": report.to_dict(),
        "cohen_kappa": cohen_kappa(records),
        "disagreement_rate": disagreement_rate(records),
        "calibration": {
            "bins": {k: asdict(b) for k, b in calibration.bins.items()},
            "error": calibration.calibration_error(),
        },
        "per_category": [asdict(c) for c in per_category_accuracy(records)],
        "timeline": [asdict(p) for p in agreement_timeline(records, timeline_days)],
        "composition": asdict(waste_composition(records)),
    }
