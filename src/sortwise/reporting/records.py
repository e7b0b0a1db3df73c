"""Tolerant field access over stored scan records of any shape."""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from sortwise.domain.models import ScanRecord
from sortwise.models.classification import ClassificationInput, _as_float


@dataclass(frozen=True)
class RecordView:
    """The raw fields the reporting code reads from one record."""
    human: Optional[str]
    model_a: Optional[str]
    model_b: Optional[str]
    final_label: Optional[str]
    model_a_confidence: float
    model_b_confidence: float
    created_at: Any = None
    points: Optional[int] = None


def _label(value: Any) -> Optional[str]:
    """Non-empty strings only; anything else counts as a missing label."""
    if isinstance(value, str) and value != "":
        return value
    return None


def _opinion(record: Mapping[str, Any], key: str, legacy_keys: tuple, flat_label: str, flat_conf: str):
    op = ClassificationInput.from_value(record.get(key))
    if op is not None:
        return _label(op.label), op.confidence_or_zero()

    # legacy documents: flat prediction fields win over the nested results map
    label = _label(record.get(flat_label))
    if flat_conf in record:
        confidence = _as_float(record.get(flat_conf))
    else:
        confidence = None
    if label is None:
        results = record.get("results")
        if isinstance(results, Mapping):
            for name in legacy_keys:
                op = ClassificationInput.from_value(results.get(name))
                if op is not None and op.label:
                    label = _label(op.label)
                    if confidence is None:
                        confidence = op.confidence_or_zero()
                    break
    return label, confidence if confidence is not None else 0.0


def view(record: Any) -> RecordView:
    """Read a ScanRecord or a stored mapping; malformed fields become absent."""
    if isinstance(record, ScanRecord):
        return RecordView(
            human=_label(record.human.label if record.human else None),
            model_a=_label(record.model_a.label if record.model_a else None),
            model_b=_label(record.model_b.label if record.model_b else None),
            final_label=_label(record.final_label),
            model_a_confidence=record.model_a.confidence_or_zero() if record.model_a else 0.0,
            model_b_confidence=record.model_b.confidence_or_zero() if record.model_b else 0.0,
            created_at=record.created_at,
            points=record.points,
        )

    if not isinstance(record, Mapping):
        return RecordView(None, None, None, None, 0.0, 0.0)

    human_value = record.get("human", record.get("userSelection"))
    human = ClassificationInput.from_value(human_value)

    a_label, a_conf = _opinion(record, "model_a", ("model_a", "model1", "mobilenet"),
                               "aiModel1Prediction", "aiModel1Confidence")
    b_label, b_conf = _opinion(record, "model_b", ("model_b", "model2", "rexnet"),
                               "aiModel2Prediction", "aiModel2Confidence")

    final = record.get("final_label")
    if final is None:
        final = record.get("finalSelection") or record.get("classification") or record.get("result")

    points = record.get("points")
    return RecordView(
        human=_label(human.label if human else None),
        model_a=a_label,
        model_b=b_label,
        final_label=_label(final),
        model_a_confidence=a_conf,
        model_b_confidence=b_conf,
        created_at=record.get("created_at", record.get("timestamp")),
        points=points if isinstance(points, int) and not isinstance(points, bool) else None,
    )
