"""Per-category model accuracy learned from user feedback."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Tuple

from sortwise.domain.models import FeedbackAnnotation, ModelSlot


@dataclass(frozen=True)
class AccuracyCounts:
    correct: int = 0
    total: int = 0

    @property
    def ratio(self) -> Optional[float]:
        if self.total <= 0:
            return None
        return self.correct / self.total


_Key = Tuple[str, ModelSlot]


@dataclass(frozen=True)
class AccuracyModel:
    """
    Immutable mapping of (category, model slot) -> feedback counts.

    Passed explicitly into the decision engine to scale each model's weighted
    score by how often that model has been right for the label it predicted.
    An empty model changes nothing.
    """
    _counts: Mapping[_Key, AccuracyCounts] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "_counts", MappingProxyType(dict(self._counts)))

    @classmethod
    def from_feedback(cls, feedback: Iterable[FeedbackAnnotation]) -> "AccuracyModel":
        counts: Dict[_Key, AccuracyCounts] = {}
        for fb in feedback or ():
            if not fb.category or fb.model_type is None:
                continue
            try:
                slot = ModelSlot.parse(fb.model_type)
            except ValueError:
                continue
            key = (fb.category, slot)
            prev = counts.get(key, AccuracyCounts())
            counts[key] = AccuracyCounts(
                correct=prev.correct + (1 if fb.was_correct else 0),
                total=prev.total + 1,
            )
        return cls(counts)

    @property
    def is_empty(self) -> bool:
        return not self._counts

    def counts(self, category: Optional[str], slot: ModelSlot) -> AccuracyCounts:
        return self._counts.get((category, slot), AccuracyCounts())

    def accuracy(self, category: Optional[str], slot: ModelSlot) -> Optional[float]:
        return self.counts(category, slot).ratio

    def weight_factor(self, category: Optional[str], slot: ModelSlot) -> float:
        """Observed accuracy, or 1.0 when there is no feedback for this pair."""
        ratio = self.accuracy(category, slot)
        return 1.0 if ratio is None else ratio

    def as_dict(self) -> Dict[str, Dict[str, Dict[str, int]]]:
        out: Dict[str, Dict[str, Dict[str, int]]] = {}
        for (category, slot), c in self._counts.items():
            out.setdefault(category, {})[slot.value] = {"correct": c.correct, "total": c.total}
        return out
