"""Core domain records for scans and feedback."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any

from sortwise.models.classification import (
    ClassificationInput,
    EnsembleMetrics,
    EnsembleResult,
    ReasonCode,
)

DEFAULT_SCAN_POINTS = 10


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ModelSlot(str, Enum):
    """Which of the two classifiers an opinion or feedback entry belongs to."""
    MODEL_A = "model_a"
    MODEL_B = "model_b"

    @classmethod
    def parse(cls, value: str) -> "ModelSlot":
        """Accept the slot names plus the legacy model names used by older clients."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        aliases = {
            "model_a": cls.MODEL_A, "a": cls.MODEL_A, "model1": cls.MODEL_A, "mobilenet": cls.MODEL_A,
            "model_b": cls.MODEL_B, "b": cls.MODEL_B, "model2": cls.MODEL_B, "rexnet": cls.MODEL_B,
        }
        try:
            return aliases[key]
        except KeyError:
            raise ValueError(f"Unknown model slot: {value!r}") from None


@dataclass(frozen=True)
class ScanRecord:
    """One completed scan: the three opinions plus the stored ensemble verdict."""
    image_ref: Optional[str]
    human: ClassificationInput
    model_a: ClassificationInput
    model_b: ClassificationInput
    final_label: Optional[str]
    final_confidence: float
    reason_code: ReasonCode
    metrics: EnsembleMetrics
    owner_id: str
    created_at: datetime = field(default_factory=utcnow)
    points: int = DEFAULT_SCAN_POINTS
    scan_id: Optional[int] = None

    @classmethod
    def from_result(
        cls,
        result: EnsembleResult,
        *,
        human: ClassificationInput,
        model_a: ClassificationInput,
        model_b: ClassificationInput,
        owner_id: str,
        image_ref: Optional[str] = None,
        created_at: Optional[datetime] = None,
        points: int = DEFAULT_SCAN_POINTS,
    ) -> "ScanRecord":
        return cls(
            image_ref=image_ref,
            human=human,
            model_a=model_a,
            model_b=model_b,
            final_label=result.final_label,
            final_confidence=result.final_confidence,
            reason_code=result.reason_code,
            metrics=result.metrics,
            owner_id=owner_id,
            created_at=created_at or utcnow(),
            points=points,
        )

    @property
    def result(self) -> EnsembleResult:
        """The stored ensemble verdict as an EnsembleResult."""
        return EnsembleResult(
            final_label=self.final_label,
            final_confidence=self.final_confidence,
            reason_code=self.reason_code,
            metrics=self.metrics,
        )

    def with_id(self, scan_id: int) -> "ScanRecord":
        return replace(self, scan_id=scan_id)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "scan_id": self.scan_id,
            "image_ref": self.image_ref,
            "owner_id": self.owner_id,
            "created_at": self.created_at.isoformat(),
            "points": self.points,
            "human": self.human.to_dict(),
            "model_a": self.model_a.to_dict(),
            "model_b": self.model_b.to_dict(),
            **self.result.to_dict(),
        }


@dataclass(frozen=True)
class FeedbackAnnotation:
    """A user's later verdict on whether a scan was classified correctly."""
    scan_id: int
    was_correct: bool
    category: str
    model_type: ModelSlot
    created_at: datetime = field(default_factory=utcnow)
    feedback_id: Optional[int] = None
