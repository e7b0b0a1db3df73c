""" Specifies the classes for classification inputs and ensemble results """

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class ReasonCode(str, Enum):
    ALL_AGREE = "ALL_AGREE"
    MODELS_AGREE_WITH_HUMAN = "MODELS_AGREE_WITH_HUMAN"
    MODELS_AGREE_OVERRIDE = "MODELS_AGREE_OVERRIDE"
    REXNET_STRONG_SIGNAL = "REXNET_STRONG_SIGNAL"
    # also emitted for the model-A strong signal branch, see MODEL_A_STRONG flag
    HUMAN_CONSENSUS_TIE = "HUMAN_CONSENSUS_TIE"
    AMBIGUOUS_ALL_DIFFER = "AMBIGUOUS_ALL_DIFFER"


class RecommendationStrength(str, Enum):
    VERY_HIGH = "VERY_HIGH"
    HIGH = "HIGH"
    MODERATE = "MODERATE"
    LOW = "LOW"


class EnsembleFlag:
    """Diagnostic tags attached to EnsembleMetrics.flags."""
    HUMAN_DIFFERS_FROM_AI = "HUMAN_DIFFERS_FROM_AI"
    AI_OVERRIDE = "AI_OVERRIDE"
    HUMAN_PREFERS = "HUMAN_PREFERS"
    MODELS_CONFLICT = "MODELS_CONFLICT"
    MODEL_B_STRONG = "MODEL_B_STRONG"
    MODEL_A_STRONG = "MODEL_A_STRONG"
    TIE_DEFAULT_HUMAN = "TIE_DEFAULT_HUMAN"
    MISSING_PREDICTIONS = "MISSING_PREDICTIONS"


def _as_float(value: Any) -> float:
    """Coerce a stored confidence to float; None, NaN and junk become 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        val = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(val):
        return 0.0
    return val


@dataclass(frozen=True)
class ClassificationInput:
    """One opinion about a scan: a label and, for models, a confidence in [0, 1]."""
    label: Optional[str]
    confidence: Optional[float] = None   # None for the human opinion

    @property
    def is_missing(self) -> bool:
        return self.label is None or self.label == ""

    def confidence_or_zero(self) -> float:
        return _as_float(self.confidence)

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "confidence": self.confidence}

    @classmethod
    def from_value(cls, value: Any) -> Optional["ClassificationInput"]:
        """
        Build an input from whatever a stored record holds for one opinion.

        Accepts an existing ClassificationInput, a bare label string or a mapping
        using ``label``/``prediction`` and ``confidence`` keys. Anything else,
        including None, gives None.
        """
        if value is None or isinstance(value, ClassificationInput):
            return value
        if isinstance(value, str):
            return cls(label=value)
        if isinstance(value, Mapping):
            label = value.get("label", value.get("prediction"))
            if label is not None and not isinstance(label, str):
                label = str(label)
            return cls(label=label, confidence=value.get("confidence"))
        return None


@dataclass
class EnsembleMetrics:
    """Supporting metrics stored alongside every ensemble decision."""
    all_agree: bool
    ai_consensus: bool
    human_ai_alignment: bool
    recommendation_strength: RecommendationStrength
    flags: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "all_agree": self.all_agree,
            "ai_consensus": self.ai_consensus,
            "human_ai_alignment": self.human_ai_alignment,
            "recommendation_strength": self.recommendation_strength.value,
            "flags": list(self.flags),
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "EnsembleMetrics":
        strength = d.get("recommendation_strength") or RecommendationStrength.LOW.value
        try:
            strength = RecommendationStrength(strength)
        except ValueError:
            strength = RecommendationStrength.LOW
        return cls(
            all_agree=bool(d.get("all_agree", False)),
            ai_consensus=bool(d.get("ai_consensus", False)),
            human_ai_alignment=bool(d.get("human_ai_alignment", False)),
            recommendation_strength=strength,
            flags=list(d.get("flags") or []),
        )


@dataclass
class EnsembleResult:
    """The reconciled verdict for one scan."""
    final_label: Optional[str]
    final_confidence: float
    reason_code: ReasonCode
    metrics: EnsembleMetrics
    error: Optional[str] = None

    @property
    def is_ambiguous(self) -> bool:
        return self.final_label is None

    @property
    def explanation(self) -> str:
        from sortwise.classification.explanations import explain
        return explain(self.reason_code)

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "final_label": self.final_label,
            "final_confidence": self.final_confidence,
            "reason_code": self.reason_code.value,
            "metrics": self.metrics.to_dict(),
        }
        if self.error:
            d["error"] = self.error
        return d

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "EnsembleResult":
        return cls(
            final_label=d.get("final_label"),
            final_confidence=_as_float(d.get("final_confidence")),
            reason_code=ReasonCode(d.get("reason_code", ReasonCode.AMBIGUOUS_ALL_DIFFER.value)),
            metrics=EnsembleMetrics.from_dict(d.get("metrics") or {}),
            error=d.get("error"),
        )

    @classmethod
    def ambiguous(cls, error: str = "Missing predictions") -> "EnsembleResult":
        """ Return the sentinel result used when an opinion is missing """
        return cls(
            final_label=None,
            final_confidence=0.0,
            reason_code=ReasonCode.AMBIGUOUS_ALL_DIFFER,
            metrics=EnsembleMetrics(
                all_agree=False,
                ai_consensus=False,
                human_ai_alignment=False,
                recommendation_strength=RecommendationStrength.LOW,
                flags=[EnsembleFlag.MISSING_PREDICTIONS],
            ),
            error=error,
        )
