"""
Ensemble decision engine.

Reconciles the human label with the two model opinions into one final label.
Pure: no I/O, no state beyond the inputs and the injected thresholds/accuracy.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from sortwise.models.classification import (
    ClassificationInput,
    EnsembleFlag,
    EnsembleMetrics,
    EnsembleResult,
    ReasonCode,
    RecommendationStrength,
)
from sortwise.domain.models import ModelSlot
from sortwise.scoring.accuracy import AccuracyModel

logger = logging.getLogger(__name__)

MODEL_A_WEIGHT = 0.45
MODEL_B_WEIGHT = 0.55
AI_OVERRIDE_THRESHOLD = 0.88       # strict >, 0.88 itself trusts the human
STRONG_SIGNAL_MARGIN = 0.15        # strict >
HUMAN_OVERRIDE_CONFIDENCE = 0.70
TIE_DEFAULT_CONFIDENCE = 0.65
MODEL_A_AGREEMENT_FLOOR = 0.65
MODEL_B_AGREEMENT_FLOOR = 0.70


def clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


@dataclass(frozen=True)
class EnsembleThresholds:
    """Tunable constants of the decision policy."""
    model_a_weight: float = MODEL_A_WEIGHT
    model_b_weight: float = MODEL_B_WEIGHT
    ai_override_threshold: float = AI_OVERRIDE_THRESHOLD
    strong_signal_margin: float = STRONG_SIGNAL_MARGIN
    human_override_confidence: float = HUMAN_OVERRIDE_CONFIDENCE
    tie_default_confidence: float = TIE_DEFAULT_CONFIDENCE
    model_a_agreement_floor: float = MODEL_A_AGREEMENT_FLOOR
    model_b_agreement_floor: float = MODEL_B_AGREEMENT_FLOOR


DEFAULT_THRESHOLDS = EnsembleThresholds()


class EnsembleDecisionEngine:
    """Main ensemble decision engine."""

    def __init__(
        self,
        thresholds: Optional[EnsembleThresholds] = None,
        accuracy: Optional[AccuracyModel] = None,
    ):
        self.thresholds = thresholds or DEFAULT_THRESHOLDS
        self.accuracy = accuracy

    def decide(
        self,
        human: Optional[ClassificationInput],
        model_a: Optional[ClassificationInput],
        model_b: Optional[ClassificationInput],
    ) -> EnsembleResult:
        """
        Reconcile three opinions. Missing opinions give the AMBIGUOUS sentinel,
        never an exception.
        """
        if any(x is None or x.is_missing for x in (human, model_a, model_b)):
            logger.debug("ensemble: missing prediction, returning ambiguous result")
            return EnsembleResult.ambiguous("Missing predictions")

        t = self.thresholds
        h = human.label
        a = model_a.label
        b = model_b.label
        conf_a = model_a.confidence_or_zero()
        conf_b = model_b.confidence_or_zero()

        # 1) unanimous
        if a == b == h:
            return self._result(h, (conf_a + conf_b) / 2, ReasonCode.ALL_AGREE,
                                RecommendationStrength.VERY_HIGH, [], h, a, b)

        # 2) models agree, human differs
        if a == b:
            avg = (conf_a + conf_b) / 2
            flags = [EnsembleFlag.HUMAN_DIFFERS_FROM_AI]
            if avg > t.ai_override_threshold:
                flags.append(EnsembleFlag.AI_OVERRIDE)
                return self._result(a, avg, ReasonCode.MODELS_AGREE_OVERRIDE,
                                    RecommendationStrength.HIGH, flags, h, a, b)
            flags.append(EnsembleFlag.HUMAN_PREFERS)
            return self._result(h, t.human_override_confidence, ReasonCode.MODELS_AGREE_WITH_HUMAN,
                                RecommendationStrength.MODERATE, flags, h, a, b)

        # 3) models disagree
        w_a = conf_a * t.model_a_weight
        w_b = conf_b * t.model_b_weight
        if self.accuracy is not None:
            w_a *= self.accuracy.weight_factor(a, ModelSlot.MODEL_A)
            w_b *= self.accuracy.weight_factor(b, ModelSlot.MODEL_B)
        flags = [EnsembleFlag.MODELS_CONFLICT]

        if w_a > w_b and a == h:
            return self._result(h, max(conf_a, t.model_a_agreement_floor), ReasonCode.MODELS_AGREE_WITH_HUMAN,
                                RecommendationStrength.HIGH, flags, h, a, b)
        if w_b > w_a and b == h:
            return self._result(h, max(conf_b, t.model_b_agreement_floor), ReasonCode.MODELS_AGREE_WITH_HUMAN,
                                RecommendationStrength.HIGH, flags, h, a, b)
        if w_b - w_a > t.strong_signal_margin:
            flags.append(EnsembleFlag.MODEL_B_STRONG)
            return self._result(b, conf_b, ReasonCode.REXNET_STRONG_SIGNAL,
                                RecommendationStrength.MODERATE, flags, h, a, b)
        if w_a - w_b > t.strong_signal_margin:
            flags.append(EnsembleFlag.MODEL_A_STRONG)
            return self._result(a, conf_a, ReasonCode.HUMAN_CONSENSUS_TIE,
                                RecommendationStrength.MODERATE, flags, h, a, b)

        flags.append(EnsembleFlag.TIE_DEFAULT_HUMAN)
        return self._result(h, t.tie_default_confidence, ReasonCode.HUMAN_CONSENSUS_TIE,
                            RecommendationStrength.MODERATE, flags, h, a, b)

    @staticmethod
    def _result(
        final_label: str,
        confidence: float,
        reason: ReasonCode,
        strength: RecommendationStrength,
        flags: List[str],
        h: str,
        a: str,
        b: str,
    ) -> EnsembleResult:
        metrics = EnsembleMetrics(
            all_agree=(a == b == h),
            ai_consensus=(a == b),
            human_ai_alignment=(final_label == h),
            recommendation_strength=strength,
            flags=flags,
        )
        logger.debug("ensemble: %s -> %s (%s)", (h, a, b), final_label, reason.value)
        return EnsembleResult(
            final_label=final_label,
            final_confidence=clamp01(confidence),
            reason_code=reason,
            metrics=metrics,
        )


def decide(
    human: Optional[ClassificationInput],
    model_a: Optional[ClassificationInput],
    model_b: Optional[ClassificationInput],
    *,
    thresholds: Optional[EnsembleThresholds] = None,
    accuracy: Optional[AccuracyModel] = None,
) -> EnsembleResult:
    """Reconcile the human, model A and model B opinions into one EnsembleResult."""
    return EnsembleDecisionEngine(thresholds, accuracy).decide(human, model_a, model_b)
