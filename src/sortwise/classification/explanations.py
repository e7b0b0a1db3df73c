"""Human-readable rationale for ensemble reason codes."""

from sortwise.models.classification import ReasonCode, RecommendationStrength

EXPLANATIONS = {
    ReasonCode.ALL_AGREE: "All three (you and both AI models) agree on this classification.",
    ReasonCode.MODELS_AGREE_WITH_HUMAN: "The AI models support your selection.",
    ReasonCode.MODELS_AGREE_OVERRIDE: "Both AI models strongly agree (high confidence override).",
    ReasonCode.REXNET_STRONG_SIGNAL: "Model B has a strong confidence on this classification.",
    ReasonCode.HUMAN_CONSENSUS_TIE: "The AI models disagreed, so the strongest available signal is used.",
    ReasonCode.AMBIGUOUS_ALL_DIFFER: "Classification unavailable - manual review recommended.",
}

STRENGTH_COLOURS = {
    RecommendationStrength.VERY_HIGH: "#27ae60",
    RecommendationStrength.HIGH: "#2ecc71",
    RecommendationStrength.MODERATE: "#f39c12",
    RecommendationStrength.LOW: "#e74c3c",
}


def explain(reason: ReasonCode) -> str:
    try:
        return EXPLANATIONS[ReasonCode(reason)]
    except (KeyError, ValueError):
        return "Unknown reasoning"


def strength_colour(strength: RecommendationStrength) -> str:
    try:
        return STRENGTH_COLOURS[RecommendationStrength(strength)]
    except (KeyError, ValueError):
        return "#95a5a6"
