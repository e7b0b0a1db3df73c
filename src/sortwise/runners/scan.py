"""
Scan workflow: store the image, reconcile the three opinions, persist the
record, and serve statistics back for the same owner.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Union

from sortwise.classification.categories import canonical_label
from sortwise.classification.engine import EnsembleDecisionEngine, EnsembleThresholds
from sortwise.domain.exceptions import RepositoryError, UnknownCategoryError, ValidationError
from sortwise.domain.interfaces import FeedbackChannel, IdentityProvider, ImageStore, ScanRepository
from sortwise.domain.models import DEFAULT_SCAN_POINTS, FeedbackAnnotation, ModelSlot, ScanRecord
from sortwise.models.classification import ClassificationInput
from sortwise.reporting.aggregate import StatisticsReport, summarize
from sortwise.reporting.analytics import build_dashboard
from sortwise.scoring.accuracy import AccuracyModel

logger = logging.getLogger(__name__)

Opinion = Union[ClassificationInput, str, Dict[str, Any], None]


def normalise_opinion(value: Opinion) -> Optional[ClassificationInput]:
    """
    Coerce an opinion and fold its label onto the category vocabulary.

    Labels outside the vocabulary are kept verbatim so the engine still sees
    what the classifier said.
    """
    op = ClassificationInput.from_value(value)
    if op is None or op.is_missing:
        return op
    try:
        label = canonical_label(op.label)
    except UnknownCategoryError:
        logger.warning("Unknown category %r kept verbatim", op.label)
        return op
    return ClassificationInput(label=label, confidence=op.confidence)


class ScanService:
    """Wires the decision engine to storage, identity and reporting."""

    def __init__(
        self,
        repository: ScanRepository,
        image_store: Optional[ImageStore] = None,
        identity: Optional[IdentityProvider] = None,
        engine: Optional[EnsembleDecisionEngine] = None,
        *,
        feedback: Optional[FeedbackChannel] = None,
        thresholds: Optional[EnsembleThresholds] = None,
        use_feedback_accuracy: bool = False,
        points_per_scan: int = DEFAULT_SCAN_POINTS,
    ):
        self.repository = repository
        self.image_store = image_store
        self.identity = identity
        self.engine = engine
        self.thresholds = thresholds
        self.use_feedback_accuracy = use_feedback_accuracy
        self.points_per_scan = points_per_scan
        if feedback is None and isinstance(repository, FeedbackChannel):
            feedback = repository
        self.feedback = feedback

    def _owner(self, owner_id: Optional[str]) -> str:
        if owner_id:
            return owner_id
        if self.identity is not None:
            return self.identity.current_owner()
        raise ValidationError(
            "No owner given and no identity provider configured",
            field_name="owner_id",
        ).add_suggestion("Pass owner_id or construct ScanService with an IdentityProvider")

    def decision_engine(self) -> EnsembleDecisionEngine:
        if self.engine is not None:
            return self.engine
        accuracy = self.accuracy_model() if self.use_feedback_accuracy else None
        return EnsembleDecisionEngine(self.thresholds, accuracy)

    def build_record(
        self,
        image: Union[bytes, str, None],
        human: Opinion,
        model_a: Opinion,
        model_b: Opinion,
        owner_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
        engine: Optional[EnsembleDecisionEngine] = None,
    ) -> ScanRecord:
        """Decide one scan without storing it."""
        owner = self._owner(owner_id)

        image_ref = None
        if image is not None and self.image_store is not None:
            image_ref = self.image_store.upload(image).url

        h = normalise_opinion(human)
        a = normalise_opinion(model_a)
        b = normalise_opinion(model_b)

        result = (engine or self.decision_engine()).decide(h, a, b)
        if result.is_ambiguous:
            logger.info("Scan for %s is ambiguous: %s", owner, result.error or result.reason_code.value)

        record = ScanRecord.from_result(
            result,
            human=h or ClassificationInput(None),
            model_a=a or ClassificationInput(None),
            model_b=b or ClassificationInput(None),
            owner_id=owner,
            image_ref=image_ref,
            created_at=created_at,
            points=self.points_per_scan,
        )
        return record

    def submit(
        self,
        image: Union[bytes, str, None],
        human: Opinion,
        model_a: Opinion,
        model_b: Opinion,
        owner_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> ScanRecord:
        """Decide and store one scan. Returns the stored record with its id."""
        record = self.build_record(image, human, model_a, model_b, owner_id, created_at)
        stored = self.repository.append(record)
        logger.debug("scan %s stored: %s (%s)", stored.scan_id, stored.final_label, stored.reason_code.value)
        return stored

    def record_feedback(
        self,
        scan_id: int,
        was_correct: bool,
        model_type: Union[ModelSlot, str] = ModelSlot.MODEL_B,
        category: Optional[str] = None,
    ) -> FeedbackAnnotation:
        """Attach a correctness verdict to a stored scan; category defaults to its final label."""
        if self.feedback is None:
            raise RepositoryError("No feedback channel configured", operation="record_feedback", scan_id=scan_id)

        slot = ModelSlot.parse(model_type)
        if category is None:
            scan = self.repository.get(scan_id)
            if scan is None:
                raise RepositoryError(f"No scan with id {scan_id}", operation="record_feedback", scan_id=scan_id)
            category = scan.final_label
        if not category:
            raise ValidationError(
                "Feedback needs a category and the scan has no final label",
                field_name="category",
            )

        return self.feedback.append_feedback(FeedbackAnnotation(
            scan_id=scan_id,
            was_correct=bool(was_correct),
            category=category,
            model_type=slot,
        ))

    def accuracy_model(self) -> AccuracyModel:
        if self.feedback is None:
            return AccuracyModel()
        return AccuracyModel.from_feedback(self.feedback.list_feedback())

    def report(self, owner_id: Optional[str] = None, top_k: int = 5) -> StatisticsReport:
        return summarize(self.repository.list_for_owner(self._owner(owner_id)), top_k=top_k)

    def dashboard(self, owner_id: Optional[str] = None, top_k: int = 5, timeline_days: int = 14) -> Dict[str, Any]:
        records = self.repository.list_for_owner(self._owner(owner_id))
        return build_dashboard(records, top_k=top_k, timeline_days=timeline_days)
