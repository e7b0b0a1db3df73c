"""Batch import of scan events from a JSON Lines file."""

import json
import logging
import os
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

import psutil
from tqdm import tqdm

from sortwise.domain.exceptions import BatchImportError, RecordValidationError, SortwiseError
from sortwise.domain.models import ScanRecord
from sortwise.models.classification import ClassificationInput
from sortwise.reporting.records import view
from sortwise.runners.scan import ScanService
from sortwise.utils.itertools import chunked
from sortwise.utils.timing import timeit

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Outcome of one import run."""
    source: str
    lines_read: int = 0
    stored: int = 0
    skipped: int = 0
    ambiguous: int = 0
    reason_counts: Dict[str, int] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    processing_time: float = 0.0

    @property
    def success(self) -> bool:
        return self.skipped == 0


def _parse_created_at(value) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    # naive timestamps are taken as UTC
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def parse_event(line: str, line_number: int) -> Tuple[Dict, Tuple[ClassificationInput, ...]]:
    """
    Parse one JSON line into (event, (human, model_a, model_b)).

    Accepts the nested shape (``human``/``model_a``/``model_b``) and the legacy
    flat shape (``userSelection``/``aiModel1Prediction``/...).

    Raises:
        RecordValidationError: for invalid JSON or a non-object line
    """
    try:
        event = json.loads(line)
    except json.JSONDecodeError as e:
        raise RecordValidationError(f"Invalid JSON: {e.msg}", line_number=line_number) from e
    if not isinstance(event, dict):
        raise RecordValidationError("Each line must be a JSON object", line_number=line_number)

    v = view(event)
    opinions = (
        ClassificationInput(v.human),
        ClassificationInput(v.model_a, v.model_a_confidence),
        ClassificationInput(v.model_b, v.model_b_confidence),
    )
    return event, opinions


class BatchImporter:
    """Reads scan events, decides each one and stores them in chunks."""

    def __init__(
        self,
        service: ScanService,
        chunk_size: int = 500,
        show_progress: Optional[bool] = None,
        default_owner: Optional[str] = None,
    ):
        self.service = service
        self.chunk_size = chunk_size
        if show_progress is None:
            show_progress = os.getenv('NO_PROGRESS', '').lower() not in ['1', 'true', 'yes']
        self.show_progress = show_progress
        self.default_owner = default_owner
        self.process = psutil.Process(os.getpid())

    def _log_memory(self, label: str) -> None:
        try:
            rss = self.process.memory_info().rss / 1e6  # MB
            logger.debug("[mem] %s RSS=%.1fMB", label, rss)
        except psutil.Error as e:
            logger.debug("[mem] %s unavailable: %s", label, e)

    def _lines(self, path: Path) -> Iterator[Tuple[int, str]]:
        with path.open("r", encoding="utf-8") as fh:
            for n, line in enumerate(fh, start=1):
                if line.strip():
                    yield n, line

    def _records(self, path: Path, result: BatchResult, engine) -> Iterator[ScanRecord]:
        lines = self._lines(path)
        if self.show_progress:
            lines = tqdm(lines, desc="Import", unit="scan", ncols=100, leave=False)
        for n, line in lines:
            result.lines_read += 1
            try:
                event, (h, a, b) = parse_event(line, n)
                record = self.service.build_record(
                    event.get("image"),
                    h, a, b,
                    owner_id=event.get("owner_id") or event.get("userId") or self.default_owner,
                    created_at=_parse_created_at(event.get("created_at") or event.get("timestamp")),
                    engine=engine,
                )
            except SortwiseError as e:
                result.skipped += 1
                result.errors.append(f"line {n}: {e.message}")
                logger.warning("Skipping line %d: %s", n, e.message)
                continue
            result.reason_counts[record.reason_code.value] = result.reason_counts.get(record.reason_code.value, 0) + 1
            if record.final_label is None:
                result.ambiguous += 1
            yield record

    def run(self, path: Union[str, Path]) -> BatchResult:
        """Import every event in ``path``; malformed lines are counted and skipped."""
        path = Path(path)
        if not path.is_file():
            raise BatchImportError(f"Input file not found: {path}", source=str(path))

        @timeit(logger, name="batch_import")
        def _run() -> BatchResult:
            result = BatchResult(source=str(path))
            engine = self.service.decision_engine()
            self._log_memory("start")
            repo = self.service.repository
            bulk = getattr(repo, "bulk_append", None)
            for batch in chunked(self._records(path, result, engine), self.chunk_size):
                if bulk is not None:
                    result.stored += bulk(batch)
                else:
                    for record in batch:
                        repo.append(record)
                        result.stored += 1
                self._log_memory(f"after {result.stored} scans")
            return result

        t0 = datetime.now()
        result = _run()
        result.processing_time = (datetime.now() - t0).total_seconds()

        by_reason = ", ".join(f"{k}={v}" for k, v in Counter(result.reason_counts).most_common())
        logger.info(
            "Imported %d/%d scans from %s (%d skipped, %d ambiguous) %s",
            result.stored, result.lines_read, path.name, result.skipped, result.ambiguous, by_reason,
        )
        return result
