import json
from unittest.mock import Mock

import pytest

from sortwise.data.scan_repo import SqliteScanRepository
from sortwise.domain.exceptions import BatchImportError, RecordValidationError
from sortwise.runners.batch import BatchImporter, parse_event
from sortwise.runners.scan import ScanService


@pytest.fixture
def repo(tmp_path):
    r = SqliteScanRepository.open(str(tmp_path / "scans.sqlite"))
    yield r
    r.close()


@pytest.fixture
def events_file(tmp_path):
    lines = [
        json.dumps({"owner_id": "u1", "human": "glass",
                    "model_a": {"label": "glass", "confidence": 0.8},
                    "model_b": {"label": "glass", "confidence": 0.9},
                    "created_at": "2024-04-01T10:00:00Z"}),
        json.dumps({"userId": "u1", "userSelection": "paper",
                    "aiModel1Prediction": "plastic", "aiModel1Confidence": 0.92,
                    "aiModel2Prediction": "Plastics", "aiModel2Confidence": 0.95,
                    "timestamp": "2024-04-02T10:00:00"}),
        "{not json",
        "",
        json.dumps(["a", "list"]),
        json.dumps({"human": "metal", "model_a": {"label": "metal", "confidence": 0.5}}),
        json.dumps({"owner_id": "u2", "human": "paper",
                    "model_a": {"label": "plastic", "confidence": 0.3},
                    "model_b": {"label": "metal", "confidence": 0.9}}),
    ]
    path = tmp_path / "events.jsonl"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


class TestParseEvent:

    def test_nested(self):
        event, (h, a, b) = parse_event('{"human": "glass", "model_a": {"label": "glass", "confidence": 0.7}}', 1)

        assert event["human"] == "glass"
        assert h.label == "glass"
        assert a.confidence == 0.7
        assert b.label is None

    def test_invalid_json(self):
        with pytest.raises(RecordValidationError) as exc:
            parse_event("{oops", 7)
        assert exc.value.context["line_number"] == 7

    def test_non_object(self):
        with pytest.raises(RecordValidationError):
            parse_event("[1, 2]", 1)


class TestBatchImporter:

    def test_run(self, repo, events_file):
        importer = BatchImporter(ScanService(repo), chunk_size=2, show_progress=False, default_owner="fallback")
        result = importer.run(events_file)

        assert result.lines_read == 6
        assert result.stored == 4
        assert result.skipped == 2
        assert result.ambiguous == 1
        assert result.reason_counts["ALL_AGREE"] == 1
        assert result.reason_counts["MODELS_AGREE_OVERRIDE"] == 1
        assert result.reason_counts["REXNET_STRONG_SIGNAL"] == 1
        assert not result.success
        assert any("line 3" in e for e in result.errors)

        u1 = repo.list_for_owner("u1")
        assert [r.final_label for r in u1] == ["glass", "plastic"]
        assert u1[0].created_at.isoformat().startswith("2024-04-01T10:00:00")
        assert len(repo.list_for_owner("fallback")) == 1

    def test_without_default_owner_skips_ownerless(self, repo, events_file):
        result = BatchImporter(ScanService(repo), show_progress=False).run(events_file)

        assert result.stored == 3
        assert result.skipped == 3

    def test_falls_back_to_single_appends(self, events_file):
        repo = Mock(spec=["append"])
        service = ScanService(repo)
        result = BatchImporter(service, show_progress=False, default_owner="x").run(events_file)

        assert result.stored == 4
        assert repo.append.call_count == 4

    def test_missing_file(self, repo, tmp_path):
        with pytest.raises(BatchImportError):
            BatchImporter(ScanService(repo), show_progress=False).run(tmp_path / "nope.jsonl")
