import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from sortwise import ClassificationInput, ScanRecord, decide
from sortwise.data.db import connect
from sortwise.data.schema import create_schema, existing_tables
from sortwise.data.scan_repo import SqliteScanRepository
from sortwise.domain.exceptions import DatabaseError, RepositoryError
from sortwise.domain.models import FeedbackAnnotation, ModelSlot
from sortwise.models.classification import ReasonCode

T0 = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_record(owner="u1", human="paper", a=("plastic", 0.92), b=("plastic", 0.95), created_at=T0):
    h, ma, mb = ClassificationInput(human), ClassificationInput(*a), ClassificationInput(*b)
    return ScanRecord.from_result(decide(h, ma, mb), human=h, model_a=ma, model_b=mb,
                                  owner_id=owner, created_at=created_at, image_ref="file:///x.jpg")


@pytest.fixture
def repo(tmp_path):
    r = SqliteScanRepository.open(str(tmp_path / "scans.sqlite"))
    yield r
    r.close()


class TestConnectAndSchema:

    def test_connect_creates_parent(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "db.sqlite"
        conn = connect(str(path))
        try:
            assert path.parent.is_dir()
            assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
        finally:
            conn.close()

    def test_connect_wal(self, tmp_path):
        conn = connect(str(tmp_path / "wal.sqlite"), use_wal=True)
        try:
            assert conn.execute("PRAGMA journal_mode").fetchone()[0].lower() == "wal"
        finally:
            conn.close()

    def test_connect_failure_is_database_error(self, tmp_path):
        with pytest.raises(DatabaseError) as exc:
            connect(str(tmp_path))   # a directory, not a file
        assert exc.value.context["db_path"] == str(tmp_path)

    def test_schema_is_idempotent(self):
        conn = sqlite3.connect(":memory:")
        create_schema(conn)
        create_schema(conn)
        assert existing_tables(conn) == {"scans", "feedback"}
        conn.close()


class TestScans:

    def test_append_and_get(self, repo):
        stored = repo.append(make_record())

        assert stored.scan_id is not None
        loaded = repo.get(stored.scan_id)
        assert loaded == stored
        assert loaded.reason_code == ReasonCode.MODELS_AGREE_OVERRIDE
        assert loaded.metrics.flags == stored.metrics.flags
        assert loaded.created_at == T0

    def test_get_missing(self, repo):
        assert repo.get(999) is None

    def test_list_for_owner_in_creation_order(self, repo):
        repo.append(make_record(created_at=T0 + timedelta(minutes=5), human="late"))
        repo.append(make_record(created_at=T0, human="early"))
        repo.append(make_record(owner="u2"))
        repo.append(make_record(created_at=T0, human="early-second"))

        humans = [r.human.label for r in repo.list_for_owner("u1")]
        assert humans == ["early", "early-second", "late"]
        assert len(repo.list_for_owner("u2")) == 1
        assert repo.list_for_owner("nobody") == []

    def test_list_for_owner_orders_across_utc_offsets(self, repo):
        plus_five = timezone(timedelta(hours=5))
        repo.append(make_record(created_at=datetime(2024, 3, 1, 6, 0, tzinfo=timezone.utc), human="glass"))
        repo.append(make_record(created_at=datetime(2024, 3, 1, 10, 0, tzinfo=plus_five), human="paper"))

        listed = repo.list_for_owner("u1")
        assert [r.human.label for r in listed] == ["paper", "glass"]
        assert listed[0].created_at == datetime(2024, 3, 1, 5, 0, tzinfo=timezone.utc)
        assert listed[0].created_at.utcoffset() == timedelta(0)

    def test_naive_created_at_is_stored_as_utc(self, repo):
        stored = repo.append(make_record(created_at=datetime(2024, 3, 1, 12, 0)))
        loaded = repo.get(stored.scan_id)
        assert loaded.created_at == datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)

    def test_ambiguous_record_round_trips(self, repo):
        h, ma, mb = ClassificationInput(None), ClassificationInput("glass", 0.9), ClassificationInput("glass", 0.9)
        record = ScanRecord.from_result(decide(h, ma, mb), human=h, model_a=ma, model_b=mb, owner_id="u1")
        loaded = repo.get(repo.append(record).scan_id)

        assert loaded.final_label is None
        assert loaded.human.label is None
        assert loaded.reason_code == ReasonCode.AMBIGUOUS_ALL_DIFFER

    def test_bulk_append(self, repo):
        records = [make_record(created_at=T0 + timedelta(seconds=i)) for i in range(7)]

        assert repo.bulk_append(records, chunk_size=3) == 7
        assert repo.count("u1") == 7
        assert repo.count() == 7

    def test_closed_connection_raises_repository_error(self, tmp_path):
        r = SqliteScanRepository.open(str(tmp_path / "closed.sqlite"))
        r.close()
        with pytest.raises(RepositoryError) as exc:
            r.append(make_record())
        assert exc.value.context["repository_operation"] == "append"


class TestFeedback:

    def test_append_and_list(self, repo):
        scan = repo.append(make_record())
        fb = repo.append_feedback(FeedbackAnnotation(
            scan_id=scan.scan_id, was_correct=True, category="plastic", model_type="rexnet"))

        assert fb.feedback_id is not None
        assert fb.model_type is ModelSlot.MODEL_B
        listed = repo.list_feedback()
        assert len(listed) == 1
        assert listed[0].was_correct is True
        assert listed[0].category == "plastic"

    def test_list_by_owner(self, repo):
        s1 = repo.append(make_record(owner="u1"))
        s2 = repo.append(make_record(owner="u2"))
        for s in (s1, s2):
            repo.append_feedback(FeedbackAnnotation(
                scan_id=s.scan_id, was_correct=False, category="plastic", model_type=ModelSlot.MODEL_A))

        assert [f.scan_id for f in repo.list_feedback("u2")] == [s2.scan_id]
        assert len(repo.list_feedback()) == 2

    def test_unknown_scan_rejected(self, repo):
        with pytest.raises(RepositoryError):
            repo.append_feedback(FeedbackAnnotation(
                scan_id=42, was_correct=True, category="plastic", model_type=ModelSlot.MODEL_A))
        assert repo.list_feedback() == []
