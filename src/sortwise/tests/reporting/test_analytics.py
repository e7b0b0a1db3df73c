from datetime import datetime, timezone

import pytest

from sortwise.reporting.analytics import (
    CALIBRATION_BINS,
    agreement_timeline,
    build_dashboard,
    cohen_kappa,
    confidence_calibration,
    disagreement_rate,
    per_category_accuracy,
    waste_composition,
)


def rec(human, a, b, final, ca=0.5, cb=0.5, created_at=None, points=None):
    d = {
        "human": human,
        "model_a": {"label": a, "confidence": ca},
        "model_b": {"label": b, "confidence": cb},
        "final_label": final,
    }
    if created_at is not None:
        d["created_at"] = created_at
    if points is not None:
        d["points"] = points
    return d


class TestCohenKappa:

    def test_perfect_agreement(self):
        records = [rec(x, x, "glass", x) for x in ["plastic", "plastic", "metal", "metal"]]
        assert cohen_kappa(records) == pytest.approx(1.0)

    def test_systematic_disagreement(self):
        records = [rec("plastic", "metal", "glass", "plastic"), rec("metal", "plastic", "glass", "metal")]
        assert cohen_kappa(records) == pytest.approx(-1.0)

    def test_degenerate_and_empty(self):
        assert cohen_kappa([rec("paper", "paper", "paper", "paper")]) == 0.0
        assert cohen_kappa([]) == 0.0


class TestDisagreementRate:

    def test_rate(self):
        records = [
            rec("paper", "plastic", "metal", "paper"),
            rec("paper", "plastic", "glass", "paper"),
            rec("paper", "paper", "metal", "paper"),
            rec("paper", None, "metal", "paper"),
        ]
        assert disagreement_rate(records) == pytest.approx(50.0)

    def test_empty(self):
        assert disagreement_rate([]) == 0.0


class TestCalibration:

    def test_binning(self):
        records = [
            rec("paper", "plastic", "metal", "paper", ca=0.1, cb=0.1),
            rec("paper", "paper", "paper", "paper", ca=0.9, cb=0.9),
            rec("paper", "paper", "metal", "paper", ca=0.2, cb=0.2),
            rec("paper", "paper", "paper", "paper", ca=1.0, cb=1.0),
        ]
        report = confidence_calibration(records)

        assert list(report.bins) == list(CALIBRATION_BINS)
        assert (report.bins["0-20"].correct, report.bins["0-20"].total) == (0, 1)
        assert (report.bins["20-40"].correct, report.bins["20-40"].total) == (1, 1)
        assert (report.bins["80-100"].correct, report.bins["80-100"].total) == (2, 2)
        assert report.bins["40-60"].accuracy is None
        assert report.calibration_error() == pytest.approx(0.5)

    def test_mean_confidence_is_rounded_before_binning(self):
        report = confidence_calibration([
            rec("paper", "paper", "paper", "paper", ca=0.197, cb=0.197),
            rec("paper", "paper", "paper", "paper", ca=0.194, cb=0.194),
            rec("paper", "paper", "paper", "paper", ca=0.796, cb=0.796),
        ])

        assert report.bins["0-20"].total == 1
        assert report.bins["20-40"].total == 1
        assert report.bins["60-80"].total == 0
        assert report.bins["80-100"].total == 1

    def test_empty(self):
        report = confidence_calibration([])
        assert all(b.total == 0 for b in report.bins.values())
        assert report.calibration_error() == 0.0


class TestPerCategory:

    def test_ordering_and_accuracy(self):
        records = [
            rec("glass", "glass", "glass", "glass"),
            rec("plastic", "plastic", "metal", "plastic"),
            rec("paper", "plastic", "plastic", "plastic"),
            rec("paper", "metal", "glass", None),
        ]
        rows = per_category_accuracy(records)

        assert [r.label for r in rows] == ["plastic", "glass"]
        assert rows[0].count == 2
        assert rows[0].human_accuracy == pytest.approx(50.0)
        assert rows[0].model_a_accuracy == pytest.approx(100.0)

    def test_limit(self):
        records = [rec(x, x, x, x) for x in "abcdefgh"]
        assert len(per_category_accuracy(records, limit=6)) == 6


class TestTimeline:

    def test_groups_by_day(self):
        records = [
            rec("paper", "paper", "metal", "paper", created_at="2024-03-01T09:00:00+00:00"),
            rec("paper", "metal", "metal", "metal", created_at="2024-03-01T18:30:00+00:00"),
            rec("glass", "glass", "glass", "glass", created_at=datetime(2024, 3, 3, 8, tzinfo=timezone.utc)),
            rec("glass", "glass", "glass", "glass", created_at="2024-03-02"),
            rec("glass", "glass", "glass", "glass", created_at="yesterday"),
            rec("glass", "glass", "glass", "glass"),
        ]
        points = agreement_timeline(records)

        assert [p.date for p in points] == ["2024-03-01", "2024-03-02", "2024-03-03"]
        first = points[0]
        assert first.total == 2
        assert first.human_accuracy == pytest.approx(50.0)
        assert first.model_a_accuracy == pytest.approx(100.0)
        assert first.model_b_accuracy == pytest.approx(50.0)

    def test_keeps_latest_days(self):
        records = [rec("a", "a", "a", "a", created_at=f"2024-01-{d:02d}") for d in range(1, 21)]
        points = agreement_timeline(records, days=14)

        assert len(points) == 14
        assert points[0].date == "2024-01-07"
        assert points[-1].date == "2024-01-20"


class TestComposition:

    def test_counts_and_points(self):
        records = [
            rec("a", "a", "a", "metal", points=5),
            rec("a", "a", "a", "glass"),
            rec("a", "a", "a", "glass"),
            rec("a", "a", "a", None),
        ]
        comp = waste_composition(records)

        assert comp.total_scans == 4
        assert comp.total_points == 35
        assert [(i["label"], i["count"]) for i in comp.items] == [("glass", 2), ("metal", 1)]
        assert comp.items[0]["percent"] == pytest.approx(50.0)


class TestDashboard:

    def test_bundle(self):
        records = [rec("glass", "glass", "glass", "glass", ca=0.9, cb=0.9, created_at="2024-03-01")]
        dash = build_dashboard(records)

        assert dash["summary"]["total_scans"] == 1
        assert dash["cohen_kappa"] == 0.0
        assert dash["calibration"]["bins"]["80-100"] == {"correct": 1, "total": 1}
        assert dash["per_category"][0]["label"] == "glass"
        assert dash["timeline"][0]["date"] == "2024-03-01"
        assert dash["composition"]["total_points"] == 10

    def test_empty(self):
        dash = build_dashboard([])
        assert dash["summary"]["has_data"] is False
        assert dash["timeline"] == []
