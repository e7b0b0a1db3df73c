import pytest

from sortwise import ClassificationInput, ScanRecord, decide, summarize
from sortwise.reporting.aggregate import (
    StatisticsReport,
    TrendPoint,
    cumulative_accuracy_trend,
    top_labels,
)


def scan(human, a, ca, b, cb, owner="u1"):
    h, ma, mb = ClassificationInput(human), ClassificationInput(a, ca), ClassificationInput(b, cb)
    return ScanRecord.from_result(decide(h, ma, mb), human=h, model_a=ma, model_b=mb, owner_id=owner)


def stored(human, a, ca, b, cb, final):
    return {
        "human": human,
        "model_a": {"label": a, "confidence": ca},
        "model_b": {"label": b, "confidence": cb},
        "final_label": final,
    }


class TestSummarize:

    def test_empty_population(self):
        report = summarize([])

        assert report == StatisticsReport()
        assert report.has_data is False
        assert report.human_accuracy == 0.0
        assert report.top_human == []
        assert report.agreement_percentages()["all_three"] == 0.0

    def test_none_population(self):
        assert summarize(None).total_scans == 0

    def test_unanimous_population(self):
        records = [scan("plastic", "plastic", 0.8, "plastic", 0.9) for _ in range(3)]
        report = summarize(records)

        assert report.total_scans == 3
        assert report.human_accuracy == pytest.approx(100.0)
        assert report.model_a_accuracy == pytest.approx(100.0)
        assert report.model_b_accuracy == pytest.approx(100.0)
        assert report.agreement.all_three == 3
        assert report.model_a_avg_confidence == pytest.approx(80.0)
        assert report.model_b_avg_confidence == pytest.approx(90.0)
        assert [(x.label, x.count) for x in report.top_human] == [("plastic", 3)]

    def test_mixed_population(self):
        records = [
            stored("paper", "plastic", 0.92, "plastic", 0.95, "plastic"),
            stored("glass", "glass", 0.9, "plastic", 0.6, "glass"),
            stored("paper", "plastic", 0.3, "metal", 0.9, "metal"),
            stored("metal", "metal", 0.5, "metal", 0.5, "metal"),
        ]
        report = summarize(records)

        assert report.total_scans == 4
        assert report.agreement.human_model_a == 2
        assert report.agreement.human_model_b == 1
        assert report.agreement.model_a_model_b == 2
        assert report.agreement.all_three == 1
        assert report.agreement.human_ensemble == 2
        assert report.model_a_correct == 3
        assert report.model_b_correct == 3
        assert report.human_accuracy == pytest.approx(50.0)
        assert report.model_a_accuracy == pytest.approx(75.0)
        assert report.model_a_avg_confidence == pytest.approx((0.92 + 0.9 + 0.3 + 0.5) / 4 * 100)
        assert [p.correct for p in report.accuracy_trend] == [0, 1, 0, 1]
        assert report.human_label_counts == {"paper": 2, "glass": 1, "metal": 1}

    def test_missing_labels_never_match(self):
        records = [
            {"human": None, "model_a": None, "model_b": None, "final_label": None},
            {"human": "", "model_a": {"label": ""}, "model_b": {"label": ""}, "final_label": ""},
        ]
        report = summarize(records)

        assert report.total_scans == 2
        assert report.agreement.human_model_a == 0
        assert report.agreement.all_three == 0
        assert report.human_label_counts == {}
        assert report.model_a_avg_confidence == 0.0

    def test_legacy_flat_records(self):
        records = [{
            "userSelection": "glass",
            "aiModel1Prediction": "glass",
            "aiModel1Confidence": 0.6,
            "aiModel2Prediction": "plastic",
            "aiModel2Confidence": "0.4",
            "finalSelection": "glass",
        }]
        report = summarize(records)

        assert report.agreement.human_model_a == 1
        assert report.human_accuracy == pytest.approx(100.0)
        assert report.model_b_avg_confidence == pytest.approx(40.0)

    def test_malformed_records_are_tolerated(self):
        report = summarize(["not a record", 17, {"model_a": {"label": "x", "confidence": "high"}}])

        assert report.total_scans == 3
        assert report.model_a_label_counts == {"x": 1}
        assert report.model_a_avg_confidence == 0.0

    def test_to_dict(self):
        d = summarize([scan("metal", "metal", 0.7, "metal", 0.7)]).to_dict()

        assert d["has_data"] is True
        assert d["agreement"]["all_three"] == 1
        assert d["agreement_percentages"]["all_three"] == pytest.approx(100.0)
        assert d["top_model_b"] == [{"label": "metal", "count": 1}]


class TestTopLabels:

    def test_ties_keep_first_seen_order(self):
        counts = {"metal": 2, "glass": 3, "paper": 2, "plastic": 1, "battery": 2, "organic": 1}
        ranked = top_labels(counts, 5)

        assert [x.label for x in ranked] == ["glass", "metal", "paper", "battery", "plastic"]

    def test_top_k_via_summarize(self):
        records = [stored(label, label, 0.5, label, 0.5, label)
                   for label in ["a", "b", "c", "d", "e", "f", "f"]]
        report = summarize(records, top_k=5)

        assert [x.label for x in report.top_human] == ["f", "a", "b", "c", "d"]


class TestCumulativeTrend:

    def test_running_percentages(self):
        trend = [TrendPoint(0, 1), TrendPoint(1, 0), TrendPoint(2, 1), TrendPoint(3, 1)]
        assert cumulative_accuracy_trend(trend) == pytest.approx([100.0, 50.0, 200 / 3, 75.0])

    def test_accepts_report(self):
        report = summarize([scan("metal", "metal", 0.7, "metal", 0.7)])
        assert cumulative_accuracy_trend(report) == [100.0]

    def test_empty(self):
        assert cumulative_accuracy_trend([]) == []
