import logging

import pytest

from sortwise.utils.itertools import chunked
from sortwise.utils.logging import setup_logging
from sortwise.utils.timing import section_timer, timeit


class TestChunked:

    def test_even_and_remainder(self):
        assert list(chunked(range(7), 3)) == [[0, 1, 2], [3, 4, 5], [6]]

    def test_empty(self):
        assert list(chunked([], 3)) == []

    def test_generator_input(self):
        assert list(chunked((x for x in "abcd"), 2)) == [["a", "b"], ["c", "d"]]

    def test_bad_size(self):
        with pytest.raises(ValueError):
            list(chunked([1], 0))


class TestTiming:

    def test_section_timer_logs(self, monkeypatch):
        logger = logging.getLogger("sortwise.tests.timing")
        calls = []
        monkeypatch.setattr(logger, "info", lambda *a: calls.append(a))

        with section_timer("block", logger):
            pass

        assert calls[0][1] == "block"

    def test_timeit_returns_and_logs(self, monkeypatch):
        logger = logging.getLogger("sortwise.tests.timeit")
        calls = []
        monkeypatch.setattr(logger, "info", lambda *a: calls.append(a))

        @timeit(logger)
        def add(a, b):
            return a + b

        assert add(2, 3) == 5
        assert "add" in calls[0][1]


class TestSetupLogging:

    @pytest.fixture(autouse=True)
    def drop_handlers(self):
        yield
        for name in ("sortwise", "sortwise.summary"):
            logger = logging.getLogger(name)
            for h in list(logger.handlers):
                logger.removeHandler(h)
                h.close()

    def test_file_and_summary(self, tmp_path):
        logger, summary = setup_logging(log_dir=str(tmp_path), console=False, level="DEBUG")

        assert logger.name == "sortwise"
        assert summary.name == "sortwise.summary"
        assert logger.propagate is False
        summary.info("hello summary")
        for h in summary.handlers:
            h.flush()
        files = list(tmp_path.glob("sortwise_*.log"))
        assert len(files) == 1
        assert "hello summary" in files[0].read_text(encoding="utf-8")

    def test_console_only(self):
        logger, summary = setup_logging(log_dir=None, console=True, level="WARNING")

        assert logger.level == logging.WARNING
        assert any(isinstance(h, logging.StreamHandler) for h in logger.handlers)
        assert not any(isinstance(h, logging.FileHandler) for h in logger.handlers)

    def test_quiet_console(self):
        logger, summary = setup_logging(log_dir=None, console=True, quiet_console=True)

        assert logger.handlers == []
        assert [h.level for h in summary.handlers] == [logging.ERROR]
