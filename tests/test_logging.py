"""Tests for logging helpers."""

import logging
import time

import pytest

from repostruct.logging import ProgressBar, TimingContext, log_operation, logger, set_verbosity


@pytest.fixture
def restore_level():
    level = logger.level
    yield
    logger.setLevel(level)


class TestLogOperation:
    """Tests for timing metrics in log_operation."""

    def test_yields_timing_context(self):
        """log_operation should yield a TimingContext with elapsed time."""
        with log_operation("walk") as timing:
            time.sleep(0.01)

        assert isinstance(timing, TimingContext)
        assert timing.elapsed > 0
        assert timing.elapsed_ms >= 10

    def test_captures_exception_timing(self):
        """Timing is recorded even when the block raises."""
        with pytest.raises(ValueError):
            with log_operation("failing") as timing:
                time.sleep(0.01)
                raise ValueError("boom")

        assert timing.elapsed > 0

    def test_logs_start_and_completion(self, caplog):
        """Start and end messages carry the operation name and details."""
        caplog.set_level(logging.INFO, logger="repostruct")

        with log_operation("classify", {"root": "/repo"}):
            pass

        messages = [r.getMessage() for r in caplog.records]
        assert any("Starting classify root=/repo" in m for m in messages)
        assert any("Completed classify" in m for m in messages)

    def test_logs_failure(self, caplog):
        """Failures are logged at ERROR."""
        caplog.set_level(logging.INFO, logger="repostruct")

        with pytest.raises(OSError):
            with log_operation("fingerprint"):
                raise OSError("gone")

        assert any(r.levelno == logging.ERROR and "gone" in r.getMessage() for r in caplog.records)


class TestSetVerbosity:
    """Tests for set_verbosity function."""

    def test_levels(self, restore_level):
        """verbose enables DEBUG; quiet wins over verbose."""
        set_verbosity(verbose=1)
        assert logger.level == logging.DEBUG

        set_verbosity(verbose=2, quiet=True)
        assert logger.level == logging.WARNING

        set_verbosity()
        assert logger.level == logging.INFO


class TestProgressBar:
    """Tests for ProgressBar class."""

    def test_counts_updates(self):
        """Updates are counted whether or not a bar is displayed."""
        with ProgressBar(desc="Scanning", unit="dirs") as pbar:
            pbar.update(3)
            pbar.update()

        assert pbar.count == 4
