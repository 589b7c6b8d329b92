"""Logging for repostruct.

Everything goes to stderr; stdout carries only the JSON or summary output.
The directory walk reports progress through tqdm when stderr is a terminal.
"""

import logging
import os
import sys
import time
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from tqdm import tqdm

# Set REPOSTRUCT_DISABLE_PROGRESS=1 to silence progress bars on a TTY as well
_DISABLE_PROGRESS = (
    os.getenv("REPOSTRUCT_DISABLE_PROGRESS", "").lower() in ("1", "true", "yes")
    or not sys.stderr.isatty()
)

logger = logging.getLogger("repostruct")
logger.setLevel(logging.INFO)

if not logger.handlers:
    _handler = logging.StreamHandler(sys.stderr)
    _handler.setFormatter(
        logging.Formatter("[repostruct] %(asctime)s %(levelname)s: %(message)s", datefmt="%H:%M:%S")
    )
    logger.addHandler(_handler)


def set_verbosity(verbose: int = 0, quiet: bool = False) -> None:
    """Adjust the package logger for command-line use.

    Args:
        verbose: 0 keeps INFO, anything higher enables DEBUG.
        quiet: Only warnings and errors are shown. Wins over ``verbose``.
    """
    if quiet:
        logger.setLevel(logging.WARNING)
    elif verbose > 0:
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)


class TimingContext:
    """Elapsed time of a logged operation, filled in when the block exits."""

    def __init__(self) -> None:
        self.elapsed = 0.0
        self._start = time.perf_counter()

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed * 1000

    def stop(self) -> None:
        self.elapsed = time.perf_counter() - self._start


@contextmanager
def log_operation(
    operation: str,
    details: dict[str, Any] | None = None,
) -> Generator[TimingContext, None, None]:
    """Log the start, end and duration of a pipeline stage.

    Failures are logged at ERROR with the elapsed time and re-raised.

    Example:
        with log_operation("fingerprint", {"root": "/path/to/repo"}) as timing:
            fingerprint = build_fingerprint(root)
        logger.debug("walk took %.1fms", timing.elapsed_ms)
    """
    suffix = "".join(f" {k}={v}" for k, v in (details or {}).items())
    logger.info("▶ Starting %s%s", operation, suffix)

    timing = TimingContext()
    try:
        yield timing
    except Exception as e:
        timing.stop()
        logger.error("✗ %s failed after %.2fs: %s", operation, timing.elapsed, e)
        raise
    timing.stop()
    logger.info("✓ Completed %s in %.2fs", operation, timing.elapsed)


class ProgressBar:
    """Manually advanced progress bar for walks whose size is not known upfront.

    Falls back to a single DEBUG line on exit when progress display is off.
    """

    def __init__(self, total: int | None = None, desc: str = "Progress", unit: str = "it"):
        self.total = total
        self.desc = desc
        self.unit = unit
        self.count = 0
        self._bar: tqdm | None = None
        self._start = 0.0

    def __enter__(self) -> "ProgressBar":
        self._start = time.perf_counter()
        if not _DISABLE_PROGRESS:
            self._bar = tqdm(
                total=self.total, desc=f"  {self.desc}", unit=self.unit, file=sys.stderr, ncols=80, leave=False
            )
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if self._bar is not None:
            self._bar.close()
            return
        logger.debug(
            "  %s: %d %s in %.2fs", self.desc, self.count, self.unit, time.perf_counter() - self._start
        )

    def update(self, n: int = 1) -> None:
        self.count += n
        if self._bar is not None:
            self._bar.update(n)
