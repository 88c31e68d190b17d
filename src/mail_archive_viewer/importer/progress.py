"""Import progress telemetry.

An import is measured in operations: one per folder-info write, one per
message and one per attachment blob.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

import structlog

logger = structlog.get_logger()


@dataclass(frozen=True)
class ImportProgress:
    """A single progress report."""

    percent: float
    ops_per_second: float
    completed: int
    total: int


ProgressSink = Callable[[ImportProgress], None]


def compute_progress(completed: int, total: int, elapsed_seconds: float) -> ImportProgress:
    """Turn raw counters into a progress report.

    Args:
        completed: Operations finished so far.
        total: Operations planned for the whole import.
        elapsed_seconds: Wall-clock time since the import started.

    Returns:
        ImportProgress: Percentage clamped to [0, 100] and throughput.
    """

    ops_per_second = completed / elapsed_seconds if elapsed_seconds > 0 else 0.0
    percent = (completed / total) * 100 if total > 0 else 0.0
    return ImportProgress(
        percent=min(max(percent, 0.0), 100.0),
        ops_per_second=ops_per_second,
        completed=completed,
        total=total,
    )


class ProgressTracker:
    """Counts completed operations and forwards reports to a sink.

    Safe to advance from several threads; reports reach the sink in the order
    their counts were taken, so completed counts never go backwards.
    """

    def __init__(
        self,
        total: int,
        sink: ProgressSink | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.total = total
        self.completed = 0
        self._sink = sink
        self._clock = clock
        self._started = clock()
        self._lock = threading.Lock()

    @property
    def elapsed(self) -> float:
        return self._clock() - self._started

    def advance(self, count: int = 1) -> None:
        """Record ``count`` finished operations and report."""

        with self._lock:
            self.completed += count
            if self._sink is None:
                return
            self._sink(compute_progress(self.completed, self.total, self.elapsed))

    def finish(self) -> None:
        """Emit the closing report, which is always exactly 100%."""

        with self._lock:
            if self._sink is None:
                return
            report = compute_progress(self.completed, self.total, self.elapsed)
            self._sink(
                ImportProgress(
                    percent=100.0,
                    ops_per_second=report.ops_per_second,
                    completed=max(self.completed, self.total),
                    total=self.total,
                )
            )
            logger.debug("import_progress_finished", completed=self.completed, total=self.total)
