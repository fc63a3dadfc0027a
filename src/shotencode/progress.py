"""Progress and status reporting for multi-pass encodes."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

logger = logging.getLogger(__name__)


class JobStatus(Enum):
    RUNNING = "running"
    FINISHED = "finished"
    FAILED = "failed"


@dataclass(frozen=True)
class EncodeProgress:
    """One progress notification from the encode engine."""
    current_pass: int
    total_passes: int
    progress: float
    item_name: str


class StatusSink(Protocol):
    def update_status(
        self, percent: int, status: JobStatus, message: str | None = None,
    ) -> None:
        ...


class LoggingStatusSink:
    """Status sink that logs every update and remembers the last one."""

    def __init__(self):
        self.percent = 0
        self.status: JobStatus | None = None

    def update_status(
        self, percent: int, status: JobStatus, message: str | None = None,
    ) -> None:
        self.percent = percent
        self.status = status
        if message:
            logger.info("Status: %s %d%% (%s)", status.value, percent, message)
        else:
            logger.info("Status: %s %d%%", status.value, percent)


def overall_percent(current_pass: int, total_passes: int, pass_percent: float) -> int:
    """Fold a per-pass percentage into overall job completion.

    Uses truncating integer division throughout:
        (100 // total) * (current - 1) + int(pass_percent) // total

    e.g. pass 2 of 4 at 50% -> 25 + 12 = 37. For totals that do not
    divide 100 the result undershoots slightly near pass boundaries.
    """
    if total_passes < 1:
        raise ValueError(f"total_passes must be >= 1, got {total_passes}")
    if current_pass < 1:
        raise ValueError(f"current_pass must be >= 1, got {current_pass}")
    return (100 // total_passes) * (current_pass - 1) + int(pass_percent) // total_passes


class ProgressReporter:
    """Progress callback handed to the engine at submission time.

    Holds no mutable state, so concurrent callbacks only contend on the
    sink. Monotonicity is not enforced here.
    """

    def __init__(self, sink: StatusSink):
        self.sink = sink

    def __call__(self, event: EncodeProgress) -> int:
        percent = overall_percent(event.current_pass, event.total_passes, event.progress)
        logger.info(
            "Pass %d of %d on %s", event.current_pass, event.total_passes, event.item_name,
        )
        logger.info("Pass progress = %s; total progress = %d", event.progress, percent)
        self.sink.update_status(percent, JobStatus.RUNNING)
        return percent
