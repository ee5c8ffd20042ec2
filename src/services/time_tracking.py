"""Elapsed-time and progress computation for running tasks.

``compute_progress`` is a pure function of the start time, the sampled
current time and the estimate. ``TaskTimer`` re-samples it once per tick and
hands each snapshot to a callback until it is stopped; it never completes the
task on its own.
"""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from src.core.config import constants
from src.models.service_models import TimerProgress


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[TimerProgress], Awaitable[None] | None]


def _as_aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def format_elapsed(seconds: int) -> str:
    """Format seconds as M:SS, or H:MM:SS once an hour has passed."""
    hours, remainder = divmod(max(seconds, 0), 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def compute_progress(
    *,
    actual_start_time: datetime,
    current_time: datetime,
    estimated_minutes: int,
) -> TimerProgress:
    """Compute elapsed time and progress against the estimate.

    progress_percent is capped at 100 for display; raw_ratio keeps the
    uncapped value so overruns can be flagged.

    Args:
        actual_start_time: When work on the task started
        current_time: The sampled wall-clock time
        estimated_minutes: Positive estimate for the task

    Returns:
        TimerProgress snapshot

    Raises:
        ValueError: If estimated_minutes is not positive
    """
    if estimated_minutes <= 0:
        msg = f"estimated_minutes must be positive, got {estimated_minutes}"
        raise ValueError(msg)

    elapsed = _as_aware(current_time) - _as_aware(actual_start_time)
    elapsed_seconds = max(int(elapsed.total_seconds()), 0)
    elapsed_minutes = elapsed_seconds // 60
    raw_ratio = elapsed_minutes / estimated_minutes

    return TimerProgress(
        elapsed_seconds=elapsed_seconds,
        elapsed_minutes=elapsed_minutes,
        estimated_minutes=estimated_minutes,
        progress_percent=min(raw_ratio * 100, 100.0),
        raw_ratio=raw_ratio,
        is_overrun=elapsed_minutes > estimated_minutes,
        over_minutes=max(elapsed_minutes - estimated_minutes, 0),
        display=format_elapsed(elapsed_seconds),
    )


class TaskTimer:
    """Scheduled recomputation of a task's progress with an explicit stop handle.

    Usage:
        timer = TaskTimer(actual_start_time=start, estimated_minutes=30, on_tick=render)
        timer.start()
        ...
        await timer.stop()
    """

    def __init__(
        self,
        *,
        actual_start_time: datetime,
        estimated_minutes: int,
        on_tick: ProgressCallback,
        interval_seconds: float = constants.TIMER_TICK_SECONDS,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._actual_start_time = actual_start_time
        self._estimated_minutes = estimated_minutes
        self._on_tick = on_tick
        self._interval_seconds = interval_seconds
        self._clock = clock
        self._task: asyncio.Task[None] | None = None
        self.last_progress: TimerProgress | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sample(self) -> TimerProgress:
        """Compute progress for the current clock reading."""
        self.last_progress = compute_progress(
            actual_start_time=self._actual_start_time,
            current_time=self._clock(),
            estimated_minutes=self._estimated_minutes,
        )
        return self.last_progress

    async def _run(self) -> None:
        while True:
            # A failing callback skips one tick; the timer keeps running
            try:
                result = self._on_tick(self.sample())
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                logger.exception("Task timer callback failed")
            await asyncio.sleep(self._interval_seconds)

    def start(self) -> None:
        """Begin ticking; calling start on a running timer is a no-op."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run())
        logger.debug("Task timer started", extra={"interval_seconds": self._interval_seconds})

    async def stop(self) -> None:
        """Stop ticking and wait for the loop to exit."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.debug("Task timer stopped")
