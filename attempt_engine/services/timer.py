import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.base import BaseScheduler

logger = logging.getLogger(__name__)


def format_seconds(seconds: int) -> str:
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def remaining_from_start(
    limit_seconds: int, start_time: Optional[datetime], now: datetime
) -> int:
    """Seconds left of ``limit_seconds`` counted from ``start_time``; naive times are UTC."""
    if start_time is None:
        return limit_seconds
    if start_time.tzinfo is None:
        start_time = start_time.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    elapsed = int((now - start_time).total_seconds())
    return max(0, limit_seconds - max(0, elapsed))


class CountdownTimer:
    """Per-session countdown.

    Each instance owns one interval job on the given scheduler, keyed by
    ``job_id``. ``on_expired`` is called exactly once, after which the job
    is removed. Without a scheduler the timer only moves when ``tick()`` is
    called.
    """

    def __init__(
        self,
        job_id: str,
        remaining_seconds: int,
        on_expired: Callable[[], None],
        scheduler: Optional[BaseScheduler] = None,
        tick_seconds: int = 1,
    ):
        self.job_id = job_id
        self.remaining_seconds = max(0, int(remaining_seconds))
        self._on_expired = on_expired
        self._scheduler = scheduler
        self._tick_seconds = tick_seconds
        self._scheduled = False
        self.expired = False
        self.cancelled = False

    @property
    def active(self) -> bool:
        return not (self.expired or self.cancelled)

    def start(self):
        if not self.active:
            return
        if self.remaining_seconds <= 0:
            self._expire()
            return
        if self._scheduler is not None and not self._scheduled:
            self._scheduler.add_job(
                self._run_tick,
                'interval',
                seconds=self._tick_seconds,
                id=self.job_id,
                name=f"Countdown {self.job_id}",
                replace_existing=True,
            )
            self._scheduled = True
            logger.debug(f"Countdown {self.job_id} started with {self.remaining_seconds}s")

    async def _run_tick(self):
        # async so the scheduler runs it on the event loop thread
        self.tick()

    def tick(self):
        if not self.active:
            return
        self.remaining_seconds = max(0, self.remaining_seconds - self._tick_seconds)
        if self.remaining_seconds == 0:
            self._expire()

    def _expire(self):
        self.expired = True
        self._remove_job()
        logger.info(f"Countdown {self.job_id} expired")
        self._on_expired()

    def cancel(self):
        if self.cancelled:
            return
        self.cancelled = True
        self._remove_job()

    def _remove_job(self):
        if self._scheduler is None or not self._scheduled:
            return
        self._scheduled = False
        try:
            self._scheduler.remove_job(self.job_id)
        except JobLookupError:
            logger.debug(f"Countdown job {self.job_id} already gone")

    def formatted(self) -> str:
        return format_seconds(self.remaining_seconds)
