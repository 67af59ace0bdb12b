"""Interval scheduler for periodic jobs.

Jobs are plain callables with an interval. ``run_pending`` does one pass and
can be driven directly from tests with a fake clock; ``start`` runs the same
pass on a background thread until ``stop`` is called.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class PeriodicJob:
    name: str
    func: Callable[[], object]
    interval: float
    next_run_at: float
    run_count: int = 0


class Scheduler:
    """Runs registered jobs at fixed intervals, one at a time."""

    def __init__(self, clock: Callable[[], float] = time.monotonic, tick: float = 1.0):
        self.clock = clock
        self.tick = tick
        self._jobs: dict[str, PeriodicJob] = {}
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def jobs(self) -> list[PeriodicJob]:
        return list(self._jobs.values())

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def add_job(
        self,
        name: str,
        func: Callable[[], object],
        interval: float,
        run_immediately: bool = True,
    ) -> PeriodicJob:
        """Register a job. It runs on the next pass unless ``run_immediately`` is False."""
        if interval <= 0:
            raise ValueError(f"Job interval must be positive, got {interval}")
        if name in self._jobs:
            raise ValueError(f"Job '{name}' is already registered")

        now = self.clock()
        job = PeriodicJob(
            name=name,
            func=func,
            interval=interval,
            next_run_at=now if run_immediately else now + interval,
        )
        self._jobs[name] = job
        return job

    def remove_job(self, name: str) -> None:
        self._jobs.pop(name, None)

    def run_pending(self, now: float | None = None) -> list[str]:
        """Run every job whose deadline has passed. Returns the names that ran."""
        ran = []
        with self._lock:
            for job in list(self._jobs.values()):
                current = self.clock() if now is None else now
                if current < job.next_run_at:
                    continue
                try:
                    job.func()
                except Exception as e:
                    logger.error(f"Scheduled job '{job.name}' failed: {e}", exc_info=True)
                job.run_count += 1
                job.next_run_at = current + job.interval
                ran.append(job.name)
        return ran

    def start(self) -> None:
        """Start the background loop."""
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="scheduler", daemon=True)
        self._thread.start()
        logger.info(f"Scheduler started with jobs: {', '.join(self._jobs) or '(none)'}")

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop the background loop and wait for the current pass to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
            logger.info("Scheduler stopped")

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            self.run_pending()
            self._stop_event.wait(self.tick)
