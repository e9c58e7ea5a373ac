"""Periodic scheduling of the analysis jobs."""

import asyncio
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Set

logger = logging.getLogger(__name__)

JobRunner = Callable[[], Awaitable[bool]]


@dataclass
class ScheduledJob:
    """A named coroutine function run on a fixed interval."""

    name: str
    interval: float
    runner: JobRunner


class AnalysisScheduler:
    """Run each registered job on its own fixed-interval loop.

    Every tick launches a run without waiting for the previous one to end;
    the job runner is responsible for refusing to overlap with itself.
    Stopping only stops future ticks; runs already started are left to
    finish.
    """

    def __init__(self) -> None:
        self.running = False
        self._jobs: Dict[str, ScheduledJob] = {}
        self._loops: Dict[str, asyncio.Task] = {}
        self._runs: Set[asyncio.Task] = set()

    @property
    def jobs(self) -> Dict[str, ScheduledJob]:
        return dict(self._jobs)

    def add_job(self, name: str, interval: float, runner: JobRunner) -> None:
        """Register a job; must be called before :meth:`start`."""
        if interval <= 0:
            raise ValueError(f"Interval for {name} must be positive, got {interval}")
        if name in self._jobs:
            raise ValueError(f"Job {name} is already scheduled")
        self._jobs[name] = ScheduledJob(name=name, interval=interval, runner=runner)

    async def start(self) -> None:
        """Start one loop task per registered job."""
        if self.running:
            logger.warning("Scheduler is already running")
            return

        self.running = True
        for job in self._jobs.values():
            self._loops[job.name] = asyncio.create_task(
                self._run_loop(job), name=f"journeynav-{job.name}"
            )
        logger.info(f"Analysis scheduler started with {len(self._jobs)} jobs")

    async def stop(self) -> None:
        """Stop scheduling further ticks."""
        self.running = False
        loops = list(self._loops.values())
        self._loops.clear()
        for task in loops:
            task.cancel()
        for task in loops:
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.info("Analysis scheduler stopped")

    async def _run_loop(self, job: ScheduledJob) -> None:
        while self.running:
            try:
                await asyncio.sleep(job.interval)
                self._launch(job)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Error in scheduler loop for {job.name}: {e}")

    def _launch(self, job: ScheduledJob) -> asyncio.Task:
        task = asyncio.create_task(self._run_once(job))
        self._runs.add(task)
        task.add_done_callback(self._runs.discard)
        return task

    async def _run_once(self, job: ScheduledJob) -> None:
        try:
            completed = await job.runner()
            if not completed:
                logger.debug(f"Scheduled run of {job.name} did not complete")
        except Exception:
            logger.exception(f"Scheduled run of {job.name} raised")


class JobTracker:
    """In-flight flags and last-completion time for the analysis jobs.

    Each job name gets its own lock, acquired without blocking, so a second
    run of the same job is refused while different jobs may run together.
    """

    def __init__(self, started_at: datetime) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        self._last_completed_at = started_at

    def _lock_for(self, name: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(name, threading.Lock())

    def try_begin(self, name: str) -> bool:
        """Mark ``name`` as running; False if a run is already in flight."""
        return self._lock_for(name).acquire(blocking=False)

    def finish(self, name: str, completed_at: Optional[datetime] = None) -> None:
        """Clear the in-flight flag; record completion when ``completed_at`` is set."""
        if completed_at is not None:
            with self._guard:
                self._last_completed_at = max(self._last_completed_at, completed_at)
        self._lock_for(name).release()

    def running_jobs(self) -> List[str]:
        with self._guard:
            return sorted(name for name, lock in self._locks.items() if lock.locked())

    @property
    def last_completed_at(self) -> datetime:
        with self._guard:
            return self._last_completed_at
