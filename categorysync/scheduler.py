# categorysync/scheduler.py
"""
Sync Scheduler for the category list

Keeps a list view fresh without user action. Four triggers each start an
independent full refresh:

- MOUNT: once, when the scheduler starts
- FOREGROUND: lifecycle goes from background/inactive to active
- INTERVAL: fixed period while running (APScheduler interval job on the
  caller's event loop)
- MANUAL: pull-to-refresh

Refreshes are not coalesced; two triggers close together mean two fetches in
flight, and whichever resolves last wins. stop() releases the lifecycle
subscription and the timer. In-flight fetches are not cancelled; the view
discards results that arrive after it was torn down.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional, Set

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .lifecycle import AppState, AppStateSignal, Subscription

logger = logging.getLogger(__name__)


class RefreshTrigger(str, Enum):
    MOUNT = "mount"
    FOREGROUND = "foreground"
    INTERVAL = "interval"
    MANUAL = "manual"

    @property
    def is_silent(self) -> bool:
        """Background refreshes whose failures are only logged."""
        return self in (RefreshTrigger.FOREGROUND, RefreshTrigger.INTERVAL)


RefreshCallback = Callable[[RefreshTrigger], Awaitable[None]]


class SyncScheduler:
    """Drives mount, foreground, interval and manual refreshes."""

    def __init__(
        self,
        refresh: RefreshCallback,
        app_state: AppStateSignal,
        interval: float = 5.0,
    ):
        if interval <= 0:
            raise ValueError("Refresh interval must be positive")
        self._refresh = refresh
        self._app_state = app_state
        self.interval = interval

        self._running = False
        self._last_state: AppState = app_state.current
        self._subscription: Optional[Subscription] = None
        self._timer: Optional[AsyncIOScheduler] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._running

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def start(self) -> None:
        """Start all triggers. Must be called from a running event loop."""
        if self._running:
            return
        loop = asyncio.get_running_loop()
        self._running = True
        self._last_state = self._app_state.current
        self._subscription = self._app_state.add_listener(self._on_app_state)

        self._timer = AsyncIOScheduler(
            event_loop=loop,
            job_defaults={
                "coalesce": False,
                "max_instances": 1,
                "misfire_grace_time": max(1, int(self.interval)),
            },
        )
        self._timer.add_job(
            self._on_interval,
            IntervalTrigger(seconds=self.interval),
            id="category_refresh",
            name="Periodic category refresh",
            replace_existing=True,
        )
        self._timer.start()
        logger.info(f"Sync scheduler started (interval={self.interval}s)")

        self.trigger(RefreshTrigger.MOUNT)

    def stop(self) -> None:
        """Release the timer and lifecycle subscription."""
        if not self._running:
            return
        self._running = False
        if self._subscription is not None:
            self._subscription.remove()
            self._subscription = None
        if self._timer is not None:
            self._timer.shutdown(wait=False)
            self._timer = None
        logger.info("Sync scheduler stopped")

    def trigger(self, trigger: RefreshTrigger) -> Optional[asyncio.Task]:
        """Start one refresh; returns its task, or None when stopped."""
        if not self._running:
            logger.debug(f"Ignoring {trigger.value} refresh, scheduler stopped")
            return None
        task = asyncio.ensure_future(self._run(trigger))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait for every refresh currently in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def _run(self, trigger: RefreshTrigger) -> None:
        logger.debug(f"Refresh triggered by {trigger.value}")
        try:
            await self._refresh(trigger)
        except Exception as e:
            logger.error(f"Refresh ({trigger.value}) failed: {e}")

    async def _on_interval(self) -> None:
        # Coroutine job so APScheduler runs it on the loop, not a worker thread.
        self.trigger(RefreshTrigger.INTERVAL)

    def _on_app_state(self, state: AppState) -> None:
        previous, self._last_state = self._last_state, state
        if not self._running:
            return
        if previous in (AppState.BACKGROUND, AppState.INACTIVE) and state == AppState.ACTIVE:
            logger.info("App has come to the foreground, refreshing categories")
            self.trigger(RefreshTrigger.FOREGROUND)
