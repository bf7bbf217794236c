"""Periodic and on-demand refresh of route snapshots."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

import httpx

from ...errors import FleetError, TransientNetworkError
from ...models.domain import Route
from ...notices import NoticeBoard

RouteFetcher = Callable[[], Awaitable[list[Route]]]
SnapshotHandler = Callable[[list[Route]], None]

logger = logging.getLogger(__name__)


class RouteSyncScheduler:
    """Fetch-and-replace loop bound to the lifetime of one view.

    ``activate`` fetches immediately and, when an interval is configured,
    keeps fetching on that interval until ``deactivate``. Overlapping fetches
    are neither coalesced nor cancelled; whichever finishes last wins, since
    every fetch replaces the whole snapshot. A failed fetch keeps the last
    good snapshot and only posts a notice.
    """

    def __init__(
        self,
        fetch: RouteFetcher,
        on_snapshot: SnapshotHandler,
        notices: NoticeBoard,
        interval_seconds: float | None = None,
        name: str = "routes",
    ) -> None:
        if interval_seconds is not None and interval_seconds <= 0:
            raise ValueError("Refresh interval must be positive.")
        self._fetch = fetch
        self._on_snapshot = on_snapshot
        self.notices = notices
        self.interval_seconds = interval_seconds
        self.name = name
        self._task: Optional[asyncio.Task] = None
        self._in_flight: set[asyncio.Task] = set()
        self._active = False
        self.fetch_count = 0
        self.last_refreshed_at: Optional[datetime] = None
        self.last_error: Optional[FleetError] = None

    @property
    def active(self) -> bool:
        return self._active

    @property
    def polling(self) -> bool:
        return self._task is not None and not self._task.done()

    async def activate(self) -> None:
        if self._active:
            return
        self._active = True
        logger.info(f"Activating {self.name} sync (interval={self.interval_seconds})")
        await self.refresh()
        if self.interval_seconds is not None and self._active:
            self._task = asyncio.create_task(self._poll(), name=f"{self.name}-sync")

    async def deactivate(self) -> None:
        """Stop the timer. A fetch already in flight runs to completion, but its snapshot is dropped."""
        self._active = False
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info(f"Deactivated {self.name} sync")

    async def _poll(self) -> None:
        while self._active:
            await asyncio.sleep(self.interval_seconds)
            if not self._active:
                break
            logger.debug(f"{self.name} sync tick")
            # Cancelling the timer must not abort a request already on the wire.
            fetch = asyncio.ensure_future(self.refresh())
            self._in_flight.add(fetch)
            fetch.add_done_callback(self._in_flight.discard)
            await asyncio.shield(fetch)

    async def refresh(self) -> bool:
        """Fetch once and replace the snapshot. Returns False when the fetch failed."""
        try:
            routes = await self._fetch()
        except FleetError as exc:
            self._report(exc)
            return False
        except httpx.HTTPError as exc:
            self._report(TransientNetworkError(str(exc)))
            return False

        if not self._active:
            logger.debug(f"Dropping {self.name} snapshot that arrived after teardown")
            return False
        self.fetch_count += 1
        self.last_refreshed_at = datetime.now(timezone.utc)
        self.last_error = None
        self._on_snapshot(routes)
        return True

    def _report(self, error: FleetError) -> None:
        self.last_error = error
        logger.warning(f"Refreshing {self.name} failed: {error.code} {error.message}")
        if self._active:
            self.notices.error(f"Could not refresh {self.name}: {error.message}")
