"""Publishing of advisory calorie snapshots to the display surface."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol

from calorie_tracker.domain.snapshot import CalorieSnapshot

logger = logging.getLogger(__name__)


class SharedStateRepository(Protocol):
    """Key-value store shared with the display process."""

    def write_snapshot(self, snapshot: CalorieSnapshot) -> None:
        """Replace the stored snapshot."""

    def read_snapshot(self) -> CalorieSnapshot | None:
        """Return the last stored snapshot, if any."""


class DisplayRefreshClient(Protocol):
    """Signals the display surface to re-render from shared state."""

    async def request_refresh(self) -> None:
        """Ask the display surface to reload."""


@dataclass
class SnapshotPublisher:
    """Writes snapshots, then signals a display refresh after a short delay."""

    shared_state: SharedStateRepository
    refresher: DisplayRefreshClient
    refresh_delay_seconds: float = 0.1
    _pending: set[asyncio.Task[None]] = field(
        default_factory=set, init=False, repr=False
    )

    async def publish(self, snapshot: CalorieSnapshot) -> None:
        """Store the snapshot and schedule a refresh once the write is done."""
        try:
            self.shared_state.write_snapshot(snapshot)
        except Exception:
            logger.exception("Failed to write calorie snapshot")
            return
        task = asyncio.create_task(self._refresh_later())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def latest(self) -> CalorieSnapshot | None:
        return self.shared_state.read_snapshot()

    async def wait_for_refreshes(self) -> None:
        """Wait for scheduled refresh signals to finish."""
        if self._pending:
            await asyncio.gather(*self._pending)

    async def _refresh_later(self) -> None:
        await asyncio.sleep(self.refresh_delay_seconds)
        try:
            await self.refresher.request_refresh()
        except Exception:
            logger.warning("Display refresh failed", exc_info=True)
