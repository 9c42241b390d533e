"""Tests for snapshot publishing."""

import asyncio
from datetime import UTC, datetime

from calorie_tracker.domain.snapshot import CalorieSnapshot
from calorie_tracker.services.publisher import SnapshotPublisher
from tests.conftest import FakeDisplayRefreshClient, InMemorySharedStateRepository


def _snapshot() -> CalorieSnapshot:
    return CalorieSnapshot(
        remaining_calories=1500,
        total_calories=2000,
        consumed_calories=500,
        last_updated=datetime.now(tz=UTC),
    )


class _FailingSharedState(InMemorySharedStateRepository):
    def write_snapshot(self, snapshot: CalorieSnapshot) -> None:
        raise OSError("shared storage unavailable")


class _FailingRefresher(FakeDisplayRefreshClient):
    async def request_refresh(self) -> None:
        raise RuntimeError("display offline")


def test_publish_writes_before_refresh() -> None:
    events: list[str] = []
    publisher = SnapshotPublisher(
        shared_state=InMemorySharedStateRepository(events=events),
        refresher=FakeDisplayRefreshClient(events=events),
        refresh_delay_seconds=0.01,
    )

    async def scenario() -> None:
        await publisher.publish(_snapshot())
        assert events == ["write"]
        await publisher.wait_for_refreshes()

    asyncio.run(scenario())

    assert events == ["write", "refresh"]
    assert publisher.latest() is not None


def test_failed_write_skips_refresh() -> None:
    refresher = FakeDisplayRefreshClient()
    publisher = SnapshotPublisher(
        shared_state=_FailingSharedState(), refresher=refresher
    )

    async def scenario() -> None:
        await publisher.publish(_snapshot())
        await publisher.wait_for_refreshes()

    asyncio.run(scenario())

    assert refresher.refreshes == 0


def test_failed_refresh_is_swallowed() -> None:
    shared_state = InMemorySharedStateRepository()
    publisher = SnapshotPublisher(
        shared_state=shared_state,
        refresher=_FailingRefresher(),
        refresh_delay_seconds=0,
    )

    async def scenario() -> None:
        await publisher.publish(_snapshot())
        await publisher.wait_for_refreshes()

    asyncio.run(scenario())

    assert len(shared_state.snapshots) == 1
