"""Daily calorie accounting over a configurable day window."""

import asyncio
import dataclasses
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo

from calorie_tracker.domain.entries import DailySummary, FoodEntry
from calorie_tracker.domain.settings import Provider, UserSettings
from calorie_tracker.domain.snapshot import CalorieSnapshot
from calorie_tracker.services.publisher import SnapshotPublisher

logger = logging.getLogger(__name__)

HOURS_PER_DAY = 24


class FoodEntryRepository(Protocol):
    """Persistence interface for food entries."""

    def create_entry(self, entry: FoodEntry) -> None:
        """Insert a new entry."""

    def get_entry(self, entry_id: UUID) -> FoodEntry | None:
        """Return an entry by id."""

    def list_entries_since(self, start: datetime) -> list[FoodEntry]:
        """Return entries logged at or after start, newest first."""

    def update_entry(self, entry: FoodEntry) -> None:
        """Persist servings and calories for an existing entry."""

    def delete_entry(self, entry_id: UUID) -> None:
        """Remove an entry."""

    def get_entry_image(self, entry_id: UUID) -> bytes | None:
        """Return the stored photo for an entry."""


class UserSettingsRepository(Protocol):
    """Persistence interface for the settings record."""

    def get_settings(self) -> UserSettings | None:
        """Return the stored settings, if any."""

    def save_settings(self, settings: UserSettings) -> None:
        """Insert or replace the settings record."""


def day_window_start(now: datetime, reset_hour: int) -> datetime:
    """Return the start of the day window containing now.

    The window opens at reset_hour on now's calendar date; before that hour
    the previous day's window is still active, so activity between midnight
    and the reset hour counts toward the day before.
    """
    if not 0 <= reset_hour < HOURS_PER_DAY:
        raise ValueError(f"reset hour must be in [0, 23], got {reset_hour}")
    today_reset = now.replace(hour=reset_hour, minute=0, second=0, microsecond=0)
    if now < today_reset:
        return today_reset - timedelta(days=1)
    return today_reset


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class CalorieAccountingService:
    """Tracks logged entries against the daily calorie target."""

    entry_repository: FoodEntryRepository
    settings_repository: UserSettingsRepository
    publisher: SnapshotPublisher
    timezone_name: str = "UTC"
    clock: Callable[[], datetime] = _utc_now
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    def get_settings(self) -> UserSettings:
        """Return the settings record, creating the defaults on first access."""
        settings = self.settings_repository.get_settings()
        if settings is None:
            settings = UserSettings()
            self.settings_repository.save_settings(settings)
            logger.info("Created default settings")
        return settings

    def current_window_start(self, settings: UserSettings | None = None) -> datetime:
        """Return the start of the active day window in the local timezone."""
        if settings is None:
            settings = self.get_settings()
        now = self.clock().astimezone(ZoneInfo(self.timezone_name))
        return day_window_start(now, settings.day_reset_hour)

    def today_entries(self) -> list[FoodEntry]:
        """Return entries in the active day window, newest first."""
        return self._entries_since(self.current_window_start())

    def _entries_since(self, window_start: datetime) -> list[FoodEntry]:
        entries = self.entry_repository.list_entries_since(window_start.astimezone(UTC))
        return sorted(entries, key=lambda entry: entry.logged_at, reverse=True)

    def consumed_calories(self) -> int:
        return sum(entry.total_calories for entry in self.today_entries())

    def remaining_calories(self) -> int:
        return self.get_today().remaining

    def get_today(self) -> DailySummary:
        """Return today's target, consumption and entries."""
        settings = self.get_settings()
        window_start = self.current_window_start(settings)
        entries = self._entries_since(window_start)
        return DailySummary(
            window_start=window_start,
            target=settings.daily_calorie_target,
            consumed=sum(entry.total_calories for entry in entries),
            entries=entries,
        )

    def get_entry_image(self, entry_id: UUID) -> bytes | None:
        return self.entry_repository.get_entry_image(entry_id)

    async def add_entry(
        self,
        description: str,
        calories_per_serving: int,
        image: bytes | None = None,
    ) -> FoodEntry:
        """Log a new single-serving entry and republish totals."""
        if calories_per_serving < 0:
            raise ValueError("calories per serving must not be negative")
        async with self._lock:
            entry = FoodEntry(
                id=uuid4(),
                logged_at=self.clock(),
                description=description,
                calories_per_serving=calories_per_serving,
                servings=1,
                image=image,
            )
            self.entry_repository.create_entry(entry)
            logger.info(
                "Logged food entry",
                extra={"entry_id": str(entry.id), "calories": calories_per_serving},
            )
            await self._publish()
        return entry

    async def delete_entry(self, entry_id: UUID) -> bool:
        """Delete an entry; unknown ids are ignored."""
        async with self._lock:
            if self.entry_repository.get_entry(entry_id) is None:
                return False
            self.entry_repository.delete_entry(entry_id)
            await self._publish()
        return True

    async def adjust_servings(self, entry_id: UUID, delta: int) -> FoodEntry | None:
        """Add delta servings to an entry, never going below one serving."""
        async with self._lock:
            entry = self.entry_repository.get_entry(entry_id)
            if entry is None:
                return None
            updated = dataclasses.replace(
                entry, servings=max(1, entry.servings + delta)
            )
            self.entry_repository.update_entry(updated)
            await self._publish()
        return updated

    async def edit_entry(
        self,
        entry_id: UUID,
        calories_per_serving: int | None = None,
        servings: int | None = None,
    ) -> FoodEntry | None:
        """Overwrite calories and servings; out-of-range values are ignored."""
        async with self._lock:
            entry = self.entry_repository.get_entry(entry_id)
            if entry is None:
                return None
            changes: dict[str, int] = {}
            if calories_per_serving is not None and calories_per_serving >= 0:
                changes["calories_per_serving"] = calories_per_serving
            if servings is not None and servings >= 1:
                changes["servings"] = servings
            updated = dataclasses.replace(entry, **changes)
            self.entry_repository.update_entry(updated)
            await self._publish()
        return updated

    async def update_settings(
        self,
        daily_calorie_target: int | None = None,
        day_reset_hour: int | None = None,
        provider: Provider | None = None,
        api_key: str | None = None,
    ) -> UserSettings:
        """Overwrite the provided settings fields and republish totals.

        Raises pydantic.ValidationError when a value is out of range.
        """
        async with self._lock:
            current = self.get_settings()
            changes = {
                name: value
                for name, value in (
                    ("daily_calorie_target", daily_calorie_target),
                    ("day_reset_hour", day_reset_hour),
                    ("provider", provider),
                    ("api_key", api_key),
                )
                if value is not None
            }
            updated = UserSettings.model_validate({**current.model_dump(), **changes})
            self.settings_repository.save_settings(updated)
            await self._publish()
        return updated

    def build_snapshot(self) -> CalorieSnapshot:
        """Compute the remaining/total/consumed snapshot for display."""
        summary = self.get_today()
        return CalorieSnapshot(
            remaining_calories=summary.remaining,
            total_calories=summary.target,
            consumed_calories=summary.consumed,
            last_updated=self.clock(),
        )

    async def _publish(self) -> None:
        try:
            snapshot = self.build_snapshot()
        except Exception:
            logger.exception("Failed to compute calorie snapshot")
            return
        logger.info(
            "Publishing calorie snapshot",
            extra={
                "remaining": snapshot.remaining_calories,
                "total": snapshot.total_calories,
                "consumed": snapshot.consumed_calories,
            },
        )
        await self.publisher.publish(snapshot)
