"""Shared test fixtures."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID

import pytest

from calorie_tracker.config import Settings
from calorie_tracker.containers import AppContainer
from calorie_tracker.domain.entries import FoodEntry, PersistenceError
from calorie_tracker.domain.settings import Provider, UserSettings
from calorie_tracker.domain.snapshot import CalorieSnapshot
from calorie_tracker.services.accounting import (
    CalorieAccountingService,
    FoodEntryRepository,
    UserSettingsRepository,
)
from calorie_tracker.services.capture import CaptureService
from calorie_tracker.services.publisher import (
    DisplayRefreshClient,
    SharedStateRepository,
    SnapshotPublisher,
)
from calorie_tracker.services.vision import VisionClient, VisionService


@dataclass
class InMemoryFoodEntryRepository(FoodEntryRepository):
    """In-memory food entry repository for tests."""

    entries: dict[UUID, FoodEntry] = field(default_factory=dict)
    fail_writes: bool = False

    def create_entry(self, entry: FoodEntry) -> None:
        if self.fail_writes:
            raise PersistenceError("Failed to create food entry")
        self.entries[entry.id] = entry

    def get_entry(self, entry_id: UUID) -> FoodEntry | None:
        return self.entries.get(entry_id)

    def list_entries_since(self, start: datetime) -> list[FoodEntry]:
        return sorted(
            (entry for entry in self.entries.values() if entry.logged_at >= start),
            key=lambda entry: entry.logged_at,
            reverse=True,
        )

    def update_entry(self, entry: FoodEntry) -> None:
        if self.fail_writes:
            raise PersistenceError("Failed to update food entry")
        self.entries[entry.id] = entry

    def delete_entry(self, entry_id: UUID) -> None:
        self.entries.pop(entry_id, None)

    def get_entry_image(self, entry_id: UUID) -> bytes | None:
        entry = self.entries.get(entry_id)
        return entry.image if entry else None


@dataclass
class InMemoryUserSettingsRepository(UserSettingsRepository):
    """In-memory settings repository for tests."""

    settings: UserSettings | None = None
    saves: int = 0

    def get_settings(self) -> UserSettings | None:
        return self.settings

    def save_settings(self, settings: UserSettings) -> None:
        self.settings = settings
        self.saves += 1


@dataclass
class InMemorySharedStateRepository(SharedStateRepository):
    """In-memory shared state for tests."""

    snapshots: list[CalorieSnapshot] = field(default_factory=list)
    events: list[str] | None = None

    def write_snapshot(self, snapshot: CalorieSnapshot) -> None:
        self.snapshots.append(snapshot)
        if self.events is not None:
            self.events.append("write")

    def read_snapshot(self) -> CalorieSnapshot | None:
        return self.snapshots[-1] if self.snapshots else None


@dataclass
class FakeDisplayRefreshClient(DisplayRefreshClient):
    """Display refresh client that counts refresh requests."""

    refreshes: int = 0
    events: list[str] | None = None

    async def request_refresh(self) -> None:
        self.refreshes += 1
        if self.events is not None:
            self.events.append("refresh")


@dataclass
class FakeVisionClient(VisionClient):
    """Vision client returning a fixed reply."""

    reply: str = '{"description": "Margherita pizza", "calories": 500}'
    calls: list[dict[str, str]] = field(default_factory=list)

    async def complete(self, *, api_key: str, prompt: str, image_base64: str) -> str:
        self.calls.append(
            {"api_key": api_key, "prompt": prompt, "image_base64": image_base64}
        )
        return self.reply


class FixedClock:
    """Controllable clock returning timezone-aware instants."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def build_accounting_service(
    clock: Callable[[], datetime] | None = None,
    timezone_name: str = "UTC",
    settings: UserSettings | None = None,
) -> CalorieAccountingService:
    publisher = SnapshotPublisher(
        shared_state=InMemorySharedStateRepository(),
        refresher=FakeDisplayRefreshClient(),
        refresh_delay_seconds=0,
    )
    service = CalorieAccountingService(
        entry_repository=InMemoryFoodEntryRepository(),
        settings_repository=InMemoryUserSettingsRepository(settings=settings),
        publisher=publisher,
        timezone_name=timezone_name,
    )
    if clock is not None:
        service.clock = clock
    return service


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        api_token="api-token",
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 3, 14, 12, 30, tzinfo=UTC))


@pytest.fixture
def vision_client() -> FakeVisionClient:
    return FakeVisionClient()


@pytest.fixture
def container(
    settings: Settings, clock: FixedClock, vision_client: FakeVisionClient
) -> AppContainer:
    accounting_service = build_accounting_service(
        clock=clock,
        settings=UserSettings(api_key="sk-test-key"),
    )
    vision_service = VisionService(
        clients={Provider.OPENAI: vision_client, Provider.CLAUDE: vision_client}
    )
    capture_service = CaptureService(
        vision_service=vision_service,
        accounting_service=accounting_service,
    )

    async def close_resources() -> None:
        await accounting_service.publisher.wait_for_refreshes()

    return AppContainer(
        settings=settings,
        vision_service=vision_service,
        accounting_service=accounting_service,
        capture_service=capture_service,
        publisher=accounting_service.publisher,
        close_resources=close_resources,
    )
