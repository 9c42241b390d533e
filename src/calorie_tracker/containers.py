"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from calorie_tracker.adapters.anthropic_vision_client import AnthropicVisionClient
from calorie_tracker.adapters.display_refresh_client import (
    HttpxDisplayRefreshClient,
    NullDisplayRefreshClient,
)
from calorie_tracker.adapters.openai_vision_client import OpenAIVisionClient
from calorie_tracker.adapters.supabase_food_entry_repository import (
    SupabaseFoodEntryRepository,
)
from calorie_tracker.adapters.supabase_shared_state_repository import (
    SupabaseSharedStateRepository,
)
from calorie_tracker.adapters.supabase_user_settings_repository import (
    SupabaseUserSettingsRepository,
)
from calorie_tracker.config import Settings
from calorie_tracker.domain.settings import Provider
from calorie_tracker.services.accounting import CalorieAccountingService
from calorie_tracker.services.capture import CaptureService
from calorie_tracker.services.publisher import SnapshotPublisher
from calorie_tracker.services.vision import VisionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    vision_service: VisionService
    accounting_service: CalorieAccountingService
    capture_service: CaptureService
    publisher: SnapshotPublisher
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    openai_client = OpenAIVisionClient.create(
        model=resolved_settings.openai_model,
        max_tokens=resolved_settings.analysis_max_tokens,
        timeout=resolved_settings.analysis_timeout_seconds,
    )
    anthropic_client = AnthropicVisionClient.create(
        model=resolved_settings.anthropic_model,
        max_tokens=resolved_settings.analysis_max_tokens,
        timeout=resolved_settings.analysis_timeout_seconds,
    )
    vision_service = VisionService(
        clients={
            Provider.OPENAI: openai_client,
            Provider.CLAUDE: anthropic_client,
        }
    )
    refresher: HttpxDisplayRefreshClient | NullDisplayRefreshClient
    if resolved_settings.display_refresh_url:
        refresher = HttpxDisplayRefreshClient.create(
            resolved_settings.display_refresh_url
        )
    else:
        refresher = NullDisplayRefreshClient()
    publisher = SnapshotPublisher(
        shared_state=SupabaseSharedStateRepository(supabase_client),
        refresher=refresher,
        refresh_delay_seconds=resolved_settings.display_refresh_delay_seconds,
    )
    accounting_service = CalorieAccountingService(
        entry_repository=SupabaseFoodEntryRepository(supabase_client),
        settings_repository=SupabaseUserSettingsRepository(supabase_client),
        publisher=publisher,
        timezone_name=resolved_settings.timezone,
    )
    capture_service = CaptureService(
        vision_service=vision_service,
        accounting_service=accounting_service,
    )

    async def close_resources() -> None:
        await publisher.wait_for_refreshes()
        await openai_client.close()
        await anthropic_client.close()
        await refresher.close()

    return AppContainer(
        settings=resolved_settings,
        vision_service=vision_service,
        accounting_service=accounting_service,
        capture_service=capture_service,
        publisher=publisher,
        close_resources=close_resources,
    )
