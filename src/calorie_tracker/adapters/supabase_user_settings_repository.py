"""Supabase repository for the settings record."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from calorie_tracker.adapters.supabase_query import execute_query
from calorie_tracker.domain.entries import PersistenceError
from calorie_tracker.domain.settings import UserSettings
from calorie_tracker.services.accounting import UserSettingsRepository

SETTINGS_ROW_ID = 1


@dataclass
class SupabaseUserSettingsRepository(UserSettingsRepository):
    """Supabase implementation for the single settings row."""

    client: Client

    def get_settings(self) -> UserSettings | None:
        """Return the stored settings row."""
        response = execute_query(
            self.client.table("user_settings")
            .select("daily_calorie_target, day_reset_hour, provider, api_key")
            .eq("id", SETTINGS_ROW_ID)
            .limit(1),
            "Failed to load settings",
        )
        if not response.data:
            return None
        return UserSettings.model_validate(response.data[0])

    def save_settings(self, settings: UserSettings) -> None:
        """Insert or replace the settings row."""
        response = execute_query(
            self.client.table("user_settings").upsert(
                {
                    "id": SETTINGS_ROW_ID,
                    **settings.model_dump(mode="json"),
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                }
            ),
            "Failed to save settings",
        )
        if not response.data:
            raise PersistenceError("Failed to save settings")
