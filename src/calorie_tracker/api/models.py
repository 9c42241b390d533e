"""Pydantic request and response models for the HTTP API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from calorie_tracker.domain.entries import DailySummary, FoodEntry
from calorie_tracker.domain.settings import Provider, UserSettings


class EntryOut(BaseModel):
    """Food entry as returned by the API."""

    id: UUID
    logged_at: datetime
    description: str
    calories_per_serving: int
    servings: int
    total_calories: int

    @classmethod
    def from_entry(cls, entry: FoodEntry) -> "EntryOut":
        return cls(
            id=entry.id,
            logged_at=entry.logged_at,
            description=entry.description,
            calories_per_serving=entry.calories_per_serving,
            servings=entry.servings,
            total_calories=entry.total_calories,
        )


class TodayOut(BaseModel):
    """Totals and entries for the active day window."""

    window_start: datetime
    target: int
    consumed: int
    remaining: int
    entries: list[EntryOut]

    @classmethod
    def from_summary(cls, summary: DailySummary) -> "TodayOut":
        return cls(
            window_start=summary.window_start,
            target=summary.target,
            consumed=summary.consumed,
            remaining=summary.remaining,
            entries=[EntryOut.from_entry(entry) for entry in summary.entries],
        )


class EntryCreate(BaseModel):
    """Manually logged entry."""

    description: str = Field(min_length=1)
    calories_per_serving: int = Field(ge=0)


class EntryEdit(BaseModel):
    """Direct edit of calories or servings."""

    calories_per_serving: int | None = None
    servings: int | None = None


class ServingsAdjust(BaseModel):
    """Relative serving change."""

    delta: int


class SettingsOut(BaseModel):
    """Settings with the API key masked."""

    daily_calorie_target: int
    day_reset_hour: int
    provider: Provider
    api_key_set: bool
    api_key_hint: str | None

    @classmethod
    def from_settings(cls, settings: UserSettings) -> "SettingsOut":
        key = settings.api_key
        return cls(
            daily_calorie_target=settings.daily_calorie_target,
            day_reset_hour=settings.day_reset_hour,
            provider=settings.provider,
            api_key_set=bool(key),
            api_key_hint=f"{key[:4]}…" if len(key) > 8 else None,
        )


class SettingsUpdate(BaseModel):
    """Partial settings update; omitted fields are left unchanged."""

    daily_calorie_target: int | None = Field(default=None, ge=0)
    day_reset_hour: int | None = Field(default=None, ge=0, le=23)
    provider: Provider | None = None
    api_key: str | None = None


class AnalysisOut(BaseModel):
    """Result of a provider connection test."""

    description: str
    calories_per_serving: int
