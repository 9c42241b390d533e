"""Domain models for logged food entries."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


class PersistenceError(RuntimeError):
    """Raised when the record store fails or does not acknowledge a write."""


@dataclass(frozen=True)
class FoodEntry:
    """A single logged food item."""

    id: UUID
    logged_at: datetime
    description: str
    calories_per_serving: int
    servings: int = 1
    image: bytes | None = None

    @property
    def total_calories(self) -> int:
        """Calories for all servings of this entry."""
        return self.calories_per_serving * self.servings


@dataclass(frozen=True)
class DailySummary:
    """Totals for the active day window."""

    window_start: datetime
    target: int
    consumed: int
    entries: list[FoodEntry]

    @property
    def remaining(self) -> int:
        return self.target - self.consumed
