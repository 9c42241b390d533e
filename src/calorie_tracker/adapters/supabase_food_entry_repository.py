"""Supabase repository for food entries."""

import base64
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from calorie_tracker.adapters.supabase_query import execute_query
from calorie_tracker.domain.entries import FoodEntry, PersistenceError
from calorie_tracker.services.accounting import FoodEntryRepository

_ENTRY_COLUMNS = "id, logged_at, description, calories_per_serving, servings"


@dataclass
class SupabaseFoodEntryRepository(FoodEntryRepository):
    """Supabase implementation for food entries."""

    client: Client

    def create_entry(self, entry: FoodEntry) -> None:
        """Insert a food entry row."""
        response = execute_query(
            self.client.table("food_entries").insert(
                {
                    "id": str(entry.id),
                    "logged_at": entry.logged_at.isoformat(),
                    "description": entry.description,
                    "calories_per_serving": entry.calories_per_serving,
                    "servings": entry.servings,
                    "image_base64": (
                        base64.b64encode(entry.image).decode("ascii")
                        if entry.image
                        else None
                    ),
                }
            ),
            "Failed to create food entry",
        )
        if not response.data:
            raise PersistenceError("Failed to create food entry")

    def get_entry(self, entry_id: UUID) -> FoodEntry | None:
        """Return a food entry without its image."""
        response = execute_query(
            self.client.table("food_entries")
            .select(_ENTRY_COLUMNS)
            .eq("id", str(entry_id))
            .limit(1),
            f"Failed to load food entry {entry_id}",
        )
        if not response.data:
            return None
        return _parse_entry(response.data[0])

    def list_entries_since(self, start: datetime) -> list[FoodEntry]:
        """Return entries logged at or after start, newest first."""
        response = execute_query(
            self.client.table("food_entries")
            .select(_ENTRY_COLUMNS)
            .gte("logged_at", start.isoformat())
            .order("logged_at", desc=True),
            "Failed to list food entries",
        )
        return [_parse_entry(row) for row in response.data or []]

    def update_entry(self, entry: FoodEntry) -> None:
        """Update servings and calories for an entry."""
        response = execute_query(
            self.client.table("food_entries")
            .update(
                {
                    "description": entry.description,
                    "calories_per_serving": entry.calories_per_serving,
                    "servings": entry.servings,
                }
            )
            .eq("id", str(entry.id)),
            f"Failed to update food entry {entry.id}",
        )
        if not response.data:
            raise PersistenceError(f"Failed to update food entry {entry.id}")

    def delete_entry(self, entry_id: UUID) -> None:
        """Delete an entry row."""
        response = execute_query(
            self.client.table("food_entries").delete().eq("id", str(entry_id)),
            f"Failed to delete food entry {entry_id}",
        )
        if not response.data:
            raise PersistenceError(f"Failed to delete food entry {entry_id}")

    def get_entry_image(self, entry_id: UUID) -> bytes | None:
        """Return the stored photo for an entry."""
        response = execute_query(
            self.client.table("food_entries")
            .select("image_base64")
            .eq("id", str(entry_id))
            .limit(1),
            f"Failed to load image for food entry {entry_id}",
        )
        if not response.data:
            return None
        encoded = response.data[0].get("image_base64")
        if not encoded:
            return None
        return base64.b64decode(encoded)


def _parse_entry(row: dict[str, object]) -> FoodEntry:
    return FoodEntry(
        id=UUID(str(row["id"])),
        logged_at=datetime.fromisoformat(str(row["logged_at"])),
        description=str(row.get("description") or ""),
        calories_per_serving=int(row.get("calories_per_serving") or 0),
        servings=max(1, int(row.get("servings") or 1)),
    )
