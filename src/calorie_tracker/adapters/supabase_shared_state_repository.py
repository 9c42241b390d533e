"""Supabase-backed shared state read by the display process."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from calorie_tracker.adapters.supabase_query import execute_query
from calorie_tracker.domain.snapshot import CalorieSnapshot
from calorie_tracker.services.publisher import SharedStateRepository

SNAPSHOT_KEY = "calorie_snapshot"


@dataclass
class SupabaseSharedStateRepository(SharedStateRepository):
    """Stores the calorie snapshot as a JSON value in a key-value table."""

    client: Client

    def write_snapshot(self, snapshot: CalorieSnapshot) -> None:
        """Upsert the snapshot under its key."""
        execute_query(
            self.client.table("shared_state").upsert(
                {
                    "key": SNAPSHOT_KEY,
                    "value": snapshot.model_dump(mode="json", by_alias=True),
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                }
            ),
            "Failed to write calorie snapshot",
        )

    def read_snapshot(self) -> CalorieSnapshot | None:
        """Return the stored snapshot, if any."""
        response = execute_query(
            self.client.table("shared_state")
            .select("value")
            .eq("key", SNAPSHOT_KEY)
            .limit(1),
            "Failed to read calorie snapshot",
        )
        if not response.data or not response.data[0].get("value"):
            return None
        return CalorieSnapshot.model_validate(response.data[0]["value"])
