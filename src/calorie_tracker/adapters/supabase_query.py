"""Execution of Supabase queries with store failures mapped to PersistenceError."""

from typing import Any, Protocol

import httpx
from postgrest.exceptions import APIError

from calorie_tracker.domain.entries import PersistenceError


class ExecutableQuery(Protocol):
    def execute(self) -> Any: ...


def execute_query(query: ExecutableQuery, failure: str) -> Any:
    """Run a query, raising PersistenceError if the store rejects it."""
    try:
        return query.execute()
    except (APIError, httpx.HTTPError) as exc:
        raise PersistenceError(failure) from exc
