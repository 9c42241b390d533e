"""Display surface refresh signalling."""

from dataclasses import dataclass

import httpx

from calorie_tracker.services.publisher import DisplayRefreshClient


@dataclass
class HttpxDisplayRefreshClient(DisplayRefreshClient):
    """Posts a refresh event to the display surface's webhook."""

    url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, url: str) -> "HttpxDisplayRefreshClient":
        """Create a refresh client with a managed httpx session."""
        return cls(url=url, http_client=httpx.AsyncClient())

    async def request_refresh(self) -> None:
        """Ask the display surface to reload its timelines."""
        response = await self.http_client.post(
            self.url, json={"event": "calories_updated"}, timeout=5
        )
        response.raise_for_status()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


class NullDisplayRefreshClient(DisplayRefreshClient):
    """Used when no display surface is configured."""

    async def request_refresh(self) -> None:
        return None

    async def close(self) -> None:
        return None
