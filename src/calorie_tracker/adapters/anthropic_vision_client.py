"""Anthropic Messages API client for food photo analysis."""

from dataclasses import dataclass

import httpx
from pydantic import BaseModel, ValidationError

from calorie_tracker.domain.vision import (
    AnalysisApiError,
    AnalysisNetworkError,
    InvalidAnalysisResponseError,
)
from calorie_tracker.services.vision import VisionClient, provider_error_message

ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"


class _ContentBlock(BaseModel):
    type: str | None = None
    text: str | None = None


class _MessagesResponse(BaseModel):
    content: list[_ContentBlock]


@dataclass
class AnthropicVisionClient(VisionClient):
    """Vision client backed by the Anthropic Messages API."""

    http_client: httpx.AsyncClient
    model: str = "claude-3-5-sonnet-20241022"
    max_tokens: int = 300
    timeout: float = 45.0

    @classmethod
    def create(
        cls, model: str, max_tokens: int, timeout: float
    ) -> "AnthropicVisionClient":
        """Create an Anthropic vision client with a managed httpx session."""
        return cls(
            http_client=httpx.AsyncClient(),
            model=model,
            max_tokens=max_tokens,
            timeout=timeout,
        )

    async def complete(self, *, api_key: str, prompt: str, image_base64: str) -> str:
        """Send the image and prompt to Claude and return the reply text."""
        payload: dict[str, object] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": "image/jpeg",
                                "data": image_base64,
                            },
                        },
                        {"type": "text", "text": prompt},
                    ],
                }
            ],
        }
        headers = {
            "x-api-key": api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        try:
            response = await self.http_client.post(
                ANTHROPIC_MESSAGES_URL,
                headers=headers,
                json=payload,
                timeout=self.timeout,
            )
        except httpx.TransportError as exc:
            raise AnalysisNetworkError(exc) from exc

        if not response.is_success:
            raise AnalysisApiError(
                response.status_code, provider_error_message(_json_or_none(response))
            )
        try:
            envelope = _MessagesResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise InvalidAnalysisResponseError() from exc
        if not envelope.content or envelope.content[0].text is None:
            raise InvalidAnalysisResponseError()
        return envelope.content[0].text

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _json_or_none(response: httpx.Response) -> object:
    try:
        return response.json()
    except ValueError:
        return None
