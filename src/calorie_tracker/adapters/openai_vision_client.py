"""OpenAI Chat Completions client for food photo analysis."""

from dataclasses import dataclass

import httpx
import openai
from openai import AsyncOpenAI

from calorie_tracker.domain.vision import (
    AnalysisApiError,
    AnalysisNetworkError,
    InvalidAnalysisResponseError,
)
from calorie_tracker.services.vision import VisionClient, provider_error_message


@dataclass
class OpenAIVisionClient(VisionClient):
    """Vision client backed by the OpenAI Chat Completions API."""

    http_client: httpx.AsyncClient
    model: str = "gpt-4o"
    max_tokens: int = 300
    timeout: float = 45.0

    @classmethod
    def create(
        cls, model: str, max_tokens: int, timeout: float
    ) -> "OpenAIVisionClient":
        """Create an OpenAI vision client with a managed httpx session."""
        return cls(
            http_client=httpx.AsyncClient(),
            model=model,
            max_tokens=max_tokens,
            timeout=timeout,
        )

    async def complete(self, *, api_key: str, prompt: str, image_base64: str) -> str:
        """Ask the chat model about the image and return its reply text."""
        # The key lives in user settings and may change between calls.
        client = AsyncOpenAI(
            api_key=api_key,
            http_client=self.http_client,
            max_retries=0,
            timeout=self.timeout,
        )
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": prompt},
                            {
                                "type": "image_url",
                                "image_url": {
                                    "url": f"data:image/jpeg;base64,{image_base64}"
                                },
                            },
                        ],
                    }
                ],
                max_tokens=self.max_tokens,
            )
        except openai.APIStatusError as exc:
            raise AnalysisApiError(
                exc.status_code, provider_error_message(exc.body)
            ) from exc
        except openai.APIConnectionError as exc:
            raise AnalysisNetworkError(exc) from exc
        except (openai.APIResponseValidationError, ValueError) as exc:
            raise InvalidAnalysisResponseError() from exc

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as exc:
            raise InvalidAnalysisResponseError() from exc
        if not isinstance(content, str):
            raise InvalidAnalysisResponseError()
        return content

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
