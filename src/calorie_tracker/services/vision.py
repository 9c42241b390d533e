"""Food photo analysis using multimodal LLM providers."""

import base64
import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

from calorie_tracker.domain.settings import Provider
from calorie_tracker.domain.vision import (
    AnalysisApiError,
    FoodAnalysis,
    InvalidAnalysisResponseError,
    InvalidImageDataError,
    MissingCredentialError,
)

logger = logging.getLogger(__name__)

ANALYSIS_PROMPT = """Analyze this food image and provide:
1. A brief description of the food items
2. An estimated calorie count for ONE SERVING of the food shown

IMPORTANT: Assume this is one serving. Estimate calories for a single serving \
of what you see.

Respond in JSON format:
{
  "description": "Brief food description",
  "calories": estimated_number
}"""

UNRECOGNIZED_FOOD_PHRASES = (
    "unable to access",
    "cannot see",
    "can't see",
    "can’t see",
)

CALORIE_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"(\d+)\s*(?:cal|kcal|calories)",
        r"calories:\s*(\d+)",
        r"estimated\s+calories:\s*(\d+)",
        r"approximately\s+(\d+)\s*calories",
    )
]

DEFAULT_DESCRIPTION = "Food item"


class VisionClient(Protocol):
    """Interface for a single provider's multimodal chat endpoint."""

    async def complete(self, *, api_key: str, prompt: str, image_base64: str) -> str:
        """Send the prompt and JPEG image, returning the model's text reply."""


@dataclass
class VisionService:
    """Service that runs food photo analysis against the selected provider."""

    clients: Mapping[Provider, VisionClient]

    async def analyze(
        self, image_bytes: bytes, provider: Provider, api_key: str
    ) -> FoodAnalysis:
        """Estimate a description and single-serving calories for a photo."""
        if not api_key.strip():
            raise MissingCredentialError()
        if not image_bytes:
            raise InvalidImageDataError()
        client = self.clients[provider]
        reply = await client.complete(
            api_key=api_key,
            prompt=ANALYSIS_PROMPT,
            image_base64=base64.b64encode(image_bytes).decode("utf-8"),
        )
        result = parse_analysis_reply(reply)
        logger.info(
            "Analyzed food photo",
            extra={"provider": provider.value, "calories": result.calories_per_serving},
        )
        return result


def parse_analysis_reply(reply: str) -> FoodAnalysis:
    """Turn a model reply into a FoodAnalysis.

    Replies saying the model could not see the image are reported as an API
    error with status 0. JSON (optionally wrapped in a markdown code fence) is
    preferred; anything else goes through the plain-text calorie extractor.
    """
    lowered = reply.lower()
    if any(phrase in lowered for phrase in UNRECOGNIZED_FOOD_PHRASES):
        raise AnalysisApiError(
            0,
            "The AI couldn't identify food in the image. "
            "Please take a clearer photo of food items.",
        )
    parsed = _parse_json_reply(_strip_code_fence(reply))
    if parsed is not None:
        return parsed
    return parse_plain_text_reply(reply)


def parse_plain_text_reply(text: str) -> FoodAnalysis:
    """Extract calories and a description from a free-form reply."""
    calories = 0
    for pattern in CALORIE_PATTERNS:
        match = pattern.search(text)
        if match:
            calories = int(match.group(1))
            break
    if calories <= 0:
        logger.warning("Could not extract calories from reply", extra={"reply": text})
        raise InvalidAnalysisResponseError(
            "Could not parse calorie information from AI response. "
            "The AI may not have provided calorie data."
        )
    description = next(
        (line.strip() for line in text.splitlines() if line.strip()),
        DEFAULT_DESCRIPTION,
    )
    return FoodAnalysis(description=description, calories_per_serving=calories)


def _strip_code_fence(text: str) -> str:
    if "```json" in text:
        text = text.replace("```json", "").replace("```", "")
    elif "```" in text:
        text = text.replace("```", "")
    return text.strip()


def _parse_json_reply(text: str) -> FoodAnalysis | None:
    try:
        payload = json.loads(text)
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    description = payload.get("description")
    calories = _as_int(payload.get("calories"))
    if not isinstance(description, str) or calories is None or calories <= 0:
        return None
    return FoodAnalysis(description=description, calories_per_serving=calories)


def _as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def provider_error_message(body: object) -> str:
    """Return the message from a provider error envelope, if present."""
    error = body.get("error", body) if isinstance(body, Mapping) else None
    if isinstance(error, Mapping):
        message = error.get("message")
        if isinstance(message, str) and message:
            return message
    return "Unknown error from API"
