"""Photo capture flow: analyze a meal photo and log it."""

import logging
from dataclasses import dataclass

from calorie_tracker.domain.entries import FoodEntry
from calorie_tracker.domain.settings import Provider
from calorie_tracker.domain.vision import FoodAnalysis
from calorie_tracker.services.accounting import CalorieAccountingService
from calorie_tracker.services.vision import VisionService

logger = logging.getLogger(__name__)


@dataclass
class CaptureService:
    """Runs analysis with the saved provider settings, then logs the entry."""

    vision_service: VisionService
    accounting_service: CalorieAccountingService

    async def capture(self, image_bytes: bytes) -> FoodEntry:
        """Analyze a photo and log it as a one-serving entry.

        Analysis errors propagate unchanged and nothing is logged. The
        accounting lock is only held for the final write, so settings can
        change while the provider call is in flight.
        """
        settings = self.accounting_service.get_settings()
        analysis = await self.vision_service.analyze(
            image_bytes, settings.provider, settings.api_key
        )
        return await self.accounting_service.add_entry(
            description=analysis.description,
            calories_per_serving=analysis.calories_per_serving,
            image=image_bytes,
        )

    async def test_connection(
        self,
        image_bytes: bytes,
        provider: Provider | None = None,
        api_key: str | None = None,
    ) -> FoodAnalysis:
        """Run an analysis with candidate credentials without logging it."""
        settings = self.accounting_service.get_settings()
        resolved_provider = provider or settings.provider
        logger.info(
            "Testing provider connection", extra={"provider": resolved_provider.value}
        )
        return await self.vision_service.analyze(
            image_bytes,
            resolved_provider,
            settings.api_key if api_key is None else api_key,
        )
