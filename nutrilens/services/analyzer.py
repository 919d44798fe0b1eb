"""Core service turning a food photo into a normalized nutrition result."""

from __future__ import annotations

import logging

from ..config import AppConfig
from ..parsing import parse_analysis
from ..providers.base import (
    AnalysisResult,
    ConfigurationError,
    ImagePayload,
    InvalidInputError,
    PlatformHint,
    ProviderFormatError,
    VisionProvider,
)
from ..providers.dashscope import DashScopeVisionProvider
from ..providers.prompts import NUTRITION_PROMPT

logger = logging.getLogger(__name__)


class AnalysisService:
    """Single shared request path used by every hosting adapter.

    Holds only the injected configuration and provider; each call is
    independent, so one instance may serve concurrent requests.
    """

    def __init__(self, config: AppConfig, *, provider: VisionProvider | None = None) -> None:
        self.config = config
        self._provider = provider or DashScopeVisionProvider(config)

    def analyze(
        self,
        image: ImagePayload,
        platform: PlatformHint | str | None = PlatformHint.DEFAULT,
    ) -> AnalysisResult:
        """Send ``image`` to the provider and normalize its answer.

        Raises ``ConfigurationError`` before any network activity when no API
        key is configured. Network, provider and input failures surface as
        the matching ``AnalysisError`` subclass.
        """
        if not self.config.api_key:
            raise ConfigurationError("Provider API key is not configured.")
        if not isinstance(image, ImagePayload):
            raise InvalidInputError("An image payload is required.")

        hint = PlatformHint.parse(platform)
        text = self._provider.generate(image, NUTRITION_PROMPT, hint)
        if not text.strip():
            raise ProviderFormatError("Provider returned an empty answer.")

        result = parse_analysis(text)
        logger.info(
            "Analysis finished (is_food=%s, total_calories=%d, foods=%d)",
            result.is_food,
            result.total_calories,
            len(result.foods),
        )
        return result
