"""Provider data types, errors and prompts."""

from .base import (
    AnalysisError,
    AnalysisResult,
    ConfigurationError,
    ErrorKind,
    FoodItem,
    ImagePayload,
    InvalidInputError,
    NetworkError,
    NetworkTimeoutError,
    PlatformHint,
    ProviderFormatError,
    ProviderHTTPError,
    VisionProvider,
)
from .prompts import NUTRITION_PROMPT

__all__ = [
    "AnalysisError",
    "AnalysisResult",
    "ConfigurationError",
    "ErrorKind",
    "FoodItem",
    "ImagePayload",
    "InvalidInputError",
    "NetworkError",
    "NetworkTimeoutError",
    "NUTRITION_PROMPT",
    "PlatformHint",
    "ProviderFormatError",
    "ProviderHTTPError",
    "VisionProvider",
]
