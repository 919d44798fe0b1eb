"""Top-level package for the Nutrilens food photo analyzer."""

from .config import AppConfig
from .providers.base import (
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
)
from .services.analyzer import AnalysisService
from .settings_store import SettingsStore

__version__ = "0.1.0"

__all__ = [
    "AnalysisError",
    "AnalysisResult",
    "AnalysisService",
    "AppConfig",
    "ConfigurationError",
    "ErrorKind",
    "FoodItem",
    "ImagePayload",
    "InvalidInputError",
    "NetworkError",
    "NetworkTimeoutError",
    "PlatformHint",
    "ProviderFormatError",
    "ProviderHTTPError",
    "SettingsStore",
    "__version__",
]
