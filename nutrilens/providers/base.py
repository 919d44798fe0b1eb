"""Core data types, error kinds and the provider interface."""

from __future__ import annotations

import base64
import binascii
import io
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from PIL import Image, UnidentifiedImageError

_DATA_URL_PATTERN = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?:;[\w=.+-]+)*;base64,(?P<data>.*)$",
    re.DOTALL,
)


class PlatformHint(str, Enum):
    """Hosting context that initiated a request; selects the provider endpoint."""

    DEFAULT = "default"
    VERCEL = "vercel"
    ZEABUR = "zeabur"
    NETLIFY = "netlify"

    @classmethod
    def parse(cls, value: PlatformHint | str | None) -> PlatformHint:
        """Return the matching hint, falling back to ``DEFAULT`` for unknown values."""
        if isinstance(value, PlatformHint):
            return value
        if not value:
            return cls.DEFAULT
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.DEFAULT


class ErrorKind(str, Enum):
    """Machine-readable error categories used by boundary layers."""

    CONFIGURATION = "configuration"
    NETWORK = "network"
    TIMEOUT = "timeout"
    PROVIDER_FORMAT = "provider_format"
    PROVIDER_HTTP = "provider_http"
    INVALID_INPUT = "invalid_input"


class AnalysisError(RuntimeError):
    """Base class for failures raised by the analysis pipeline."""

    kind: ErrorKind = ErrorKind.PROVIDER_FORMAT
    http_status: int = 500


class ConfigurationError(AnalysisError):
    """Raised when the service is missing a credential or is misconfigured."""

    kind = ErrorKind.CONFIGURATION
    http_status = 500


class NetworkError(AnalysisError):
    """Raised when the provider could not be reached."""

    kind = ErrorKind.NETWORK
    http_status = 504


class NetworkTimeoutError(NetworkError):
    """Raised when the provider did not answer within the configured timeout."""

    kind = ErrorKind.TIMEOUT


class ProviderFormatError(AnalysisError):
    """Raised when the provider answered with an unexpected payload shape."""

    kind = ErrorKind.PROVIDER_FORMAT
    http_status = 502


class ProviderHTTPError(AnalysisError):
    """Raised when the provider answered with an HTTP error status."""

    kind = ErrorKind.PROVIDER_HTTP
    http_status = 502

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidInputError(AnalysisError):
    """Raised when the caller supplied no image or a malformed one."""

    kind = ErrorKind.INVALID_INPUT
    http_status = 400


@dataclass(frozen=True, slots=True)
class ImagePayload:
    """An image ready to be embedded in a provider request."""

    mime_type: str
    data: bytes

    def __post_init__(self) -> None:
        if not self.data:
            raise InvalidInputError("Image payload is empty.")
        if not self.mime_type.lower().startswith("image/"):
            raise InvalidInputError(f"Unsupported MIME type for image payload: {self.mime_type}")

    @classmethod
    def from_data_url(cls, data_url: str) -> ImagePayload:
        if not isinstance(data_url, str) or not data_url.strip():
            raise InvalidInputError("Missing image data URL.")
        match = _DATA_URL_PATTERN.match(data_url.strip())
        if match is None:
            raise InvalidInputError("Image must be a base64 data URL (data:image/...;base64,...).")
        try:
            data = base64.b64decode(match.group("data"), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidInputError(f"Image data URL is not valid base64: {exc}") from exc
        return cls(mime_type=match.group("mime").lower(), data=data)

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str | None = None) -> ImagePayload:
        """Wrap raw bytes, sniffing the MIME type with Pillow when not given."""
        if not data:
            raise InvalidInputError("Image payload is empty.")
        return cls(mime_type=mime_type or _sniff_mime_type(data), data=data)

    @classmethod
    def from_path(cls, path: Path) -> ImagePayload:
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise InvalidInputError(f"Unable to read image {path}: {exc}") from exc
        return cls.from_bytes(data)

    @property
    def size(self) -> int:
        return len(self.data)

    def ensure_within(self, max_bytes: int) -> ImagePayload:
        """Reject payloads above ``max_bytes``; used by callers, not the core."""
        if self.size > max_bytes:
            raise InvalidInputError(
                f"Image is {self.size} bytes; the limit is {max_bytes} bytes."
            )
        return self

    def as_data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


def _sniff_mime_type(data: bytes) -> str:
    try:
        with Image.open(io.BytesIO(data)) as img:
            image_format = img.format
    except (UnidentifiedImageError, OSError) as exc:
        raise InvalidInputError("Payload is not a recognised image.") from exc
    mime = Image.MIME.get(image_format or "")
    if not mime:
        raise InvalidInputError(f"Unsupported image format: {image_format}")
    return mime


@dataclass(slots=True)
class FoodItem:
    """A single dish or drink identified in the photo."""

    name: str
    portion: str | None = None
    calories: int = 0
    protein_g: float | None = None
    carbs_g: float | None = None
    fat_g: float | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "portion": self.portion,
            "calories": self.calories,
            "protein": self.protein_g,
            "carbs": self.carbs_g,
            "fat": self.fat_g,
        }


@dataclass(slots=True)
class AnalysisResult:
    """Normalized outcome returned to every caller."""

    is_food: bool
    description: str
    total_calories: int = 0
    foods: list[FoodItem] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        """Serialize using the camelCase keys expected by the front end."""
        return {
            "isFood": self.is_food,
            "foods": [item.as_dict() for item in self.foods],
            "totalCalories": self.total_calories,
            "description": self.description,
        }


class VisionProvider(Protocol):
    """Interface implemented by remote vision-language backends."""

    def generate(self, image: ImagePayload, prompt: str, platform: PlatformHint) -> str:
        """Send one request and return the extracted answer text."""
