"""Application-wide configuration models and persistence helpers."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from .providers.base import PlatformHint

API_KEY_ENV_VAR = "QWEN_API_KEY"

PRIMARY_ENDPOINT = (
    "https://dashscope.aliyuncs.com/api/v1/services/aigc/multimodal-generation/generation"
)
INTERNATIONAL_ENDPOINT = (
    "https://dashscope-intl.aliyuncs.com/api/v1/services/aigc/multimodal-generation/generation"
)


def _default_platform_endpoints() -> dict[str, str]:
    return {PlatformHint.NETLIFY.value: INTERNATIONAL_ENDPOINT}


class AppConfig(BaseModel):
    """Validates and stores runtime settings for the application."""

    api_key: str | None = Field(
        default=None,
        description="Bearer token for the DashScope API. Required at analysis time.",
        repr=False,
    )
    model: str = Field(
        default="qwen-vl-max",
        min_length=1,
        description="Multimodal model identifier served by the provider.",
    )
    base_url: str = Field(
        default=PRIMARY_ENDPOINT,
        description="Endpoint used when no platform-specific override applies.",
    )
    platform_endpoints: dict[str, str] = Field(
        default_factory=_default_platform_endpoints,
        description="Per-platform endpoint overrides keyed by platform hint.",
    )
    result_format: str = Field(
        default="message",
        description="Value of parameters.result_format sent with every request.",
    )
    timeout: float = Field(
        default=30.0,
        ge=1.0,
        le=600.0,
        description="Timeout (seconds) for the provider HTTP call.",
    )
    max_image_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=1,
        description="Largest image payload callers accept before contacting the provider.",
    )
    server_platform: PlatformHint = Field(
        default=PlatformHint.ZEABUR,
        description="Platform hint used by the long-running HTTP server.",
    )

    @model_validator(mode="after")
    def _normalise_endpoints(self) -> AppConfig:
        self.base_url = _normalise_url(self.base_url)
        normalised: dict[str, str] = {}
        for platform, url in self.platform_endpoints.items():
            hint = PlatformHint.parse(platform)
            if hint.value != platform.strip().lower():
                raise ValueError(f"Unknown platform in platform_endpoints: {platform!r}")
            normalised[hint.value] = _normalise_url(url)
        self.platform_endpoints = normalised
        return self

    @model_validator(mode="after")
    def _normalise_api_key(self) -> AppConfig:
        if self.api_key is not None:
            self.api_key = self.api_key.strip() or None
        return self

    def endpoint_for(self, platform: PlatformHint | str | None) -> str:
        """Return the provider URL for ``platform``; unknown hints use ``base_url``."""
        hint = PlatformHint.parse(platform)
        return self.platform_endpoints.get(hint.value, self.base_url)

    def with_environment(self, environ: dict[str, str] | None = None) -> AppConfig:
        """Return a copy whose API key is overridden by ``QWEN_API_KEY`` when set."""
        env = os.environ if environ is None else environ
        key = (env.get(API_KEY_ENV_VAR) or "").strip()
        if not key:
            return self
        return self.model_copy(update={"api_key": key})

    def as_dict(self) -> dict[str, Any]:
        """Serialize the configuration to primitive Python types."""
        return self.model_dump(mode="json")

    @classmethod
    def load(cls, path: Path) -> AppConfig:
        """Load configuration from a YAML or JSON file."""
        data = _read_config_file(path)
        try:
            return cls.model_validate(data)
        except ValidationError as exc:  # pragma: no cover - pass through details
            raise ValueError(f"Invalid configuration file at {path}: {exc}") from exc

    def save(self, path: Path) -> None:
        """Persist configuration to a YAML file."""
        _write_config_file(path, self.as_dict())


def _normalise_url(url: str) -> str:
    cleaned = url.strip()
    if not cleaned:
        raise ValueError("Endpoint URL must not be empty.")
    if "://" not in cleaned:
        raise ValueError("Endpoint URL must include a scheme such as https://.")
    return cleaned.rstrip("/")


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)

    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in {".yaml", ".yml"}:
        return yaml.safe_load(text) or {}
    return json.loads(text)


def _write_config_file(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() in {".yaml", ".yml"}:
        yaml_text = yaml.safe_dump(
            data,
            allow_unicode=False,
            sort_keys=False,
        )
        path.write_text(yaml_text, encoding="utf-8")
    else:
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
