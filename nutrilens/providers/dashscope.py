"""Vision-language integration via the DashScope multimodal-generation API."""

from __future__ import annotations

import logging
from typing import Any

import requests
from requests import Response, Session

from ..config import AppConfig
from .base import (
    ConfigurationError,
    ImagePayload,
    NetworkError,
    NetworkTimeoutError,
    PlatformHint,
    ProviderFormatError,
    ProviderHTTPError,
)

logger = logging.getLogger(__name__)


def extract_message_text(content: Any) -> str:
    """Flatten ``message.content`` into plain text.

    Strings pass through unchanged. Lists keep only fragments carrying a
    ``text`` field, in order, joined by newlines; echoed images and other
    fragments are dropped.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        texts = [
            item["text"]
            for item in content
            if isinstance(item, dict) and isinstance(item.get("text"), str) and item["text"]
        ]
        return "\n".join(texts)
    logger.error("Provider returned unexpected content format: %r", content)
    raise ProviderFormatError(
        f"Provider returned unexpected content format: {type(content).__name__}"
    )


class DashScopeVisionProvider:
    """Sends a single image and prompt to a Qwen-VL model and returns its text."""

    def __init__(self, config: AppConfig, *, session: Session | None = None) -> None:
        self._config = config
        self._session = session

    def generate(self, image: ImagePayload, prompt: str, platform: PlatformHint) -> str:
        endpoint = self._config.endpoint_for(platform)
        logger.info(
            "Calling %s (model=%s, platform=%s)", endpoint, self._config.model, platform.value
        )
        payload = self._build_payload(image, prompt)
        response = self._session_post(endpoint, payload)
        content = self._extract_content(response)
        text = extract_message_text(content)
        logger.debug("Raw provider text: %s", text)
        return text

    # ----- Request construction -------------------------------------------

    def _build_payload(self, image: ImagePayload, prompt: str) -> dict[str, Any]:
        return {
            "model": self._config.model,
            "input": {
                "messages": [
                    {
                        "role": "user",
                        "content": [
                            {"image": image.as_data_url()},
                            {"text": prompt},
                        ],
                    }
                ]
            },
            "parameters": {"result_format": self._config.result_format},
        }

    # ----- HTTP helpers ----------------------------------------------------

    def _headers(self) -> dict[str, str]:
        if not self._config.api_key:
            raise ConfigurationError("Provider API key is not configured.")
        return {
            "Authorization": f"Bearer {self._config.api_key}",
            "Content-Type": "application/json",
        }

    def _session_post(self, url: str, payload: dict[str, Any]) -> Response:
        headers = self._headers()
        timeout = self._config.timeout
        poster = self._session if self._session is not None else requests
        try:
            response = poster.post(url, json=payload, headers=headers, timeout=timeout)
        except requests.exceptions.Timeout as exc:
            raise NetworkTimeoutError(
                f"Provider request timed out after {timeout}s."
            ) from exc
        except requests.exceptions.RequestException as exc:
            raise NetworkError(f"No response from provider: {exc}") from exc
        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning(
                "Provider returned HTTP %s: %s", response.status_code, response.text
            )
            raise ProviderHTTPError(
                f"Provider returned HTTP {response.status_code}: {message}",
                status_code=response.status_code,
            )
        return response

    # ----- Response handling -----------------------------------------------

    def _extract_content(self, response: Response) -> Any:
        try:
            data = response.json()
        except ValueError as exc:
            logger.error("Provider returned non-JSON body: %s", response.text)
            raise ProviderFormatError("Provider returned a non-JSON body.") from exc

        output = data.get("output") if isinstance(data, dict) else None
        choices = output.get("choices") if isinstance(output, dict) else None
        if not isinstance(choices, list) or not choices:
            logger.error("Provider response format is unexpected: %s", data)
            raise ProviderFormatError("Provider response has no choices.")

        first = choices[0]
        message = first.get("message") if isinstance(first, dict) else None
        if not isinstance(message, dict) or message.get("content") is None:
            logger.error("Provider choice has no message content: %s", data)
            raise ProviderFormatError("Provider response has no message content.")
        return message["content"]


def _error_message(response: Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason or "Failed to get a valid response"
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    return response.reason or "Failed to get a valid response"
