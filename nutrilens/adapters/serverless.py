"""Serverless function handlers (event dict in, response dict out)."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from collections.abc import Callable
from typing import Any

from ..config import AppConfig
from ..providers.base import AnalysisError, ConfigurationError, InvalidInputError, PlatformHint
from ..services.analyzer import AnalysisService
from ..settings_store import SettingsStore
from .common import error_response, payload_from_body, success_body

logger = logging.getLogger(__name__)

Handler = Callable[[dict[str, Any], Any], dict[str, Any]]

_JSON_HEADERS = {"Content-Type": "application/json"}


def _response(status: int, body: dict[str, Any], **headers: str) -> dict[str, Any]:
    return {
        "statusCode": status,
        "headers": {**_JSON_HEADERS, **headers},
        "body": json.dumps(body, ensure_ascii=False),
    }


def _decode_body(event: dict[str, Any]) -> Any:
    raw = event.get("body") or ""
    if event.get("isBase64Encoded"):
        try:
            raw = base64.b64decode(raw).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise InvalidInputError("Request body is not valid base64 text.") from exc
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    try:
        return json.loads(raw) if raw else {}
    except json.JSONDecodeError as exc:
        raise InvalidInputError(f"Request body is not valid JSON: {exc.msg}") from exc


def _load(loader: Callable[[], AppConfig]) -> AppConfig:
    try:
        return loader()
    except (OSError, ValueError) as exc:
        raise ConfigurationError(f"Unable to load configuration: {exc}") from exc


def make_function_handler(
    platform: PlatformHint | str,
    *,
    service: AnalysisService | None = None,
    config_loader: Callable[[], AppConfig] | None = None,
) -> Handler:
    """Create a handler that routes requests through ``AnalysisService``.

    Configuration is loaded on each invocation unless a service is given.
    """
    hint = PlatformHint.parse(platform)
    load_config = config_loader or (lambda: SettingsStore().load())

    def handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
        method = str(event.get("httpMethod", "")).upper()
        if method != "POST":
            return _response(
                405,
                {"success": False, "error": "Method Not Allowed", "kind": "method_not_allowed"},
                Allow="POST",
            )

        try:
            active = service or AnalysisService(_load(load_config))
            image = payload_from_body(
                _decode_body(event), max_bytes=active.config.max_image_bytes
            )
            result = active.analyze(image, hint)
        except AnalysisError as exc:
            status, body = error_response(exc)
            return _response(status, body)
        logger.debug("Handled %s request for platform %s", method, hint.value)
        return _response(200, success_body(result))

    return handler


def netlify_handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    return make_function_handler(PlatformHint.NETLIFY)(event, context)


def vercel_handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    return make_function_handler(PlatformHint.VERCEL)(event, context)
