"""Request parsing and response serialization shared by every hosting adapter."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from ..providers.base import (
    AnalysisError,
    AnalysisResult,
    ErrorKind,
    ImagePayload,
    InvalidInputError,
)

logger = logging.getLogger(__name__)

_PUBLIC_CONFIGURATION_MESSAGE = "Server configuration error."


def payload_from_body(body: Any, *, max_bytes: int) -> ImagePayload:
    """Validate a decoded JSON request body and return its image."""
    if not isinstance(body, dict):
        raise InvalidInputError("Request body must be a JSON object.")
    data_url = body.get("dataUrl")
    if not data_url:
        raise InvalidInputError("Missing dataUrl in request body.")
    return ImagePayload.from_data_url(data_url).ensure_within(max_bytes)


def success_body(result: AnalysisResult) -> dict[str, Any]:
    return {
        "success": True,
        "result": result.as_dict(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def error_response(exc: AnalysisError) -> tuple[int, dict[str, Any]]:
    """Map an analysis error to an HTTP status and JSON body."""
    if exc.kind is ErrorKind.CONFIGURATION:
        logger.error("Configuration error: %s", exc)
        message = _PUBLIC_CONFIGURATION_MESSAGE
    else:
        logger.warning("Analysis failed (%s): %s", exc.kind.value, exc)
        message = str(exc)
    return exc.http_status, {"success": False, "error": message, "kind": exc.kind.value}
