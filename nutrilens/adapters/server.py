"""FastAPI application for long-running server deployments."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .. import __version__
from ..config import AppConfig
from ..providers.base import AnalysisError, InvalidInputError
from ..services.analyzer import AnalysisService
from .common import error_response, payload_from_body, success_body

logger = logging.getLogger(__name__)


class AnalyzeRequest(BaseModel):
    dataUrl: str | None = None


def create_app(config: AppConfig, *, service: AnalysisService | None = None) -> FastAPI:
    """Build the app around a single shared ``AnalysisService``."""
    analysis_service = service or AnalysisService(config)

    app = FastAPI(
        title="Nutrilens API",
        version=__version__,
        description="Food photo nutrition analysis backed by a vision-language model.",
    )

    @app.exception_handler(AnalysisError)
    async def _analysis_error_handler(request: Request, exc: AnalysisError) -> JSONResponse:
        status, body = error_response(exc)
        return JSONResponse(status_code=status, content=body)

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        status, body = error_response(InvalidInputError(f"Malformed request body: {exc.errors()}"))
        return JSONResponse(status_code=status, content=body)

    @app.post("/api/analyze")
    def analyze(body: AnalyzeRequest) -> dict[str, Any]:
        image = payload_from_body(body.model_dump(), max_bytes=config.max_image_bytes)
        result = analysis_service.analyze(image, config.server_platform)
        return success_body(result)

    @app.get("/health")
    def health_check() -> dict[str, str]:
        return {
            "status": "ok",
            "model": config.model,
            "platform": config.server_platform.value,
        }

    return app
