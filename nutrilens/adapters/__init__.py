"""Thin hosting adapters around ``AnalysisService``."""

from .common import error_response, payload_from_body, success_body
from .serverless import make_function_handler, netlify_handler, vercel_handler

__all__ = [
    "error_response",
    "make_function_handler",
    "netlify_handler",
    "payload_from_body",
    "success_body",
    "vercel_handler",
]
