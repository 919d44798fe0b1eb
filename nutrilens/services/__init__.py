"""Service layer exposing the shared analysis request path."""

from .analyzer import AnalysisService

__all__ = ["AnalysisService"]
