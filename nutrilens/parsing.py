"""Recover structured nutrition data from free-text model output."""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Union

from .providers.base import AnalysisResult, FoodItem

logger = logging.getLogger(__name__)

_FENCE_JSON_PATTERN = re.compile(r"```json\s*")
_FENCE_PATTERN = re.compile(r"```\s*")
_JSON_OBJECT_PATTERN = re.compile(r"\{.*\}", re.DOTALL)
_LINE_COMMENT_PATTERN = re.compile(r"//[^\n\r]*")
_BLOCK_COMMENT_PATTERN = re.compile(r"/\*.*?\*/", re.DOTALL)
_TOTAL_CALORIES_PATTERN = re.compile(r"总热量[：:]\s*(\d+)\s*kcal", re.IGNORECASE)

# Lower-cased substrings that mark the text as a food analysis.
FOOD_KEYWORDS = ("食物", "菜品", "热量", "food", "kcal")


@dataclass(frozen=True, slots=True)
class Structured:
    """A JSON object recovered from the model output."""

    data: dict[str, Any]


@dataclass(frozen=True, slots=True)
class Heuristic:
    """No usable JSON; fields must be inferred from the raw text."""

    text: str
    reason: str = ""


ParseOutcome = Union[Structured, Heuristic]


def recover_structured(text: str) -> ParseOutcome:
    """Try to pull a JSON object out of ``text``.

    Markdown fences are removed, the greedy ``{...}`` span is taken and
    ``//`` and ``/* */`` comments are stripped before parsing. Never raises.
    """
    unfenced = _FENCE_PATTERN.sub("", _FENCE_JSON_PATTERN.sub("", text))
    match = _JSON_OBJECT_PATTERN.search(unfenced)
    if match is None:
        return Heuristic(text, reason="no JSON object found")

    candidate = _LINE_COMMENT_PATTERN.sub("", match.group(0))
    candidate = _BLOCK_COMMENT_PATTERN.sub("", candidate)
    logger.debug("Cleaned JSON candidate: %s", candidate)
    try:
        data = json.loads(candidate)
    except (ValueError, RecursionError) as exc:
        return Heuristic(text, reason=f"invalid JSON: {exc}")
    if not isinstance(data, dict):
        return Heuristic(text, reason="JSON value is not an object")
    return Structured(data)


def contains_food_keyword(text: str) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in FOOD_KEYWORDS)


def extract_total_calories(text: str) -> int:
    """Return N from the first ``总热量: N kcal`` line, or 0."""
    match = _TOTAL_CALORIES_PATTERN.search(text)
    if match is None:
        return 0
    try:
        return int(match.group(1))
    except ValueError:
        # Digit runs past the interpreter's int conversion limit.
        return 0


def normalize(outcome: ParseOutcome, raw_text: str) -> AnalysisResult:
    """Build an ``AnalysisResult`` with every field populated."""
    if isinstance(outcome, Heuristic):
        logger.info("Using heuristic fallback (%s).", outcome.reason or "unspecified")
        return AnalysisResult(
            is_food=contains_food_keyword(raw_text),
            foods=[],
            total_calories=extract_total_calories(raw_text),
            description=raw_text,
        )

    data = outcome.data
    total = _coerce_int(_first(data, "totalCalories", "total_calories"))
    if total is None:
        total = extract_total_calories(raw_text)
    description = data.get("description")
    if not isinstance(description, str) or not description.strip():
        description = raw_text
    return AnalysisResult(
        is_food=_coerce_bool(_first(data, "isFood", "is_food")),
        foods=_parse_foods(data.get("foods")),
        total_calories=total,
        description=description,
    )


def parse_analysis(raw_text: str) -> AnalysisResult:
    """Run structured recovery followed by normalization."""
    return normalize(recover_structured(raw_text), raw_text)


def _parse_foods(payload: Any) -> list[FoodItem]:
    if not isinstance(payload, list):
        return []
    foods: list[FoodItem] = []
    for item in payload:
        if isinstance(item, str) and item.strip():
            foods.append(FoodItem(name=item.strip()))
            continue
        if not isinstance(item, dict):
            continue
        name = item.get("name")
        if not isinstance(name, str) or not name.strip():
            continue
        portion = _first(item, "portion", "weight", "amount")
        foods.append(
            FoodItem(
                name=name.strip(),
                portion=str(portion).strip() if portion not in (None, "") else None,
                calories=_coerce_int(item.get("calories")) or 0,
                protein_g=_coerce_float(item.get("protein")),
                carbs_g=_coerce_float(_first(item, "carbs", "carbohydrates")),
                fat_g=_coerce_float(item.get("fat")),
            )
        )
    return foods


def _first(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "1"}
    return bool(value)


def _coerce_float(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        match = re.search(r"-?\d+(?:\.\d+)?", value)
        if match is None:
            return None
        value = match.group(0)
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return max(number, 0.0)


def _coerce_int(value: Any) -> int | None:
    number = _coerce_float(value)
    if number is None:
        return None
    return int(round(number))
