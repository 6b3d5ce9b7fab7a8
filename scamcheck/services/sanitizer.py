"""Turns a raw model completion into a report the UI can render safely.

The contract is deliberately shallow: the reply is parsed as JSON (with one
brace-extraction attempt when the model wrapped it in prose), ``confidence`` is
forced into ``[0, 1]`` and the four list fields are guaranteed to be lists.
Nested elements are passed through untouched. ``validate_report`` offers an
opt-in full schema check on top of that.
"""

import json
import logging
import math
from typing import Any

from pydantic import ValidationError

from ..models.analysis import AnalysisReport
from .errors import InvalidResponseError, ReportValidationError

logger = logging.getLogger(__name__)

LIST_FIELDS = ("red_flags", "inconsistencies", "next_steps", "safety_notes")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant: {name}")


def _finite_float(text: str) -> Any:
    # 1e400 is valid JSON but overflows to inf; emit null like a JS serializer.
    value = float(text)
    return value if math.isfinite(value) else None


def _strict_loads(text: str) -> Any:
    """json.loads without the NaN / Infinity extensions or overflowing floats."""
    return json.loads(text, parse_float=_finite_float, parse_constant=_reject_constant)


def _extract_braced(text: str) -> Any:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1:
        raise ValueError("no JSON object found")
    return _strict_loads(text[start:end + 1])


def _is_empty(value: Any) -> bool:
    # null, false, 0 and "" are not a usable reply.
    if isinstance(value, (list, dict)):
        return False
    return value is None or value is False or value == 0 or value == ""


def parse_completion(raw: str) -> Any:
    try:
        parsed = _strict_loads(raw)
    except (ValueError, RecursionError):
        try:
            parsed = _extract_braced(raw)
        except (ValueError, RecursionError):
            logger.warning("Model reply is not JSON (%d chars).", len(raw))
            raise InvalidResponseError(raw) from None
        logger.info("Recovered JSON from a wrapped model reply.")

    if _is_empty(parsed):
        raise InvalidResponseError(raw)
    return parsed


def _to_number(value: Any) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0
    try:
        return float(value)
    except (TypeError, ValueError, OverflowError):
        return math.nan


def clamp_confidence(value: Any) -> float:
    number = _to_number(value)
    if not math.isfinite(number):
        return 0.0
    return max(0.0, min(1.0, number))


def normalize(value: Any) -> Any:
    if not isinstance(value, dict):
        return value

    value["confidence"] = clamp_confidence(value.get("confidence"))

    for field in LIST_FIELDS:
        if not isinstance(value.get(field), list):
            value[field] = []

    return value


def sanitize(raw: str) -> Any:
    return normalize(parse_completion(raw))


def validate_report(value: Any) -> AnalysisReport:
    try:
        return AnalysisReport.model_validate(value)
    except ValidationError as exc:
        raise ReportValidationError(str(exc)) from exc
