"""Recover and validate JSON objects embedded in free-form model output.

Models are told to return bare JSON but routinely wrap it in prose or code
fences. Extraction tries a direct parse first, then the span between the first
``{`` and the last ``}``. Boundaries are located here; parsing is always left to
:mod:`json`.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any

from src.evaluation.errors import ExtractionError, UpstreamMalformedResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResponseSchema:
    """Required-field schema for one upstream response variant.

    ``required`` maps a field name to the accepted Python types. Each group in
    ``any_of`` must have at least one of its fields present and well-typed.
    """

    name: str
    required: dict[str, tuple[type, ...]] = field(default_factory=dict)
    any_of: tuple[dict[str, tuple[type, ...]], ...] = ()


def _loads_object(text: str) -> dict[str, Any] | None:
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def extract_json_object(raw_text: str) -> dict[str, Any]:
    """Return the JSON object contained in ``raw_text``.

    Raises:
        ExtractionError: No JSON object could be recovered.
    """
    trimmed = (raw_text or "").strip()
    if not trimmed:
        raise ExtractionError(raw_text or "")

    data = _loads_object(trimmed)
    if data is not None:
        return data

    start = trimmed.find("{")
    end = trimmed.rfind("}")
    if start >= 0 and end > start:
        data = _loads_object(trimmed[start : end + 1])
        if data is not None:
            return data

    raise ExtractionError(raw_text)


def _is_finite(value: int | float) -> bool:
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def _matches(value: Any, types: tuple[type, ...]) -> bool:
    # bool is an int subclass; never let True/False pass as a score
    if isinstance(value, bool) and bool not in types:
        return False
    if isinstance(value, str) and str in types:
        return bool(value.strip())
    # json accepts NaN, Infinity and literals too large for a float
    if isinstance(value, (int, float)) and not _is_finite(value):
        return False
    return isinstance(value, types)


def validate_response(data: dict[str, Any], schema: ResponseSchema, raw: str) -> dict[str, Any]:
    """Check ``data`` against ``schema``; the raw text rides along on failure."""
    problems: list[str] = []

    for name, types in schema.required.items():
        if name not in data or data[name] is None:
            problems.append(f"missing '{name}'")
        elif not _matches(data[name], types):
            problems.append(f"'{name}' has unexpected type {type(data[name]).__name__}")

    for group in schema.any_of:
        if not any(name in data and _matches(data[name], types) for name, types in group.items()):
            problems.append("one of " + ", ".join(f"'{n}'" for n in group) + " is required")

    if problems:
        logger.error("Malformed %s response (%s): %s", schema.name, "; ".join(problems), raw)
        raise UpstreamMalformedResponse(
            f"Malformed {schema.name} response: {'; '.join(problems)}.",
            raw=raw,
        )
    return data


def parse_upstream(raw_text: str, schema: ResponseSchema) -> dict[str, Any]:
    """Extract then validate a model response in one step."""
    try:
        data = extract_json_object(raw_text)
    except ExtractionError:
        logger.error("%s response was not valid JSON: %s", schema.name, raw_text)
        raise
    return validate_response(data, schema, raw_text)
