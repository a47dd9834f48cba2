"""
Centralized LLM JSON parsing and validation module.

Single choke point for turning raw model text into Python objects, so no
feature calls json.loads() on model output directly.

Key functions:
- parse_json_response: Parse raw LLM text into Python dict/list
- validate_shape: Validate parsed payload against known schemas

Models asked for JSON still sometimes wrap it in ```json fences or add a
sentence around it. Parsing tries, in order: the raw text, the first fenced
block, then the outermost {...} span.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, cast

import structlog

logger = structlog.get_logger()

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL | re.IGNORECASE)
_LOOSE_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


@dataclass
class ValidationResult:
    """Result of schema validation."""

    valid: bool
    errors: list[str]


def _candidates(raw: str) -> list[str]:
    candidates = [raw.strip()]
    fenced = _FENCED_BLOCK.search(raw)
    if fenced:
        candidates.append(fenced.group(1).strip())
    loose = _LOOSE_OBJECT.search(raw)
    if loose:
        candidates.append(loose.group(0))
    return candidates


def parse_json_response(raw: str | None) -> dict[str, Any] | list[Any] | None:
    """
    Parse raw LLM response into Python dict or list.

    Args:
        raw: Raw text from LLM response (may be None, empty, or malformed)

    Returns:
        Parsed dict/list if valid JSON was found, None otherwise

    Examples:
        >>> parse_json_response('{"diseases": ["malaria"]}')
        {'diseases': ['malaria']}
        >>> parse_json_response('```json\\n{"a": 1}\\n```')
        {'a': 1}
        >>> parse_json_response('not json') is None
        True
    """
    if raw is None or raw.strip() == "":
        logger.debug("llm_json_parse_empty", raw=raw)
        return None

    for candidate in _candidates(raw):
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, (dict, list)):
            logger.debug("llm_json_parse_success", length=len(candidate))
            return cast(dict[str, Any] | list[Any], parsed)

    logger.warning(
        "llm_json_parse_failed",
        raw_length=len(raw),
        raw_preview=raw[:100] if len(raw) > 100 else raw,
    )
    return None


# Schema definitions
# Each schema defines required fields and their expected types
_SCHEMAS: dict[str, dict[str, Any]] = {
    "data_request": {
        "required_fields": ["diseases", "variables"],
        "optional_fields": ["chartTypes", "title"],
        "field_types": {
            "diseases": list,
            "variables": list,
            "chartTypes": list,
            "title": str,
        },
        "list_item_types": {
            "diseases": str,
            "variables": str,
            "chartTypes": str,
        },
    },
}


def validate_shape(payload: dict[str, Any] | list[Any] | None, schema_name: str) -> ValidationResult:
    """
    Validate parsed JSON payload against expected schema.

    Args:
        payload: Parsed JSON (dict)
        schema_name: Name of schema to validate against (e.g., "data_request")

    Returns:
        ValidationResult with valid flag and error list

    Examples:
        >>> validate_shape({"diseases": ["malaria"], "variables": ["age"]}, "data_request").valid
        True
        >>> validate_shape({"diseases": ["malaria"]}, "data_request").errors
        ['Missing required field: variables']
    """
    if payload is None:
        return ValidationResult(valid=False, errors=["Payload is None"])

    if schema_name not in _SCHEMAS:
        return ValidationResult(
            valid=False,
            errors=[f"Unknown schema: {schema_name}. Available schemas: {list(_SCHEMAS.keys())}"],
        )

    schema = _SCHEMAS[schema_name]
    errors: list[str] = []

    if not isinstance(payload, dict):
        errors.append(f"Expected dict for schema '{schema_name}', got {type(payload).__name__}")
        return ValidationResult(valid=False, errors=errors)

    for required in schema.get("required_fields", []):
        if required not in payload:
            errors.append(f"Missing required field: {required}")

    for name, expected_type in schema.get("field_types", {}).items():
        if name in payload and payload[name] is not None and not isinstance(payload[name], expected_type):
            errors.append(
                f"Field '{name}' has wrong type: expected {expected_type.__name__}, got {type(payload[name]).__name__}"
            )

    for name, item_type in schema.get("list_item_types", {}).items():
        value = payload.get(name)
        if isinstance(value, list):
            for idx, item in enumerate(value):
                if not isinstance(item, item_type):
                    errors.append(f"Field '{name}' item {idx} has wrong type: got {type(item).__name__}")

    if errors:
        logger.warning(
            "llm_json_validation_failed",
            schema=schema_name,
            errors=errors,
            payload_keys=list(payload.keys()),
        )
        return ValidationResult(valid=False, errors=errors)

    logger.debug("llm_json_validation_success", schema=schema_name)
    return ValidationResult(valid=True, errors=[])
