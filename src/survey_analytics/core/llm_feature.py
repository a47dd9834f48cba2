"""
LLMFeature enum and unified call_llm() wrapper.

This module provides a single choke point for all LLM calls, ensuring:
- Consistent logging and observability
- Standardized timeout handling
- Uniform error handling
- Automatic JSON parsing (JSON-mode features)
- Latency tracking

All LLM features must use call_llm() instead of calling OllamaClient directly.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from survey_analytics.core.config import LLM_TIMEOUT_MAX_S, OLLAMA_DEFAULT_MODEL
from survey_analytics.core.llm_client import OllamaClient
from survey_analytics.core.llm_json import parse_json_response

logger = structlog.get_logger()


class LLMFeature(Enum):
    """
    Enumeration of all LLM features in the system.

    - INTENT_EXTRACTION: Free-text message -> {diseases, variables, chartTypes}
    - CHART_ASSISTANT: Guidance on phrasing visualization requests
    - GENERAL_ANSWER: Free-text health / dashboard questions
    """

    INTENT_EXTRACTION = "intent_extraction"
    CHART_ASSISTANT = "chart_assistant"
    GENERAL_ANSWER = "general_answer"


@dataclass
class LLMCallResult:
    """
    Result of a unified LLM call.

    Attributes:
        raw_text: Raw text response from LLM (None if unavailable/timeout)
        payload: Parsed JSON payload (None if parsing failed or json_mode off)
        latency_ms: Time taken for LLM call in milliseconds
        timed_out: Whether the call timed out
        error: Error type if call failed (None on success)
    """

    raw_text: str | None
    payload: dict[str, Any] | list[Any] | None
    latency_ms: float
    timed_out: bool
    error: str | None


def call_llm(
    feature: LLMFeature,
    system: str,
    user: str,
    timeout_s: float,
    model: str | None = None,
    json_mode: bool = True,
    temperature: float | None = None,
) -> LLMCallResult:
    """
    Unified LLM call wrapper with consistent logging and error handling.

    Args:
        feature: LLMFeature indicating what this call is for
        system: System prompt
        user: User prompt
        timeout_s: Timeout in seconds (capped at LLM_TIMEOUT_MAX_S)
        model: Optional model override (defaults to OLLAMA_DEFAULT_MODEL)
        json_mode: Request strict JSON and parse it (default: True)
        temperature: Optional sampling temperature

    Returns:
        LLMCallResult with raw_text, parsed payload, latency, timeout/error flags.
        error is one of "ollama_unavailable", "timeout", "json_parse_failed" or None.
    """
    start_time = time.perf_counter()
    timeout_s = min(timeout_s, LLM_TIMEOUT_MAX_S)

    if model is None:
        model = OLLAMA_DEFAULT_MODEL

    client = OllamaClient(model=model, timeout=timeout_s)

    if not client.is_available():
        latency_ms = (time.perf_counter() - start_time) * 1000
        logger.warning(
            "llm_call_unavailable",
            feature=feature.value,
            model=model,
            timeout_s=timeout_s,
            latency_ms=latency_ms,
        )
        return LLMCallResult(
            raw_text=None,
            payload=None,
            latency_ms=latency_ms,
            timed_out=False,
            error="ollama_unavailable",
        )

    raw_text = client.generate(
        prompt=user,
        system_prompt=system,
        json_mode=json_mode,
        temperature=temperature,
    )

    latency_ms = (time.perf_counter() - start_time) * 1000

    if raw_text is None:
        logger.warning(
            "llm_call_timeout",
            feature=feature.value,
            model=model,
            timeout_s=timeout_s,
            latency_ms=latency_ms,
        )
        return LLMCallResult(
            raw_text=None,
            payload=None,
            latency_ms=latency_ms,
            timed_out=True,
            error="timeout",
        )

    if not json_mode:
        logger.info(
            "llm_call_success",
            feature=feature.value,
            model=model,
            latency_ms=latency_ms,
            text_length=len(raw_text),
        )
        return LLMCallResult(
            raw_text=raw_text,
            payload=None,
            latency_ms=latency_ms,
            timed_out=False,
            error=None,
        )

    payload = parse_json_response(raw_text)

    if payload is None:
        logger.warning(
            "llm_call_json_parse_failed",
            feature=feature.value,
            model=model,
            timeout_s=timeout_s,
            latency_ms=latency_ms,
            raw_length=len(raw_text),
        )
        return LLMCallResult(
            raw_text=raw_text,
            payload=None,
            latency_ms=latency_ms,
            timed_out=False,
            error="json_parse_failed",
        )

    logger.info(
        "llm_call_success",
        feature=feature.value,
        model=model,
        timeout_s=timeout_s,
        latency_ms=latency_ms,
        payload_keys=list(payload.keys()) if isinstance(payload, dict) else f"array[{len(payload)}]",
    )

    return LLMCallResult(
        raw_text=raw_text,
        payload=payload,
        latency_ms=latency_ms,
        timed_out=False,
        error=None,
    )
