"""
Natural-language query intent extraction.

The language model turns a user message into a structured data request:

    {"diseases": [...], "variables": [...], "chartTypes": [...], "title": "..."}

Nothing the model returns is trusted beyond validation here: diseases are
case-folded, variables are checked against the closed VariableKey set
(unknown values dropped), chart types are checked against ChartType.

Key functions:
- parse_data_request / parse_data_requests: Validate model payloads
- extract_intent: Strict-JSON intent extraction for one message
- interpret_message: Dashboard flow (chart request or plain-text answer)
- answer_question: Plain-text answer for general questions
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog

from survey_analytics.core.config import (
    KNOWN_DISEASES,
    LLM_TIMEOUT_ANSWER_S,
    LLM_TIMEOUT_INTENT_S,
    SURVEY_LOCATION,
)
from survey_analytics.core.errors import LLMResponseError, LLMUnavailableError
from survey_analytics.core.llm_feature import LLMCallResult, LLMFeature, call_llm
from survey_analytics.core.llm_json import parse_json_response, validate_shape
from survey_analytics.core.variables import VariableKey, lookup_variable

logger = structlog.get_logger()

VISUALIZATION_KEYWORDS = (
    "show",
    "display",
    "visualize",
    "graph",
    "chart",
    "plot",
    "correlation",
    "comparison",
    "trend",
    "bar",
    "line",
    "pie",
    "data",
    "analyze",
)

DISEASE_KEYWORDS = ("malaria", "cholera", "heat stress", "disease")


class ChartType(str, Enum):
    """Chart renderers available in the dashboard."""

    BAR = "bar"
    LINE = "line"
    PIE = "pie"

    def __str__(self) -> str:
        return self.value


DEFAULT_CHART_TYPES = (ChartType.BAR,)


@dataclass
class DataRequest:
    """Validated chart request extracted from a user message."""

    diseases: list[str] = field(default_factory=list)
    variables: list[VariableKey] = field(default_factory=list)
    chart_types: list[ChartType] = field(default_factory=lambda: list(DEFAULT_CHART_TYPES))
    title: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the dashboard's camelCase wire names."""
        return {
            "diseases": list(self.diseases),
            "variables": [v.value for v in self.variables],
            "chartTypes": [c.value for c in self.chart_types],
            "title": self.title,
        }


@dataclass
class MessageInterpretation:
    """Outcome of the dashboard chat flow: chart requests, or a text reply."""

    requests: list[DataRequest]
    reply: str | None = None

    @property
    def is_chart_request(self) -> bool:
        return bool(self.requests)


def _clean_strings(values: list[Any]) -> list[str]:
    cleaned: list[str] = []
    for value in values:
        if not isinstance(value, str):
            continue
        item = value.strip()
        if item and item not in cleaned:
            cleaned.append(item)
    return cleaned


def parse_data_request(payload: Any) -> DataRequest | None:
    """
    Validate one model payload into a DataRequest.

    Args:
        payload: Parsed JSON from the model

    Returns:
        DataRequest, or None if the payload lacks the diseases/variables arrays.
        Unknown variables and chart types are dropped; an empty chart type list
        falls back to ["bar"].
    """
    validation = validate_shape(payload, "data_request")
    if not validation.valid:
        logger.debug("data_request_invalid", errors=validation.errors)
        return None

    diseases = [d.lower() for d in _clean_strings(payload["diseases"] or [])]

    variables: list[VariableKey] = []
    for raw in _clean_strings(payload["variables"] or []):
        key = lookup_variable(raw)
        if key is None:
            logger.info("data_request_unknown_variable_ignored", variable=raw)
            continue
        if key not in variables:
            variables.append(key)

    chart_types: list[ChartType] = []
    for raw in _clean_strings(payload.get("chartTypes") or []):
        try:
            chart_type = ChartType(raw.lower())
        except ValueError:
            logger.info("data_request_unknown_chart_type_ignored", chart_type=raw)
            continue
        if chart_type not in chart_types:
            chart_types.append(chart_type)
    if not chart_types:
        chart_types = list(DEFAULT_CHART_TYPES)

    title = payload.get("title")
    if isinstance(title, str):
        title = title.strip() or None
    else:
        title = None

    return DataRequest(diseases=diseases, variables=variables, chart_types=chart_types, title=title)


def parse_data_requests(payload: Any) -> list[DataRequest]:
    """
    Validate a payload holding one request object or a list of them.

    A list is accepted only when every element is a valid request.
    """
    if isinstance(payload, list):
        requests = [parse_data_request(item) for item in payload]
        if requests and all(r is not None for r in requests):
            return requests
        return []

    request = parse_data_request(payload)
    return [request] if request is not None else []


def is_visualization_query(message: str) -> bool:
    """Keyword heuristic: a visualization word and a disease word are both present."""
    lowered = message.lower()
    has_visualization = any(keyword in lowered for keyword in VISUALIZATION_KEYWORDS)
    has_disease = any(keyword in lowered for keyword in DISEASE_KEYWORDS)
    return has_visualization and has_disease


def _variable_lines() -> str:
    return "\n".join(f"- {key.value} (e.g. {key.fragment})" for key in VariableKey)


def intent_system_prompt() -> str:
    """Strict-JSON prompt for intent extraction."""
    variables = ", ".join(key.value for key in VariableKey)
    diseases = ", ".join(KNOWN_DISEASES)
    chart_types = ", ".join(c.value for c in ChartType)
    return f"""You are a JSON response generator for a disease data analysis dashboard.
Respond STRICTLY with valid JSON in this exact format:
{{
  "diseases": ["array of disease names mentioned"],
  "variables": ["array of variables mentioned"],
  "chartTypes": ["array of chart types mentioned"],
  "title": "short descriptive chart title"
}}
Rules:
1. Only include {diseases} in diseases
2. Only valid variables are: {variables}
3. Only valid chart types: {chart_types}
4. No additional text or explanation
5. If no chart type specified, default to ["bar"]
6. If no disease is mentioned, include all diseases"""


def dashboard_system_prompt() -> str:
    """Prompt for the chat flow: JSON for chart requests, plain text otherwise."""
    diseases = ", ".join(KNOWN_DISEASES)
    return f"""You are a knowledgeable assistant for a disease data dashboard in {SURVEY_LOCATION}.
Answer general or contextual questions clearly. The available diseases are {diseases}.
Only refer to the following valid variables:
{_variable_lines()}

If the user's question asks for data about a disease and/or one or more of these variables,
respond ONLY with a JSON object (no extra description) containing:
- chartTypes: list of chart types, "bar" by default; use "line" or "pie" if the user asks for them
- diseases: diseases from the user input; all diseases when none is mentioned
- variables: variables from the user input
- title: a descriptive string of the chart context

If the question is unrelated, respond accurately and professionally with plain text."""


def general_system_prompt() -> str:
    """Plain-text prompt for general health questions."""
    diseases = ", ".join(KNOWN_DISEASES)
    return f"""You are a knowledgeable medical assistant specializing in {diseases}.
Provide clear, accurate information about:
- Disease symptoms and prevention
- Treatment options
- Climate change impacts on health
- General health advice
- Data analysis concepts

For questions about this dashboard's data:
- We cover {SURVEY_LOCATION}
- Data includes age, gender, seasonal patterns and household survey answers

Keep responses professional yet accessible."""


def _raise_for_unavailable(result: LLMCallResult, feature: LLMFeature) -> None:
    if result.error in ("ollama_unavailable", "timeout"):
        raise LLMUnavailableError(f"Language model unavailable for {feature.value}: {result.error}")


def extract_intent(message: str) -> list[DataRequest]:
    """
    Extract structured chart requests from a user message (strict JSON mode).

    Args:
        message: Free-text user message

    Returns:
        Validated DataRequests (empty if the model's JSON had the wrong shape)

    Raises:
        LLMUnavailableError: Model unreachable or timed out
        LLMResponseError: Model returned text that is not JSON
    """
    result = call_llm(
        feature=LLMFeature.INTENT_EXTRACTION,
        system=intent_system_prompt(),
        user=message,
        timeout_s=LLM_TIMEOUT_INTENT_S,
        json_mode=True,
        temperature=0.7,
    )
    _raise_for_unavailable(result, LLMFeature.INTENT_EXTRACTION)
    if result.payload is None:
        raise LLMResponseError("The language model did not return valid JSON")

    requests = parse_data_requests(result.payload)
    logger.info(
        "intent_extracted",
        message=message[:100],
        request_count=len(requests),
        latency_ms=result.latency_ms,
    )
    return requests


def ask_dashboard(message: str) -> str:
    """
    Raw dashboard-assistant reply: chart JSON text or a plain-text answer.

    Raises:
        LLMUnavailableError: Model unreachable or timed out
    """
    result = call_llm(
        feature=LLMFeature.CHART_ASSISTANT,
        system=dashboard_system_prompt(),
        user=message,
        timeout_s=LLM_TIMEOUT_ANSWER_S,
        json_mode=False,
        temperature=0.6,
    )
    _raise_for_unavailable(result, LLMFeature.CHART_ASSISTANT)
    return result.raw_text or ""


def interpret_message(message: str) -> MessageInterpretation:
    """
    Dashboard chat flow: the model answers with chart JSON or plain text.

    A reply that parses into at least one valid DataRequest is a chart
    request; anything else is returned as text.

    Raises:
        LLMUnavailableError: Model unreachable or timed out
    """
    reply = ask_dashboard(message)
    payload = parse_json_response(reply) if "{" in reply else None
    requests = parse_data_requests(payload) if payload is not None else []

    if requests:
        return MessageInterpretation(requests=requests)
    return MessageInterpretation(requests=[], reply=reply)


def answer_question(message: str) -> str:
    """
    Plain-text answer to a chat message.

    Visualization-style messages get chart guidance, everything else the
    general medical assistant prompt.

    Raises:
        LLMUnavailableError: Model unreachable or timed out
    """
    general = not is_visualization_query(message)
    if general:
        feature, system, temperature = LLMFeature.GENERAL_ANSWER, general_system_prompt(), 0.3
    else:
        feature, system, temperature = LLMFeature.CHART_ASSISTANT, dashboard_system_prompt(), 0.7

    result = call_llm(
        feature=feature,
        system=system,
        user=message,
        timeout_s=LLM_TIMEOUT_ANSWER_S,
        json_mode=False,
        temperature=temperature,
    )
    _raise_for_unavailable(result, feature)
    return result.raw_text or ""
