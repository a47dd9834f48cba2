"""Pydantic models for API request/response schemas.

These models define the API contracts between the dashboard frontend and
the backend. Wire names follow the frontend's camelCase where it expects them.
"""

from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# ============================================================================
# Data API Schemas
# ============================================================================

DataType = Literal["analytics", "diseases", "questions", "summary", "general"]
VALID_DATA_TYPES: tuple[str, ...] = ("analytics", "diseases", "questions", "summary", "general")


class AnalyticsMeta(BaseModel):
    """Echo of the filters applied to an analytics request."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    diseases: list[str] = Field(..., description="Lowercased disease filter")
    variables: list[str] | Literal["all"] = Field(..., description="Validated variable filter, or 'all'")
    skipped: dict[str, int] = Field(default_factory=dict, description="Row accounting from the aggregator")
    ignored_variables: list[str] = Field(
        default_factory=list,
        alias="ignoredVariables",
        description="Requested variables outside the known set, dropped before filtering",
    )


class AnalyticsResponse(BaseModel):
    """Nested disease -> variable -> category -> count mapping."""

    model_config = ConfigDict(extra="forbid")

    success: bool = True
    data: dict[str, dict[str, dict[str, int]]] = Field(..., description="Aggregated counts")
    meta: AnalyticsMeta


class ReferenceDataResponse(BaseModel):
    """Diseases, questions or summary block, possibly served from cache."""

    model_config = ConfigDict(extra="forbid")

    success: bool = True
    data: Any = Field(..., description="Reference data payload")
    cached: bool = Field(False, description="True when served from the reference cache")


class GeneralAnswerResponse(BaseModel):
    """Free-text (or JSON text) reply to a general question."""

    model_config = ConfigDict(extra="forbid")

    success: bool = True
    reply: str


# ============================================================================
# Chat Schemas
# ============================================================================


class ChatRequest(BaseModel):
    """Chat message from the dashboard."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    message: str = Field(..., min_length=1, description="User message")
    is_json_request: bool = Field(
        False,
        alias="isJSONRequest",
        description="Ask for a strict-JSON intent object instead of text",
    )


class DataRequestModel(BaseModel):
    """Validated chart intent."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    diseases: list[str]
    variables: list[str]
    chart_types: list[Literal["bar", "line", "pie"]] = Field(..., alias="chartTypes")
    title: Optional[str] = None


class ChatResponse(BaseModel):
    """Reply text, or a list of validated intents for JSON requests."""

    model_config = ConfigDict(extra="forbid")

    reply: str | list[DataRequestModel]


class ChartsRequest(BaseModel):
    """Natural-language chart request."""

    model_config = ConfigDict(extra="forbid")

    message: str = Field(..., min_length=1, description="User message")


class ChartsResponse(BaseModel):
    """Chart payloads, or a text reply when the message was not a chart request."""

    model_config = ConfigDict(extra="forbid")

    success: bool = True
    charts: list[dict[str, Any]] = Field(default_factory=list)
    reply: Optional[str] = None


# ============================================================================
# Error Response Schema
# ============================================================================


class ErrorResponse(BaseModel):
    """Standard error response format."""

    model_config = ConfigDict(extra="forbid")

    success: bool = False
    error: str = Field(..., description="Error type or code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), description="Error timestamp (UTC)"
    )
