"""Chat and natural-language chart API routes.

Endpoints:
- POST /api/chat - Assistant reply, or strict-JSON intent extraction
- POST /api/charts - Message -> intent -> aggregation -> chart payloads
"""

from dataclasses import replace

import structlog
from fastapi import APIRouter, status
from sqlalchemy.exc import SQLAlchemyError

from survey_analytics.api.dependencies import RepositoryDep
from survey_analytics.api.errors import raise_api_error, raise_llm_unavailable, raise_storage_error
from survey_analytics.api.models import schemas
from survey_analytics.core.aggregator import aggregate
from survey_analytics.core.charts import build_chart
from survey_analytics.core.errors import (
    AggregationInputError,
    LLMResponseError,
    LLMUnavailableError,
    UnknownVariableError,
)
from survey_analytics.core.intent import DataRequest, answer_question, extract_intent, interpret_message
from survey_analytics.storage.survey_repository import SurveyRepository

logger = structlog.get_logger()

router = APIRouter()


# ============================================================================
# POST /api/chat - Chat reply or intent extraction
# ============================================================================


@router.post("/chat", response_model=schemas.ChatResponse)
def chat(request: schemas.ChatRequest) -> schemas.ChatResponse:
    """
    Reply to a chat message.

    With isJSONRequest the model runs in strict JSON mode and the reply is the
    list of validated intents; otherwise the reply is plain text.

    Example:
        POST /api/chat
        {"message": "Show malaria cases by age as a pie chart", "isJSONRequest": true}

        Response (200):
        {"reply": [{"diseases": ["malaria"], "variables": ["age"], "chartTypes": ["pie"], "title": null}]}
    """
    if not request.is_json_request:
        try:
            reply = answer_question(request.message)
        except LLMUnavailableError as e:
            raise_llm_unavailable(e)
        return schemas.ChatResponse(reply=reply)

    try:
        intents = extract_intent(request.message)
    except LLMUnavailableError as e:
        raise_llm_unavailable(e)
    except LLMResponseError as e:
        raise_api_error(
            status.HTTP_502_BAD_GATEWAY,
            "Invalid JSON response from AI",
            str(e),
        )

    if not intents:
        raise_api_error(
            status.HTTP_502_BAD_GATEWAY,
            "Invalid JSON response from AI",
            "The AI response did not contain a valid data request",
        )

    return schemas.ChatResponse(reply=[schemas.DataRequestModel(**intent.to_dict()) for intent in intents])


# ============================================================================
# POST /api/charts - End-to-end chart request
# ============================================================================


def _resolve_diseases(request: DataRequest, repo: SurveyRepository) -> DataRequest:
    """A request naming no disease charts every active disease."""
    if request.diseases:
        return request
    diseases = [d["disease_name"].lower() for d in repo.get_diseases()]
    return replace(request, diseases=diseases)


@router.post("/charts", response_model=schemas.ChartsResponse)
def charts(request: schemas.ChartsRequest, repo: RepositoryDep) -> schemas.ChartsResponse:
    """
    Turn a natural-language message into chart payloads.

    When the assistant answers in plain text (not a chart request), the text
    is returned in "reply" and "charts" is empty.
    """
    try:
        interpretation = interpret_message(request.message)
    except LLMUnavailableError as e:
        raise_llm_unavailable(e)

    if not interpretation.is_chart_request:
        return schemas.ChartsResponse(reply=interpretation.reply)

    payloads = []
    for data_request in interpretation.requests:
        try:
            data_request = _resolve_diseases(data_request, repo)
            rows = repo.get_analytics_rows(data_request.diseases, data_request.variables)
        except SQLAlchemyError as e:
            logger.error("chart_data_fetch_failed", diseases=data_request.diseases, error=str(e))
            raise_storage_error(e)

        try:
            result = aggregate(rows, data_request.diseases, data_request.variables)
        except (UnknownVariableError, AggregationInputError) as e:
            logger.error("chart_aggregation_failed", diseases=data_request.diseases, error=str(e))
            raise_api_error(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "Aggregation failed",
                str(e),
                {"error_type": type(e).__name__},
            )

        payloads.append(build_chart(data_request, result.to_dict()).to_dict())

    logger.info("charts_built", message=request.message[:100], chart_count=len(payloads))
    return schemas.ChartsResponse(charts=payloads)
