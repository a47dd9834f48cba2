"""Dashboard data API routes.

Endpoints:
- GET /api/data?type=analytics&diseases=...&variables=... - Aggregated counts
- GET /api/data?type=diseases - Active diseases (cached)
- GET /api/data?type=questions - Active questions (cached)
- GET /api/data?type=summary - Totals for the dashboard header (cached)
- GET /api/data?type=general&question=... - Assistant reply (chart JSON or text)
- GET /api/diseases-groups - Individual answers grouped by disease
"""

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Query, status
from sqlalchemy.exc import SQLAlchemyError

from survey_analytics.api.dependencies import ReferenceCacheDep, RepositoryDep
from survey_analytics.api.errors import raise_api_error, raise_llm_unavailable, raise_storage_error
from survey_analytics.api.models import schemas
from survey_analytics.core.aggregator import aggregate, parse_csv_param
from survey_analytics.core.errors import AggregationInputError, LLMUnavailableError, UnknownVariableError
from survey_analytics.core.intent import ask_dashboard
from survey_analytics.core.variables import VariableKey, coerce_variable_filter, lookup_variable
from survey_analytics.storage.survey_repository import SurveyRepository

logger = structlog.get_logger()

router = APIRouter()


# ============================================================================
# GET /api/data - Dispatch on type
# ============================================================================


@router.get(
    "/data",
    response_model=schemas.AnalyticsResponse | schemas.ReferenceDataResponse | schemas.GeneralAnswerResponse,
)
def get_data(
    repo: RepositoryDep,
    cache: ReferenceCacheDep,
    data_type: Annotated[str | None, Query(alias="type", description="Data type to fetch")] = None,
    diseases: Annotated[str | None, Query(description="Comma-separated disease names")] = None,
    variables: Annotated[str | None, Query(description="Comma-separated variable keys")] = None,
    question: Annotated[str | None, Query(description="Question for type=general")] = None,
) -> Any:
    """
    Fetch dashboard data by type.

    Example:
        GET /api/data?type=analytics&diseases=Malaria&variables=age

        Response (200):
        {
            "success": true,
            "data": {"malaria": {"age": {"Above 35": 5, "Below 35": 3}}},
            "meta": {"diseases": ["malaria"], "variables": ["age"], "skipped": {...}}
        }
    """
    if data_type not in schemas.VALID_DATA_TYPES:
        raise_api_error(
            status.HTTP_400_BAD_REQUEST,
            "Invalid request",
            "Missing or invalid type parameter",
            {"validTypes": list(schemas.VALID_DATA_TYPES)},
        )

    if data_type == "analytics":
        return _analytics(repo, diseases, variables)
    if data_type == "general":
        return _general(question)

    loaders = {
        "diseases": repo.get_diseases,
        "questions": repo.get_questions,
        "summary": repo.get_summary,
    }
    try:
        data, cached = cache.get_or_load(data_type, loaders[data_type])
    except SQLAlchemyError as e:
        logger.error("reference_data_fetch_failed", data_type=data_type, error=str(e))
        raise_storage_error(e)

    return schemas.ReferenceDataResponse(data=data, cached=cached)


def _analytics(repo: SurveyRepository, diseases: str | None, variables: str | None) -> schemas.AnalyticsResponse:
    disease_list = parse_csv_param(diseases, lowercase=True)
    if not disease_list:
        raise_api_error(
            status.HTTP_400_BAD_REQUEST,
            "Invalid request",
            "At least one disease must be specified for analytics data",
        )

    requested = parse_csv_param(variables)
    keys = coerce_variable_filter(requested)
    ignored = [v for v in requested if lookup_variable(v) is None]
    variable_list = [key.value for key in VariableKey if key in keys]

    try:
        rows = repo.get_analytics_rows(disease_list, keys)
    except SQLAlchemyError as e:
        logger.error("analytics_fetch_failed", diseases=disease_list, error=str(e))
        raise_storage_error(e)

    try:
        result = aggregate(rows, disease_list, keys)
    except (UnknownVariableError, AggregationInputError) as e:
        logger.error("analytics_aggregation_failed", diseases=disease_list, error=str(e))
        raise_api_error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Aggregation failed",
            str(e),
            {"error_type": type(e).__name__},
        )

    logger.info(
        "analytics_served",
        diseases=disease_list,
        variables=variable_list or "all",
        ignored_variables=ignored,
        **result.stats.to_dict(),
    )

    return schemas.AnalyticsResponse(
        data=result.to_dict(),
        meta=schemas.AnalyticsMeta(
            diseases=disease_list,
            variables=variable_list or "all",
            skipped={
                "malformed": result.stats.skipped_malformed,
                "unclassified": result.stats.skipped_unclassified,
                "filtered": result.stats.skipped_filtered,
            },
            ignored_variables=ignored,
        ),
    )


def _general(question: str | None) -> schemas.GeneralAnswerResponse:
    if not question or not question.strip():
        raise_api_error(
            status.HTTP_400_BAD_REQUEST,
            "Missing question",
            "A question must be provided via the `question` query parameter.",
        )

    try:
        reply = ask_dashboard(question)
    except LLMUnavailableError as e:
        raise_llm_unavailable(e)

    return schemas.GeneralAnswerResponse(reply=reply or "No response generated.")


# ============================================================================
# GET /api/diseases-groups - Grouped individual answers
# ============================================================================


@router.get("/diseases-groups")
def get_disease_groups(repo: RepositoryDep) -> dict[str, list[dict[str, Any]]]:
    """
    Individual answers grouped by disease.

    Example:
        GET /api/diseases-groups

        Response (200):
        {"Malaria": [{"responder_id": "r1", "question": "...", "answer": "Yes"}]}
    """
    try:
        return repo.get_grouped_responses()
    except SQLAlchemyError as e:
        logger.error("disease_groups_fetch_failed", error=str(e))
        raise_storage_error(e)
