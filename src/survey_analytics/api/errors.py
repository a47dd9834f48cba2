"""HTTP error helpers.

Every failed request gets an explicit ErrorResponse body under "detail",
never a silently empty or fabricated result.
"""

from typing import Any, NoReturn

from fastapi import HTTPException, status

from survey_analytics.api.models.schemas import ErrorResponse


def raise_api_error(
    status_code: int,
    error: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> NoReturn:
    """Raise an HTTPException whose detail is a serialized ErrorResponse."""
    body = ErrorResponse(error=error, message=message, details=details)
    raise HTTPException(status_code=status_code, detail=body.model_dump(mode="json"))


def raise_storage_error(exc: Exception) -> NoReturn:
    raise_api_error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Failed to fetch data",
        "An error occurred while reading survey data",
        {"error_type": type(exc).__name__},
    )


def raise_llm_unavailable(exc: Exception) -> NoReturn:
    raise_api_error(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Language model unavailable",
        str(exc),
    )
