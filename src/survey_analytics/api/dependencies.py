"""FastAPI dependency injection providers.

Provides reusable dependencies for routes:
- Survey repository bound to the request's database session
- Process-wide reference data cache (created in the app lifespan)
"""

from typing import Annotated

from fastapi import Depends, Request

from survey_analytics.api.db.database import DBSession
from survey_analytics.core.config import REFERENCE_CACHE_TTL_SECONDS
from survey_analytics.core.reference_cache import ReferenceCache
from survey_analytics.storage.survey_repository import SurveyRepository


def get_repository(db: DBSession) -> SurveyRepository:
    """Survey repository for the current request."""
    return SurveyRepository(db)


def get_reference_cache(request: Request) -> ReferenceCache:
    """
    Process-wide ReferenceCache stored on app.state.

    Created lazily if the app was started without the lifespan hook
    (e.g. a bare test app), so handlers never see a missing cache.
    """
    cache = getattr(request.app.state, "reference_cache", None)
    if cache is None:
        cache = ReferenceCache(ttl_seconds=REFERENCE_CACHE_TTL_SECONDS)
        request.app.state.reference_cache = cache
    return cache


# ============================================================================
# Type Aliases for Route Injection
# ============================================================================

RepositoryDep = Annotated[SurveyRepository, Depends(get_repository)]
ReferenceCacheDep = Annotated[ReferenceCache, Depends(get_reference_cache)]
