"""
Shared fixtures for API tests.

The test app registers the real routers without the lifespan hook, and
overrides the database session and reference cache dependencies.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from survey_analytics.api.db.database import get_db
from survey_analytics.api.dependencies import get_reference_cache
from survey_analytics.api.routes import chat, data
from survey_analytics.core.reference_cache import ReferenceCache


@pytest.fixture(scope="function")
def test_app():
    """Create FastAPI test app without lifespan."""
    app = FastAPI(title="Survey Analytics API (Test)")
    app.include_router(data.router, prefix="/api", tags=["data"])
    app.include_router(chat.router, prefix="/api", tags=["chat"])
    return app


@pytest.fixture
def reference_cache():
    return ReferenceCache(ttl_seconds=60.0)


@pytest.fixture(scope="function")
def client(test_app, session_factory, seeded_session, reference_cache):
    """FastAPI test client over the seeded survey database."""

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    test_app.dependency_overrides[get_db] = override_get_db
    test_app.dependency_overrides[get_reference_cache] = lambda: reference_cache

    yield TestClient(test_app)

    test_app.dependency_overrides.clear()
