"""FastAPI backend for the survey analytics dashboard.

This module provides the REST API consumed by the dashboard frontend.

Architecture:
- API routes: Data (analytics, reference data, general answers), chat, charts
- Services: Survey repository, reference data cache, LLM intent extraction
- Models: Pydantic schemas (API contracts) + SQLAlchemy (survey tables)
- Dependencies: Repository and cache injection
"""
