"""Relational survey store access."""

from survey_analytics.storage.survey_repository import SurveyRepository

__all__ = ["SurveyRepository"]
