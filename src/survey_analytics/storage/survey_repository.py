"""
SurveyRepository - read access to the survey store.

All queries only report active diseases and questions. The analytics query
returns rows already grouped and counted by (disease, question, choice); the
aggregator never sees individual responses.

Database errors (SQLAlchemyError) are not caught here: a failed fetch is a
request-level failure, surfaced by the API layer.
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from survey_analytics.api.models.database import Choice, Disease, Question, Response
from survey_analytics.core.aggregator import RawResponseRow
from survey_analytics.core.variables import VariableKey, coerce_variable_filter

logger = logging.getLogger(__name__)


def disease_to_dict(disease: Disease) -> dict[str, Any]:
    return {
        "disease_id": disease.disease_id,
        "disease_name": disease.disease_name,
        "description": disease.description,
        "is_active": disease.is_active,
    }


def question_to_dict(question: Question) -> dict[str, Any]:
    return {
        "id": question.id,
        "disease_id": question.disease_id,
        "question_text": question.question_text,
        "order": question.order,
        "is_active": question.is_active,
    }


def choice_to_dict(choice: Choice) -> dict[str, Any]:
    return {
        "id": choice.id,
        "question_id": choice.question_id,
        "choice_text": choice.choice_text,
        "choice_order": choice.choice_order,
    }


class SurveyRepository:
    """
    Query helpers over one SQLAlchemy session.

    Example Usage:
        >>> repo = SurveyRepository(db)
        >>> rows = repo.get_analytics_rows(["malaria"], ["age", "gender"])
        >>> result = aggregate(rows, ["malaria"], ["age", "gender"])
    """

    def __init__(self, db: Session):
        self.db = db

    def get_diseases(self) -> list[dict[str, Any]]:
        """Active diseases ordered by name."""
        diseases = (
            self.db.query(Disease).filter(Disease.is_active.is_(True)).order_by(Disease.disease_name).all()
        )
        return [disease_to_dict(d) for d in diseases]

    def get_questions(self, disease_id: int | None = None) -> list[dict[str, Any]]:
        """Active questions ordered by disease then survey order."""
        query = self.db.query(Question).filter(Question.is_active.is_(True))
        if disease_id is not None:
            query = query.filter(Question.disease_id == disease_id)
        questions = query.order_by(Question.disease_id, Question.order).all()
        return [question_to_dict(q) for q in questions]

    def get_choices(self, question_id: int | None = None) -> list[dict[str, Any]]:
        """Choices ordered by question then choice order."""
        query = self.db.query(Choice)
        if question_id is not None:
            query = query.filter(Choice.question_id == question_id)
        choices = query.order_by(Choice.question_id, Choice.choice_order).all()
        return [choice_to_dict(c) for c in choices]

    def _joined_responses(self, *columns: Any):
        return (
            self.db.query(*columns)
            .select_from(Response)
            .join(Disease, Response.disease_id == Disease.disease_id)
            .join(Question, Response.question_id == Question.id)
            .join(Choice, Response.choice_id == Choice.id)
            .filter(Disease.is_active.is_(True), Question.is_active.is_(True))
        )

    def get_responses(
        self,
        diseases: Iterable[str] | None = None,
        question_ids: Iterable[int] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Individual joined responses, newest first.

        Args:
            diseases: Optional disease names (exact match)
            question_ids: Optional question ids
        """
        query = self._joined_responses(
            Response.id,
            Response.responder_id,
            Disease.disease_name,
            Question.question_text,
            Choice.choice_text,
            Response.created_at,
        )
        disease_list = list(diseases or [])
        if disease_list:
            query = query.filter(Disease.disease_name.in_(disease_list))
        question_list = list(question_ids or [])
        if question_list:
            query = query.filter(Question.id.in_(question_list))

        rows = query.order_by(Response.created_at.desc()).all()
        return [dict(row._mapping) for row in rows]

    def get_analytics_rows(
        self,
        diseases: Iterable[str] | None = None,
        variables: Iterable[VariableKey | str] | None = None,
    ) -> list[RawResponseRow]:
        """
        Response counts grouped by (disease, question, choice).

        Args:
            diseases: Disease names to include (case-insensitive); empty includes all
            variables: Variable keys to include, matched on each key's question
                fragment; unknown keys are ignored, and if none are known no
                question filter is applied

        Returns:
            RawResponseRow list ordered by disease, question, count descending
        """
        response_count = func.count(Response.id)
        query = self._joined_responses(
            Disease.disease_name,
            Question.question_text,
            Choice.choice_text,
            response_count.label("response_count"),
        )

        disease_list = [d.strip().lower() for d in (diseases or []) if d and d.strip()]
        if disease_list:
            query = query.filter(func.lower(Disease.disease_name).in_(disease_list))

        keys = coerce_variable_filter(
            [v.value if isinstance(v, VariableKey) else v for v in variables] if variables else None
        )
        if keys:
            # Declaration order keeps the generated SQL stable
            patterns = [f"%{key.fragment}%" for key in VariableKey if key in keys]
            query = query.filter(or_(*[func.lower(Question.question_text).like(p) for p in patterns]))

        rows = (
            query.group_by(Disease.disease_name, Question.question_text, Choice.choice_text)
            .order_by(Disease.disease_name, Question.question_text, response_count.desc())
            .all()
        )

        logger.debug(f"Fetched {len(rows)} grouped analytics rows for diseases={disease_list or 'all'}")

        return [
            RawResponseRow(
                disease_name=row.disease_name,
                question_text=row.question_text,
                choice_text=row.choice_text,
                response_count=int(row.response_count),
            )
            for row in rows
        ]

    def get_responder_count(self) -> int:
        """Number of distinct responders across all responses."""
        return int(self.db.query(func.count(func.distinct(Response.responder_id))).scalar() or 0)

    def get_total_responses(self) -> int:
        """Total number of stored responses."""
        return int(self.db.query(func.count(Response.id)).scalar() or 0)

    def get_grouped_responses(self) -> dict[str, list[dict[str, Any]]]:
        """
        Individual answers grouped by disease name.

        Returns:
            {disease_name: [{"responder_id", "question", "answer"}, ...]}
        """
        rows = self._joined_responses(
            Response.responder_id,
            Disease.disease_name,
            Question.question_text,
            Choice.choice_text,
        ).order_by(Disease.disease_name, Response.responder_id, Question.order, Response.id)

        grouped: dict[str, list[dict[str, Any]]] = {}
        for row in rows.all():
            grouped.setdefault(row.disease_name, []).append(
                {
                    "responder_id": row.responder_id,
                    "question": row.question_text,
                    "answer": row.choice_text,
                }
            )
        return grouped

    def get_summary(self) -> dict[str, Any]:
        """Totals and the active disease list for the dashboard header."""
        diseases = self.get_diseases()
        return {
            "totalDiseases": len(diseases),
            "totalResponders": self.get_responder_count(),
            "totalResponses": self.get_total_responses(),
            "diseases": [
                {
                    "id": d["disease_id"],
                    "name": d["disease_name"],
                    "description": d["description"],
                    "is_active": d["is_active"],
                }
                for d in diseases
            ],
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
        }
