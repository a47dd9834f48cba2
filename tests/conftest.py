"""
Pytest configuration and fixtures for survey analytics tests.
"""

import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from survey_analytics.api.models.database import Base, Choice, Disease, Question, Response  # noqa: E402


@pytest.fixture(scope="session")
def project_root():
    """Return project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def make_row():
    """Factory for raw aggregator rows (plain mappings, as the store returns them)."""

    def _make(disease="Malaria", question="Are you older than 35?", choice="Yes", count=1):
        return {
            "disease_name": disease,
            "question_text": question,
            "choice_text": choice,
            "response_count": count,
        }

    return _make


@pytest.fixture
def survey_engine():
    """In-memory SQLite engine with the survey tables.

    StaticPool shares one connection so every session sees the same database.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(survey_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=survey_engine)


def _seed_survey(db):
    """
    Seed a small survey.

    Malaria (active):
        "Are you older than 35?"      r1 Yes, r2 Yes, r3 No
        "Are you male or female?"     r1 Male, r2 Female, r3 Male
        "What is your favourite colour?" r1 Blue (unclassified)
        "Is it the rainy season now?" r1 Yes (inactive question)
    Cholera (active):
        "Are you older than 35?"      r4 Yes
    Typhoid (inactive disease):
        "Are you older than 35?"      r5 Yes
    """
    malaria = Disease(disease_name="Malaria", description="Mosquito-borne", is_active=True)
    cholera = Disease(disease_name="Cholera", description="Waterborne", is_active=True)
    typhoid = Disease(disease_name="Typhoid", description="Retired survey", is_active=False)
    db.add_all([malaria, cholera, typhoid])
    db.flush()

    def add_question(disease, text, order, choices, is_active=True):
        question = Question(disease_id=disease.disease_id, question_text=text, order=order, is_active=is_active)
        db.add(question)
        db.flush()
        created = {}
        for position, choice_text in enumerate(choices):
            choice = Choice(question_id=question.id, choice_text=choice_text, choice_order=position)
            db.add(choice)
            created[choice_text] = choice
        db.flush()
        return question, created

    def answer(responder, disease, question, choice):
        db.add(
            Response(
                responder_id=responder,
                disease_id=disease.disease_id,
                question_id=question.id,
                choice_id=choice.id,
            )
        )

    q_age, age = add_question(malaria, "Are you older than 35?", 1, ["Yes", "No"])
    q_gender, gender = add_question(malaria, "Are you male or female?", 2, ["Male", "Female"])
    q_colour, colour = add_question(malaria, "What is your favourite colour?", 3, ["Blue"])
    q_season, season = add_question(malaria, "Is it the rainy season now?", 4, ["Yes", "No"], is_active=False)
    q_cholera_age, cholera_age = add_question(cholera, "Are you older than 35?", 1, ["Yes", "No"])
    q_typhoid_age, typhoid_age = add_question(typhoid, "Are you older than 35?", 1, ["Yes", "No"])

    answer("r1", malaria, q_age, age["Yes"])
    answer("r2", malaria, q_age, age["Yes"])
    answer("r3", malaria, q_age, age["No"])
    answer("r1", malaria, q_gender, gender["Male"])
    answer("r2", malaria, q_gender, gender["Female"])
    answer("r3", malaria, q_gender, gender["Male"])
    answer("r1", malaria, q_colour, colour["Blue"])
    answer("r1", malaria, q_season, season["Yes"])
    answer("r4", cholera, q_cholera_age, cholera_age["Yes"])
    answer("r5", typhoid, q_typhoid_age, typhoid_age["Yes"])
    db.commit()


@pytest.fixture
def seeded_session(session_factory):
    """Session over a database holding the seeded survey."""
    db = session_factory()
    _seed_survey(db)
    try:
        yield db
    finally:
        db.close()
