"""SQLAlchemy ORM models for the survey store.

Uses SQLAlchemy 2.0 declarative mapping with type annotations.

Tables:
- diseases: surveyed diseases (only active ones are reported)
- questions: survey questions per disease (only active ones are reported)
- choices: answer options per question
- responses: one row per (responder, question) answer
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class Disease(Base):
    """A disease covered by the survey."""

    __tablename__ = "diseases"

    disease_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    disease_name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    questions: Mapped[list["Question"]] = relationship(
        "Question",
        back_populates="disease",
        cascade="all, delete-orphan",
        order_by="Question.order",
    )

    def __repr__(self) -> str:
        return f"<Disease(disease_id={self.disease_id!r}, disease_name={self.disease_name!r})>"


class Question(Base):
    """Survey question asked for one disease."""

    __tablename__ = "questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    disease_id: Mapped[int] = mapped_column(Integer, ForeignKey("diseases.disease_id"), nullable=False, index=True)
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    order: Mapped[int] = mapped_column("order", Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    disease: Mapped["Disease"] = relationship("Disease", back_populates="questions")
    choices: Mapped[list["Choice"]] = relationship(
        "Choice",
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="Choice.choice_order",
    )

    def __repr__(self) -> str:
        return f"<Question(id={self.id!r}, disease_id={self.disease_id!r})>"


class Choice(Base):
    """Answer option for a question."""

    __tablename__ = "choices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    question_id: Mapped[int] = mapped_column(Integer, ForeignKey("questions.id"), nullable=False, index=True)
    choice_text: Mapped[str] = mapped_column(String(255), nullable=False)
    choice_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    question: Mapped["Question"] = relationship("Question", back_populates="choices")

    def __repr__(self) -> str:
        return f"<Choice(id={self.id!r}, choice_text={self.choice_text!r})>"


class Response(Base):
    """One responder's answer to one question."""

    __tablename__ = "responses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    responder_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    disease_id: Mapped[int] = mapped_column(Integer, ForeignKey("diseases.disease_id"), nullable=False, index=True)
    question_id: Mapped[int] = mapped_column(Integer, ForeignKey("questions.id"), nullable=False, index=True)
    choice_id: Mapped[int] = mapped_column(Integer, ForeignKey("choices.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Response(id={self.id!r}, responder_id={self.responder_id!r}, question_id={self.question_id!r})>"
