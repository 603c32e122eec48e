import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Column, DateTime, Integer, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from livequiz.core.time import utc_now

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JsonColumn = JSON().with_variant(JSONB(), "postgresql")


class QuizStatus(str):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"


class ScoringType(str):
    STANDARD = "standard"
    SPEED = "speed"
    NEGATIVE = "negative"

    ALL = ("standard", "speed", "negative")


class Quiz(SQLModel, table=True):
    __tablename__ = "quizzes"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    title: str
    passkey: str
    status: str = Field(default=QuizStatus.DRAFT, index=True)
    default_time_per_question: int = Field(default=45, ge=1)
    scoring_type: str = Field(default=ScoringType.SPEED)
    # Ordered [{"position": 1, "points": 20}, ...]; the last entry covers every later position
    speed_scoring_config: Optional[list[dict]] = Field(default=None, sa_column=Column(JsonColumn, nullable=True))
    created_by: Optional[str] = Field(default=None, foreign_key="users.id")
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True)))
    started_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    completed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))


class Question(SQLModel, table=True):
    __tablename__ = "questions"
    __table_args__ = (UniqueConstraint("quiz_id", "question_number", name="uq_question_quiz_number"),)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    quiz_id: str = Field(foreign_key="quizzes.id", index=True)
    question_number: int = Field(sa_column=Column(Integer, nullable=False))
    text: str
    options: list[str] = Field(sa_column=Column(JsonColumn, default=list))
    correct_option: int = Field(ge=0, le=3)
    is_bonus: bool = Field(default=False)
    time_limit: int = Field(default=45, ge=1)
    points: int = Field(default=10, ge=0)
    is_revealed: bool = Field(default=False)
    revealed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    closed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
