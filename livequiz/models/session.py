import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from livequiz.core.time import utc_now


class ParticipantSession(SQLModel, table=True):
    __tablename__ = "participant_sessions"
    __table_args__ = (UniqueConstraint("quiz_id", "user_id", name="uq_participant_quiz_user"),)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    quiz_id: str = Field(foreign_key="quizzes.id", index=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    total_score: int = Field(default=0)
    is_active: bool = Field(default=True)
    joined_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True)))


class Answer(SQLModel, table=True):
    __tablename__ = "answers"
    # At most one answer per participant per question
    __table_args__ = (UniqueConstraint("session_id", "question_id", name="uq_answer_session_question"),)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    session_id: str = Field(foreign_key="participant_sessions.id", index=True)
    question_id: str = Field(foreign_key="questions.id", index=True)
    quiz_id: str = Field(foreign_key="quizzes.id", index=True)
    selected_option: Optional[int] = None
    is_correct: bool = Field(default=False)
    points: int = Field(default=0)
    answer_order: Optional[int] = None
    time_to_answer: float = Field(default=0.0, ge=0)
    client_elapsed: Optional[float] = None
    submitted_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime(timezone=True)))
