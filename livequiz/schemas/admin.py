from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class SpeedTier(BaseModel):
    position: Optional[int] = None
    points: int = Field(ge=0)


class QuestionCreate(BaseModel):
    text: str
    options: List[str] = Field(default_factory=list)
    # "B", "Option B" or the option text itself
    correct_answer: str
    is_bonus: bool = False
    time_limit: Optional[int] = None
    points: int = 10


class QuizCreate(BaseModel):
    title: str
    passkey: str
    default_time_per_question: int = 45
    scoring_type: str = "speed"
    speed_scoring_config: Optional[List[SpeedTier]] = None
    questions: List[QuestionCreate] = Field(default_factory=list)


class QuestionRead(BaseModel):
    id: str
    question_number: int
    text: str
    options: List[str]
    correct_answer: Optional[str] = None
    is_bonus: bool
    time_limit: int
    points: int
    is_revealed: bool
    revealed_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None


class QuizRead(BaseModel):
    id: str
    title: str
    status: str
    default_time_per_question: int
    scoring_type: str
    speed_scoring_config: Optional[List[SpeedTier]] = None
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    passkey: Optional[str] = None
    participant_count: int = 0
    questions: List[QuestionRead] = Field(default_factory=list)


class AnswerRead(BaseModel):
    question_id: str
    selected_answer: Optional[str]
    is_correct: bool
    points: int
    answer_order: Optional[int]
    time_to_answer: float
    submitted_at: datetime


class SessionRead(BaseModel):
    id: str
    quiz_id: str
    user_id: str
    total_score: int
    is_active: bool
    joined_at: datetime


class SessionDetail(SessionRead):
    email: Optional[str] = None
    answers: List[AnswerRead] = Field(default_factory=list)
