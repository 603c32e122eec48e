from typing import Optional, Union

from pydantic import BaseModel, Field


class JoinRequest(BaseModel):
    passkey: str


class AnswerSubmit(BaseModel):
    session_id: str
    question_id: str
    # Letter, "Option X" or index; null means skipped / time expired
    selected_answer: Optional[Union[int, str]] = None
    answer_time: float = Field(default=0.0, ge=0)


class AnswerResult(BaseModel):
    answer_id: str
    question_id: str
    selected_answer: Optional[str]
    is_correct: bool
    points: int
    answer_order: Optional[int] = None
    total_score: int


class LeaderboardEntry(BaseModel):
    user_id: str
    email: Optional[str] = None
    total_score: int
    correct_answers: int
    total_answers: int
    total_time: float
    rank: int
