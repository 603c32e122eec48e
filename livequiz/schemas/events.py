"""Messages pushed over the quiz event channel.

Every message carries a ``type`` discriminator; the leaderboard itself is never
pushed, subscribers pull it after an ``answer_submitted`` notification.
"""

from typing import Literal, Optional

from pydantic import BaseModel

from livequiz.schemas.admin import QuestionRead
from livequiz.schemas.session import AnswerResult


class Event(BaseModel):
    type: str

    def payload(self) -> dict:
        return self.model_dump(mode="json")


class Connected(Event):
    type: Literal["connected"] = "connected"
    message: str = "WebSocket connected successfully"
    user: str
    quiz_id: str


class QuizStarted(Event):
    type: Literal["quiz_started"] = "quiz_started"
    quiz_id: str


class QuestionRevealed(Event):
    type: Literal["question_revealed"] = "question_revealed"
    quiz_id: str
    question: QuestionRead


class QuestionEnded(Event):
    type: Literal["question_ended"] = "question_ended"
    quiz_id: str
    question_id: str


class AnswerSubmitted(Event):
    type: Literal["answer_submitted"] = "answer_submitted"
    quiz_id: str
    user_id: str
    question_id: str
    is_correct: bool
    points: int


class QuizEnded(Event):
    type: Literal["quiz_ended"] = "quiz_ended"
    quiz_id: str


class Pong(Event):
    type: Literal["pong"] = "pong"


class ErrorEvent(Event):
    type: Literal["error"] = "error"
    error: str
    detail: Optional[str] = None


class AnswerResultEvent(Event):
    type: Literal["answer_result"] = "answer_result"
    result: AnswerResult


class QuestionSkipped(Event):
    type: Literal["question_skipped"] = "question_skipped"
    quiz_id: str
    closed_question_ids: list[str] = []
    next_question_id: Optional[str] = None
    next_question_number: Optional[int] = None
