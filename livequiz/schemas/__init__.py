from livequiz.schemas.admin import (
    AnswerRead,
    QuestionCreate,
    QuestionRead,
    QuizCreate,
    QuizRead,
    SessionDetail,
    SessionRead,
    SpeedTier,
)
from livequiz.schemas.auth import OtpRequest, OtpVerify, TokenResponse, UserRead
from livequiz.schemas.session import AnswerResult, AnswerSubmit, JoinRequest, LeaderboardEntry

__all__ = [
    "AnswerRead",
    "QuestionCreate",
    "QuestionRead",
    "QuizCreate",
    "QuizRead",
    "SessionDetail",
    "SessionRead",
    "SpeedTier",
    "OtpRequest",
    "OtpVerify",
    "TokenResponse",
    "UserRead",
    "AnswerResult",
    "AnswerSubmit",
    "JoinRequest",
    "LeaderboardEntry",
]
