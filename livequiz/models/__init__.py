from livequiz.models.quiz import Question, Quiz, QuizStatus, ScoringType
from livequiz.models.session import Answer, ParticipantSession
from livequiz.models.user import AuthToken, OtpCode, User

__all__ = [
    "Answer",
    "AuthToken",
    "OtpCode",
    "ParticipantSession",
    "Question",
    "Quiz",
    "QuizStatus",
    "ScoringType",
    "User",
]
