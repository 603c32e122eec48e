"""Storage port for quiz state.

``QuizStore`` is the contract the engine relies on. Each operation is atomic
for the entity it touches: ``record_answer`` never lets two answers land for the
same (session, question), ``get_or_create_participant`` never creates two
sessions for the same (user, quiz), and ``transition_quiz`` / ``reveal_question``
/ ``close_question`` are compare-and-set.

``MemoryStore`` keeps everything in dicts. None of its methods await between a
read and the write that depends on it, so each call is atomic on the event
loop. ``SqlStore`` (``livequiz.services.sql_store``) is the durable backend.
"""

import abc
from datetime import datetime
from typing import Iterable, Optional

from livequiz.core.errors import Conflict, NotFound
from livequiz.core.time import as_utc
from livequiz.models import Answer, AuthToken, OtpCode, ParticipantSession, Question, Quiz, User


class QuizStore(abc.ABC):
    # Users / auth

    @abc.abstractmethod
    async def create_user(self, user: User) -> User: ...

    @abc.abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]: ...

    @abc.abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abc.abstractmethod
    async def create_otp(self, otp: OtpCode) -> OtpCode: ...

    @abc.abstractmethod
    async def consume_otp(self, email: str, code: str, now: datetime) -> Optional[OtpCode]:
        """Mark a matching unused, unexpired code as used and return it."""

    @abc.abstractmethod
    async def create_token(self, token: AuthToken) -> AuthToken: ...

    @abc.abstractmethod
    async def get_token(self, token: str) -> Optional[AuthToken]: ...

    # Quizzes / questions

    @abc.abstractmethod
    async def create_quiz(self, quiz: Quiz, questions: list[Question]) -> Quiz: ...

    @abc.abstractmethod
    async def get_quiz(self, quiz_id: str) -> Optional[Quiz]: ...

    @abc.abstractmethod
    async def list_quizzes(self, statuses: Optional[Iterable[str]] = None) -> list[Quiz]:
        """Newest first."""

    @abc.abstractmethod
    async def transition_quiz(
        self, quiz_id: str, expected: str, new_status: str, at: datetime
    ) -> Optional[Quiz]:
        """Move ``quiz_id`` from ``expected`` to ``new_status``; None if it was not in ``expected``."""

    @abc.abstractmethod
    async def get_question(self, question_id: str) -> Optional[Question]: ...

    @abc.abstractmethod
    async def list_questions(self, quiz_id: str) -> list[Question]:
        """Ordered by question_number."""

    @abc.abstractmethod
    async def reveal_question(self, question_id: str, at: datetime) -> Optional[Question]:
        """Set is_revealed if not yet revealed; None if it already was."""

    @abc.abstractmethod
    async def close_question(self, question_id: str, at: datetime) -> Optional[Question]:
        """Stamp closed_at on a revealed, open question; None otherwise."""

    # Participant sessions

    @abc.abstractmethod
    async def get_or_create_participant(self, user_id: str, quiz_id: str) -> tuple[ParticipantSession, bool]:
        """Return (session, created)."""

    @abc.abstractmethod
    async def get_participant(self, session_id: str) -> Optional[ParticipantSession]: ...

    @abc.abstractmethod
    async def find_participant(self, user_id: str, quiz_id: str) -> Optional[ParticipantSession]: ...

    @abc.abstractmethod
    async def list_participants(self, quiz_id: str, active_only: bool = True) -> list[ParticipantSession]:
        """Join order."""

    @abc.abstractmethod
    async def set_participant_active(self, session_id: str, active: bool) -> Optional[ParticipantSession]: ...

    # Answers

    @abc.abstractmethod
    async def get_answer(self, session_id: str, question_id: str) -> Optional[Answer]: ...

    @abc.abstractmethod
    async def record_answer(self, answer: Answer) -> ParticipantSession:
        """Insert ``answer`` and recompute the session total in one step.

        Raises ``Conflict`` if the session already answered the question.
        """

    @abc.abstractmethod
    async def list_session_answers(self, session_id: str) -> list[Answer]:
        """Submission order."""

    @abc.abstractmethod
    async def list_quiz_answers(self, quiz_id: str) -> list[Answer]: ...

    @abc.abstractmethod
    async def count_answers(self, question_id: str, correct_only: bool = False) -> int: ...


class MemoryStore(QuizStore):
    def __init__(self):
        self.users: dict[str, User] = {}
        self.otp_codes: dict[str, OtpCode] = {}
        self.tokens: dict[str, AuthToken] = {}
        self.quizzes: dict[str, Quiz] = {}
        self.questions: dict[str, Question] = {}
        self.participants: dict[str, ParticipantSession] = {}
        self.answers: dict[str, Answer] = {}
        # (session_id, question_id) -> answer id
        self.answer_keys: dict[tuple[str, str], str] = {}

    async def create_user(self, user: User) -> User:
        if await self.get_user_by_email(user.email):
            raise Conflict("User already exists")
        self.users[user.id] = user
        return user

    async def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.email == email), None)

    async def create_otp(self, otp: OtpCode) -> OtpCode:
        self.otp_codes[otp.id] = otp
        return otp

    async def consume_otp(self, email: str, code: str, now: datetime) -> Optional[OtpCode]:
        for otp in self.otp_codes.values():
            if otp.email == email and otp.code == code and not otp.is_used and as_utc(otp.expires_at) > now:
                otp.is_used = True
                return otp
        return None

    async def create_token(self, token: AuthToken) -> AuthToken:
        self.tokens[token.token] = token
        return token

    async def get_token(self, token: str) -> Optional[AuthToken]:
        return self.tokens.get(token)

    async def create_quiz(self, quiz: Quiz, questions: list[Question]) -> Quiz:
        self.quizzes[quiz.id] = quiz
        for question in questions:
            question.quiz_id = quiz.id
            self.questions[question.id] = question
        return quiz

    async def get_quiz(self, quiz_id: str) -> Optional[Quiz]:
        return self.quizzes.get(quiz_id)

    async def list_quizzes(self, statuses: Optional[Iterable[str]] = None) -> list[Quiz]:
        wanted = set(statuses) if statuses is not None else None
        quizzes = [q for q in self.quizzes.values() if wanted is None or q.status in wanted]
        return sorted(quizzes, key=lambda q: q.created_at, reverse=True)

    async def transition_quiz(
        self, quiz_id: str, expected: str, new_status: str, at: datetime
    ) -> Optional[Quiz]:
        quiz = self.quizzes.get(quiz_id)
        if not quiz or quiz.status != expected:
            return None
        quiz.status = new_status
        if new_status == "active":
            quiz.started_at = at
        elif new_status == "completed":
            quiz.completed_at = at
        return quiz

    async def get_question(self, question_id: str) -> Optional[Question]:
        return self.questions.get(question_id)

    async def list_questions(self, quiz_id: str) -> list[Question]:
        questions = [q for q in self.questions.values() if q.quiz_id == quiz_id]
        return sorted(questions, key=lambda q: q.question_number)

    async def reveal_question(self, question_id: str, at: datetime) -> Optional[Question]:
        question = self.questions.get(question_id)
        if not question or question.is_revealed:
            return None
        question.is_revealed = True
        question.revealed_at = at
        return question

    async def close_question(self, question_id: str, at: datetime) -> Optional[Question]:
        question = self.questions.get(question_id)
        if not question or not question.is_revealed or question.closed_at is not None:
            return None
        question.closed_at = at
        return question

    async def get_or_create_participant(self, user_id: str, quiz_id: str) -> tuple[ParticipantSession, bool]:
        existing = next(
            (s for s in self.participants.values() if s.user_id == user_id and s.quiz_id == quiz_id),
            None,
        )
        if existing:
            return existing, False
        session = ParticipantSession(user_id=user_id, quiz_id=quiz_id)
        self.participants[session.id] = session
        return session, True

    async def get_participant(self, session_id: str) -> Optional[ParticipantSession]:
        return self.participants.get(session_id)

    async def find_participant(self, user_id: str, quiz_id: str) -> Optional[ParticipantSession]:
        return next(
            (s for s in self.participants.values() if s.user_id == user_id and s.quiz_id == quiz_id),
            None,
        )

    async def list_participants(self, quiz_id: str, active_only: bool = True) -> list[ParticipantSession]:
        # dicts keep insertion order, which is join order
        return [
            s for s in self.participants.values() if s.quiz_id == quiz_id and (s.is_active or not active_only)
        ]

    async def set_participant_active(self, session_id: str, active: bool) -> Optional[ParticipantSession]:
        session = self.participants.get(session_id)
        if session:
            session.is_active = active
        return session

    async def get_answer(self, session_id: str, question_id: str) -> Optional[Answer]:
        answer_id = self.answer_keys.get((session_id, question_id))
        return self.answers.get(answer_id) if answer_id else None

    async def record_answer(self, answer: Answer) -> ParticipantSession:
        key = (answer.session_id, answer.question_id)
        if key in self.answer_keys:
            raise Conflict("Answer already recorded for this question")
        session = self.participants.get(answer.session_id)
        if session is None:
            raise NotFound("Session not found")
        self.answer_keys[key] = answer.id
        self.answers[answer.id] = answer
        session.total_score = sum(a.points for a in self.answers.values() if a.session_id == session.id)
        return session

    async def list_session_answers(self, session_id: str) -> list[Answer]:
        answers = [a for a in self.answers.values() if a.session_id == session_id]
        return sorted(answers, key=lambda a: a.submitted_at)

    async def list_quiz_answers(self, quiz_id: str) -> list[Answer]:
        return [a for a in self.answers.values() if a.quiz_id == quiz_id]

    async def count_answers(self, question_id: str, correct_only: bool = False) -> int:
        return sum(
            1 for a in self.answers.values() if a.question_id == question_id and (a.is_correct or not correct_only)
        )
