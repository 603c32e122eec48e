import logging
from typing import Optional, Union

from livequiz.core.config import Settings, settings as default_settings
from livequiz.core.errors import Forbidden, InvalidTransition, NotFound, ValidationError
from livequiz.models import ParticipantSession, Question, Quiz, QuizStatus, ScoringType, User
from livequiz.schemas import AnswerResult, LeaderboardEntry, QuizCreate, QuizRead, SessionDetail
from livequiz.services.broadcaster import Broadcaster
from livequiz.services.importer import validate_question
from livequiz.services.intake import AnswerIntake
from livequiz.services.leaderboard import Leaderboard
from livequiz.services.lifecycle import NEXT_BONUS, NEXT_NORMAL, QuizLifecycle
from livequiz.services.store import QuizStore
from livequiz.services.views import serialize_quiz, serialize_session_detail


class QuizRuntime:
    """Entry point for every quiz operation; owns the engine's collaborators."""

    def __init__(self, store: QuizStore, broadcaster: Broadcaster, settings: Settings = default_settings):
        self.logger = logging.getLogger("runtime")
        self.store = store
        self.broadcaster = broadcaster
        self.lifecycle = QuizLifecycle(store, broadcaster)
        self.intake = AnswerIntake(
            store,
            broadcaster,
            enforce_deadline=settings.enforce_answer_deadline,
            grace_seconds=settings.answer_grace_seconds,
        )
        self.leaderboard = Leaderboard(store)

    async def create_quiz(self, payload: QuizCreate, creator: User) -> Quiz:
        if not payload.title.strip():
            raise ValidationError("Title is required")
        if not payload.passkey.strip():
            raise ValidationError("Passkey is required")
        if payload.scoring_type not in ScoringType.ALL:
            raise ValidationError(f"Scoring type must be one of: {', '.join(ScoringType.ALL)}")
        if payload.default_time_per_question <= 0:
            raise ValidationError("Default time per question must be positive")
        if not payload.questions:
            raise ValidationError("At least one question is required")

        quiz = Quiz(
            title=payload.title.strip(),
            passkey=payload.passkey,
            default_time_per_question=payload.default_time_per_question,
            scoring_type=payload.scoring_type,
            speed_scoring_config=[tier.model_dump() for tier in payload.speed_scoring_config]
            if payload.speed_scoring_config
            else None,
            created_by=creator.id,
        )
        questions = []
        for number, q in enumerate(payload.questions, start=1):
            correct = validate_question(q, number)
            questions.append(
                Question(
                    quiz_id=quiz.id,
                    question_number=number,
                    text=q.text.strip(),
                    options=[str(opt).strip() for opt in q.options],
                    correct_option=correct,
                    is_bonus=q.is_bonus,
                    time_limit=q.time_limit or payload.default_time_per_question,
                    points=q.points,
                )
            )
        await self.store.create_quiz(quiz, questions)
        self.logger.info("Quiz created quiz=%s questions=%s by=%s", quiz.id, len(questions), creator.id)
        return quiz

    async def get_quiz(self, quiz_id: str) -> Quiz:
        quiz = await self.store.get_quiz(quiz_id)
        if not quiz:
            raise NotFound("Quiz not found")
        return quiz

    async def quiz_view(self, quiz_id: str, user: User) -> QuizRead:
        quiz = await self.get_quiz(quiz_id)
        if not user.is_admin and quiz.status == QuizStatus.DRAFT:
            raise NotFound("Quiz not found")
        questions = await self.store.list_questions(quiz_id)
        participants = await self.store.list_participants(quiz_id)
        return serialize_quiz(quiz, questions, admin=user.is_admin, participant_count=len(participants))

    async def list_quizzes(self, user: User) -> list[QuizRead]:
        statuses = None if user.is_admin else (QuizStatus.ACTIVE, QuizStatus.COMPLETED)
        quizzes = await self.store.list_quizzes(statuses)
        return [serialize_quiz(q, admin=user.is_admin) for q in quizzes]

    async def join(self, user: User, quiz_id: str, passkey: str) -> ParticipantSession:
        quiz = await self.get_quiz(quiz_id)
        if quiz.passkey != passkey:
            raise ValidationError("Invalid passkey")
        if quiz.status != QuizStatus.ACTIVE:
            raise InvalidTransition("Quiz is not active")
        session, created = await self.store.get_or_create_participant(user.id, quiz_id)
        if not session.is_active:
            raise Forbidden("You have been removed from this quiz")
        self.logger.info(
            "Participant %s quiz=%s user=%s session=%s",
            "joined" if created else "rejoined",
            quiz_id,
            user.id,
            session.id,
        )
        return session

    async def my_session(self, user: User, quiz_id: str) -> ParticipantSession:
        session = await self.store.find_participant(user.id, quiz_id)
        if not session or not session.is_active:
            raise NotFound("No active session found for this quiz")
        return session

    async def remove_participant(self, session_id: str) -> ParticipantSession:
        session = await self.store.set_participant_active(session_id, False)
        if not session:
            raise NotFound("Session not found")
        self.logger.info("Participant removed quiz=%s session=%s", session.quiz_id, session_id)
        return session

    async def list_sessions(self, quiz_id: str) -> list[SessionDetail]:
        await self.get_quiz(quiz_id)
        details = []
        for session in await self.store.list_participants(quiz_id, active_only=False):
            user = await self.store.get_user(session.user_id)
            answers = await self.store.list_session_answers(session.id)
            details.append(serialize_session_detail(session, user, answers))
        return details

    async def start(self, quiz_id: str) -> Quiz:
        return await self.lifecycle.start(quiz_id)

    async def reveal(self, quiz_id: str, question_id: str) -> Question:
        return await self.lifecycle.reveal(quiz_id, question_id)

    async def close_question(self, quiz_id: str, question_id: str) -> Question:
        return await self.lifecycle.close(quiz_id, question_id)

    async def end(self, quiz_id: str) -> Quiz:
        return await self.lifecycle.end(quiz_id)

    async def next_question(self, quiz_id: str, kind: str = NEXT_NORMAL) -> Optional[Question]:
        if kind not in (NEXT_NORMAL, NEXT_BONUS):
            raise ValidationError("kind must be 'normal' or 'bonus'")
        return await self.lifecycle.next_question(quiz_id, kind)

    async def skip(self, quiz_id: str, kind: str = NEXT_NORMAL) -> Optional[Question]:
        if kind not in (NEXT_NORMAL, NEXT_BONUS):
            raise ValidationError("kind must be 'normal' or 'bonus'")
        return await self.lifecycle.skip(quiz_id, kind)

    async def submit_answer(
        self,
        user: User,
        session_id: str,
        question_id: str,
        selected: Union[str, int, None],
        elapsed_seconds: Optional[float] = None,
    ) -> AnswerResult:
        return await self.intake.submit(user, session_id, question_id, selected, elapsed_seconds)

    async def get_leaderboard(self, quiz_id: str) -> list[LeaderboardEntry]:
        return await self.leaderboard.compute(quiz_id)
