import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional, Union

from livequiz.core.errors import Conflict, Forbidden, InvalidTransition, NotFound, TooLate
from livequiz.core.time import as_utc, utc_now
from livequiz.models import Answer, Question, Quiz, QuizStatus, User
from livequiz.schemas.events import AnswerSubmitted
from livequiz.schemas.session import AnswerResult
from livequiz.services.broadcaster import Broadcaster
from livequiz.services.options import option_letter, parse_option
from livequiz.services.scoring import score
from livequiz.services.store import QuizStore


class AnswerIntake:
    """Records at most one answer per participant per question and scores it.

    Submissions for the same question are serialised by a per-question lock, so
    the duplicate check, the arrival position and the insert behave as one step.
    The store's unique key on (session, question) backs this up.
    """

    def __init__(
        self,
        store: QuizStore,
        broadcaster: Broadcaster,
        enforce_deadline: bool = True,
        grace_seconds: float = 2.0,
    ):
        self.store = store
        self.broadcaster = broadcaster
        self.enforce_deadline = enforce_deadline
        self.grace_seconds = grace_seconds
        self.logger = logging.getLogger("runtime")
        # Only questions with a submission in flight hold an entry
        self._question_locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    async def submit(
        self,
        user: User,
        session_id: str,
        question_id: str,
        selected: Union[str, int, None],
        elapsed_seconds: Optional[float] = None,
    ) -> AnswerResult:
        session = await self.store.get_participant(session_id)
        if not session or session.user_id != user.id:
            raise Forbidden("Invalid session")
        if not session.is_active:
            raise Forbidden("You have been removed from this quiz")

        question = await self.store.get_question(question_id)
        if not question or question.quiz_id != session.quiz_id:
            raise NotFound("Question not found")

        if await self.store.get_answer(session_id, question_id):
            raise Conflict("Answer already recorded for this question")

        quiz = await self.store.get_quiz(session.quiz_id)
        if not quiz:
            raise NotFound("Quiz not found")
        selected_option = parse_option(selected, question.options)

        self.logger.info(
            "Answer received quiz=%s session=%s user=%s question=%s selected=%r",
            quiz.id,
            session_id,
            user.id,
            question_id,
            selected,
        )

        async with self._question_lock(question_id):
            # Re-read under the lock: reveal/close/end may have happened meanwhile
            question = await self.store.get_question(question_id) or question
            quiz = await self.store.get_quiz(quiz.id) or quiz
            now = utc_now()
            self._check_window(quiz, question, now)

            is_correct = selected_option is not None and selected_option == question.correct_option
            answer_order = None
            points = 0
            if is_correct:
                answer_order = await self.store.count_answers(question_id, correct_only=True) + 1
                points = score(quiz, question, True, answer_order)

            revealed_at = as_utc(question.revealed_at) or now
            answer = Answer(
                session_id=session_id,
                question_id=question_id,
                quiz_id=quiz.id,
                selected_option=selected_option,
                is_correct=is_correct,
                points=points,
                answer_order=answer_order,
                time_to_answer=max(0.0, (now - revealed_at).total_seconds()),
                client_elapsed=elapsed_seconds,
                submitted_at=now,
            )
            updated_session = await self.store.record_answer(answer)

        self.logger.info(
            "Answer recorded quiz=%s session=%s question=%s is_correct=%s order=%s points=%s total=%s",
            quiz.id,
            session_id,
            question_id,
            is_correct,
            answer_order,
            points,
            updated_session.total_score,
        )
        await self.broadcaster.broadcast(
            quiz.id,
            AnswerSubmitted(
                quiz_id=quiz.id,
                user_id=user.id,
                question_id=question_id,
                is_correct=is_correct,
                points=points,
            ),
        )
        return AnswerResult(
            answer_id=answer.id,
            question_id=question_id,
            selected_answer=option_letter(selected_option),
            is_correct=is_correct,
            points=points,
            answer_order=answer_order,
            total_score=updated_session.total_score,
        )

    @asynccontextmanager
    async def _question_lock(self, question_id: str):
        lock = self._question_locks.setdefault(question_id, asyncio.Lock())
        self._lock_users[question_id] = self._lock_users.get(question_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[question_id] -= 1
            if not self._lock_users[question_id]:
                del self._lock_users[question_id]
                self._question_locks.pop(question_id, None)

    def _check_window(self, quiz: Quiz, question: Question, now) -> None:
        if quiz.status != QuizStatus.ACTIVE:
            raise InvalidTransition(f"Quiz is {quiz.status}; answers are not being accepted")
        if not question.is_revealed:
            raise InvalidTransition("Question has not been revealed yet")
        if question.closed_at is not None:
            raise TooLate("Answering for this question has closed")
        if self.enforce_deadline and question.revealed_at is not None:
            deadline = as_utc(question.revealed_at) + timedelta(seconds=question.time_limit + self.grace_seconds)
            if now > deadline:
                raise TooLate("Time is up for this question")
