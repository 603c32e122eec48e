import logging
from typing import Optional

from livequiz.core.errors import InvalidTransition, NotFound
from livequiz.core.time import utc_now
from livequiz.models import Question, Quiz, QuizStatus
from livequiz.schemas.events import QuestionEnded, QuestionRevealed, QuestionSkipped, QuizEnded, QuizStarted
from livequiz.services.broadcaster import Broadcaster
from livequiz.services.store import QuizStore
from livequiz.services.views import serialize_question

NEXT_NORMAL = "normal"
NEXT_BONUS = "bonus"


def pick_next_question(questions: list[Question], kind: str = NEXT_NORMAL) -> Optional[Question]:
    """Lowest-numbered unrevealed question of the requested kind, or None."""
    want_bonus = kind == NEXT_BONUS
    candidates = [q for q in questions if bool(q.is_bonus) == want_bonus and not q.is_revealed]
    return min(candidates, key=lambda q: q.question_number, default=None)


class QuizLifecycle:
    """Admin-driven transitions: draft -> active -> completed, and per-question reveal/close.

    Every transition is a compare-and-set in the store, so it either happens
    exactly once or raises ``InvalidTransition``.
    """

    def __init__(self, store: QuizStore, broadcaster: Broadcaster):
        self.store = store
        self.broadcaster = broadcaster
        self.logger = logging.getLogger("runtime")

    async def _get_quiz(self, quiz_id: str) -> Quiz:
        quiz = await self.store.get_quiz(quiz_id)
        if not quiz:
            raise NotFound("Quiz not found")
        return quiz

    async def _get_question(self, quiz: Quiz, question_id: str) -> Question:
        question = await self.store.get_question(question_id)
        if not question or question.quiz_id != quiz.id:
            raise NotFound("Question not found")
        return question

    async def start(self, quiz_id: str) -> Quiz:
        quiz = await self._get_quiz(quiz_id)
        if quiz.status != QuizStatus.DRAFT:
            raise InvalidTransition(f"Quiz is {quiz.status}; only a draft quiz can be started")
        updated = await self.store.transition_quiz(quiz_id, QuizStatus.DRAFT, QuizStatus.ACTIVE, utc_now())
        if not updated:
            raise InvalidTransition("Quiz was already started")
        self.logger.info("Quiz started quiz=%s", quiz_id)
        await self.broadcaster.broadcast(quiz_id, QuizStarted(quiz_id=quiz_id))
        return updated

    async def reveal(self, quiz_id: str, question_id: str) -> Question:
        quiz = await self._get_quiz(quiz_id)
        question = await self._get_question(quiz, question_id)
        if quiz.status != QuizStatus.ACTIVE:
            raise InvalidTransition(f"Quiz is {quiz.status}; questions can only be revealed while it is active")
        if question.is_revealed:
            raise InvalidTransition("Question already revealed")
        revealed = await self.store.reveal_question(question_id, utc_now())
        if not revealed:
            raise InvalidTransition("Question already revealed")
        self.logger.info(
            "Question revealed quiz=%s question=%s number=%s bonus=%s",
            quiz_id,
            question_id,
            revealed.question_number,
            revealed.is_bonus,
        )
        await self.broadcaster.broadcast(
            quiz_id,
            QuestionRevealed(quiz_id=quiz_id, question=serialize_question(revealed)),
            admin_event=QuestionRevealed(quiz_id=quiz_id, question=serialize_question(revealed, include_answer=True)),
        )
        return revealed

    async def close(self, quiz_id: str, question_id: str) -> Question:
        quiz = await self._get_quiz(quiz_id)
        question = await self._get_question(quiz, question_id)
        if quiz.status != QuizStatus.ACTIVE:
            raise InvalidTransition(f"Quiz is {quiz.status}; questions can only be closed while it is active")
        if not question.is_revealed:
            raise InvalidTransition("Question has not been revealed")
        if question.closed_at is not None:
            raise InvalidTransition("Question already closed")
        closed = await self.store.close_question(question_id, utc_now())
        if not closed:
            raise InvalidTransition("Question already closed")
        self.logger.info("Question closed quiz=%s question=%s", quiz_id, question_id)
        await self.broadcaster.broadcast(quiz_id, QuestionEnded(quiz_id=quiz_id, question_id=question_id))
        return closed

    async def skip(self, quiz_id: str, kind: str = NEXT_NORMAL) -> Optional[Question]:
        """Close whatever question is still open and announce the next one of ``kind``."""
        quiz = await self._get_quiz(quiz_id)
        if quiz.status != QuizStatus.ACTIVE:
            raise InvalidTransition(f"Quiz is {quiz.status}; questions can only be skipped while it is active")
        questions = await self.store.list_questions(quiz_id)
        closed_ids = []
        now = utc_now()
        for question in questions:
            if question.is_revealed and question.closed_at is None:
                # A concurrent close may win; that question is simply not reported here
                if await self.store.close_question(question.id, now):
                    closed_ids.append(question.id)
        upcoming = pick_next_question(questions, kind)
        self.logger.info(
            "Question skipped quiz=%s closed=%s next=%s",
            quiz_id,
            closed_ids,
            upcoming.question_number if upcoming else None,
        )
        await self.broadcaster.broadcast(
            quiz_id,
            QuestionSkipped(
                quiz_id=quiz_id,
                closed_question_ids=closed_ids,
                next_question_id=upcoming.id if upcoming else None,
                next_question_number=upcoming.question_number if upcoming else None,
            ),
        )
        return upcoming

    async def end(self, quiz_id: str) -> Quiz:
        quiz = await self._get_quiz(quiz_id)
        if quiz.status != QuizStatus.ACTIVE:
            raise InvalidTransition(f"Quiz is {quiz.status}; only an active quiz can be ended")
        updated = await self.store.transition_quiz(quiz_id, QuizStatus.ACTIVE, QuizStatus.COMPLETED, utc_now())
        if not updated:
            raise InvalidTransition("Quiz was already ended")
        self.logger.info("Quiz ended quiz=%s", quiz_id)
        await self.broadcaster.broadcast(quiz_id, QuizEnded(quiz_id=quiz_id))
        return updated

    async def next_question(self, quiz_id: str, kind: str = NEXT_NORMAL) -> Optional[Question]:
        await self._get_quiz(quiz_id)
        return pick_next_question(await self.store.list_questions(quiz_id), kind)
