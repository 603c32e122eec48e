from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine

from livequiz.core.errors import Conflict, NotFound
from livequiz.db import get_session
from livequiz.models import Answer, AuthToken, OtpCode, ParticipantSession, Question, Quiz, QuizStatus, User
from livequiz.services.store import QuizStore


class SqlStore(QuizStore):
    """SQLModel-backed store.

    Uniqueness is enforced by table constraints (one answer per session and
    question, one session per user and quiz); status changes are conditional
    UPDATEs so racing admins cannot both win a transition.
    """

    def __init__(self, bind: Optional[AsyncEngine] = None):
        self.bind = bind

    async def create_user(self, user: User) -> User:
        async with get_session(self.bind) as db:
            db.add(user)
            try:
                await db.commit()
            except IntegrityError as exc:
                await db.rollback()
                raise Conflict("User already exists") from exc
        return user

    async def get_user(self, user_id: str) -> Optional[User]:
        async with get_session(self.bind) as db:
            return await db.get(User, user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        async with get_session(self.bind) as db:
            result = await db.exec(select(User).where(User.email == email))
            return result.scalars().first()

    async def create_otp(self, otp: OtpCode) -> OtpCode:
        async with get_session(self.bind) as db:
            db.add(otp)
            await db.commit()
        return otp

    async def consume_otp(self, email: str, code: str, now: datetime) -> Optional[OtpCode]:
        async with get_session(self.bind) as db:
            result = await db.exec(
                select(OtpCode)
                .where(
                    OtpCode.email == email,
                    OtpCode.code == code,
                    OtpCode.is_used == False,  # noqa: E712
                    OtpCode.expires_at > now,
                )
                .limit(1)
            )
            otp = result.scalars().first()
            if not otp:
                return None
            claimed = await db.execute(
                update(OtpCode)
                .where(OtpCode.id == otp.id, OtpCode.is_used == False)  # noqa: E712
                .values(is_used=True)
            )
            await db.commit()
            if claimed.rowcount != 1:
                return None
            otp.is_used = True
            return otp

    async def create_token(self, token: AuthToken) -> AuthToken:
        async with get_session(self.bind) as db:
            db.add(token)
            await db.commit()
        return token

    async def get_token(self, token: str) -> Optional[AuthToken]:
        async with get_session(self.bind) as db:
            return await db.get(AuthToken, token)

    async def create_quiz(self, quiz: Quiz, questions: list[Question]) -> Quiz:
        async with get_session(self.bind) as db:
            db.add(quiz)
            for question in questions:
                question.quiz_id = quiz.id
                db.add(question)
            await db.commit()
        return quiz

    async def get_quiz(self, quiz_id: str) -> Optional[Quiz]:
        async with get_session(self.bind) as db:
            return await db.get(Quiz, quiz_id)

    async def list_quizzes(self, statuses: Optional[Iterable[str]] = None) -> list[Quiz]:
        stmt = select(Quiz).order_by(Quiz.created_at.desc())
        if statuses is not None:
            stmt = stmt.where(Quiz.status.in_(list(statuses)))
        async with get_session(self.bind) as db:
            result = await db.exec(stmt)
            return list(result.scalars().all())

    async def transition_quiz(
        self, quiz_id: str, expected: str, new_status: str, at: datetime
    ) -> Optional[Quiz]:
        values: dict = {"status": new_status}
        if new_status == QuizStatus.ACTIVE:
            values["started_at"] = at
        elif new_status == QuizStatus.COMPLETED:
            values["completed_at"] = at
        async with get_session(self.bind) as db:
            result = await db.execute(
                update(Quiz).where(Quiz.id == quiz_id, Quiz.status == expected).values(**values)
            )
            await db.commit()
            if result.rowcount != 1:
                return None
            return await db.get(Quiz, quiz_id)

    async def get_question(self, question_id: str) -> Optional[Question]:
        async with get_session(self.bind) as db:
            return await db.get(Question, question_id)

    async def list_questions(self, quiz_id: str) -> list[Question]:
        async with get_session(self.bind) as db:
            result = await db.exec(
                select(Question).where(Question.quiz_id == quiz_id).order_by(Question.question_number)
            )
            return list(result.scalars().all())

    async def reveal_question(self, question_id: str, at: datetime) -> Optional[Question]:
        async with get_session(self.bind) as db:
            result = await db.execute(
                update(Question)
                .where(Question.id == question_id, Question.is_revealed == False)  # noqa: E712
                .values(is_revealed=True, revealed_at=at)
            )
            await db.commit()
            if result.rowcount != 1:
                return None
            return await db.get(Question, question_id)

    async def close_question(self, question_id: str, at: datetime) -> Optional[Question]:
        async with get_session(self.bind) as db:
            result = await db.execute(
                update(Question)
                .where(
                    Question.id == question_id,
                    Question.is_revealed == True,  # noqa: E712
                    Question.closed_at.is_(None),
                )
                .values(closed_at=at)
            )
            await db.commit()
            if result.rowcount != 1:
                return None
            return await db.get(Question, question_id)

    async def get_or_create_participant(self, user_id: str, quiz_id: str) -> tuple[ParticipantSession, bool]:
        existing = await self.find_participant(user_id, quiz_id)
        if existing:
            return existing, False
        session = ParticipantSession(user_id=user_id, quiz_id=quiz_id)
        async with get_session(self.bind) as db:
            db.add(session)
            try:
                await db.commit()
            except IntegrityError:
                # Lost a race with a concurrent join for the same user
                await db.rollback()
                existing = await self.find_participant(user_id, quiz_id)
                if existing is None:
                    raise
                return existing, False
        return session, True

    async def get_participant(self, session_id: str) -> Optional[ParticipantSession]:
        async with get_session(self.bind) as db:
            return await db.get(ParticipantSession, session_id)

    async def find_participant(self, user_id: str, quiz_id: str) -> Optional[ParticipantSession]:
        async with get_session(self.bind) as db:
            result = await db.exec(
                select(ParticipantSession).where(
                    ParticipantSession.user_id == user_id, ParticipantSession.quiz_id == quiz_id
                )
            )
            return result.scalars().first()

    async def list_participants(self, quiz_id: str, active_only: bool = True) -> list[ParticipantSession]:
        stmt = (
            select(ParticipantSession)
            .where(ParticipantSession.quiz_id == quiz_id)
            .order_by(ParticipantSession.joined_at)
        )
        if active_only:
            stmt = stmt.where(ParticipantSession.is_active == True)  # noqa: E712
        async with get_session(self.bind) as db:
            result = await db.exec(stmt)
            return list(result.scalars().all())

    async def set_participant_active(self, session_id: str, active: bool) -> Optional[ParticipantSession]:
        async with get_session(self.bind) as db:
            session = await db.get(ParticipantSession, session_id)
            if not session:
                return None
            session.is_active = active
            await db.commit()
            return session

    async def get_answer(self, session_id: str, question_id: str) -> Optional[Answer]:
        async with get_session(self.bind) as db:
            result = await db.exec(
                select(Answer).where(Answer.session_id == session_id, Answer.question_id == question_id)
            )
            return result.scalars().first()

    async def record_answer(self, answer: Answer) -> ParticipantSession:
        async with get_session(self.bind) as db:
            # Insert first: the unique key rejects duplicates and takes the write lock
            db.add(answer)
            try:
                await db.flush()
            except IntegrityError as exc:
                await db.rollback()
                raise Conflict("Answer already recorded for this question") from exc

            locked = await db.exec(
                select(ParticipantSession).where(ParticipantSession.id == answer.session_id).with_for_update()
            )
            session = locked.scalars().first()
            if session is None:
                await db.rollback()
                raise NotFound("Session not found")
            total = await db.exec(
                select(func.coalesce(func.sum(Answer.points), 0)).where(Answer.session_id == answer.session_id)
            )
            session.total_score = int(total.scalar_one())
            await db.commit()
            return session

    async def list_session_answers(self, session_id: str) -> list[Answer]:
        async with get_session(self.bind) as db:
            result = await db.exec(
                select(Answer).where(Answer.session_id == session_id).order_by(Answer.submitted_at)
            )
            return list(result.scalars().all())

    async def list_quiz_answers(self, quiz_id: str) -> list[Answer]:
        async with get_session(self.bind) as db:
            result = await db.exec(select(Answer).where(Answer.quiz_id == quiz_id))
            return list(result.scalars().all())

    async def count_answers(self, question_id: str, correct_only: bool = False) -> int:
        stmt = select(func.count()).select_from(Answer).where(Answer.question_id == question_id)
        if correct_only:
            stmt = stmt.where(Answer.is_correct == True)  # noqa: E712
        async with get_session(self.bind) as db:
            result = await db.exec(stmt)
            return int(result.scalar_one())
