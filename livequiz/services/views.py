from typing import Optional

from livequiz.models import Answer, ParticipantSession, Question, Quiz, User
from livequiz.schemas import AnswerRead, QuestionRead, QuizRead, SessionDetail, SessionRead, SpeedTier
from livequiz.services.options import option_letter


def serialize_question(question: Question, include_answer: bool = False) -> QuestionRead:
    return QuestionRead(
        id=question.id,
        question_number=question.question_number,
        text=question.text,
        options=list(question.options or []),
        correct_answer=option_letter(question.correct_option) if include_answer else None,
        is_bonus=question.is_bonus,
        time_limit=question.time_limit,
        points=question.points,
        is_revealed=question.is_revealed,
        revealed_at=question.revealed_at,
        closed_at=question.closed_at,
    )


def serialize_quiz(
    quiz: Quiz,
    questions: Optional[list[Question]] = None,
    admin: bool = False,
    participant_count: int = 0,
) -> QuizRead:
    visible = [q for q in (questions or []) if admin or q.is_revealed]
    return QuizRead(
        id=quiz.id,
        title=quiz.title,
        status=quiz.status,
        default_time_per_question=quiz.default_time_per_question,
        scoring_type=quiz.scoring_type,
        speed_scoring_config=[SpeedTier(**tier) for tier in quiz.speed_scoring_config]
        if quiz.speed_scoring_config
        else None,
        created_at=quiz.created_at,
        started_at=quiz.started_at,
        completed_at=quiz.completed_at,
        passkey=quiz.passkey if admin else None,
        participant_count=participant_count,
        questions=[serialize_question(q, include_answer=admin) for q in sorted(visible, key=lambda q: q.question_number)],
    )


def serialize_session(session: ParticipantSession) -> SessionRead:
    return SessionRead(
        id=session.id,
        quiz_id=session.quiz_id,
        user_id=session.user_id,
        total_score=session.total_score,
        is_active=session.is_active,
        joined_at=session.joined_at,
    )


def serialize_answer(answer: Answer) -> AnswerRead:
    return AnswerRead(
        question_id=answer.question_id,
        selected_answer=option_letter(answer.selected_option),
        is_correct=answer.is_correct,
        points=answer.points,
        answer_order=answer.answer_order,
        time_to_answer=answer.time_to_answer,
        submitted_at=answer.submitted_at,
    )


def serialize_session_detail(
    session: ParticipantSession, user: Optional[User], answers: list[Answer]
) -> SessionDetail:
    return SessionDetail(
        **serialize_session(session).model_dump(),
        email=user.email if user else None,
        answers=[serialize_answer(a) for a in answers],
    )
