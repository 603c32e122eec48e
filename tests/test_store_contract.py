"""Behaviour both store backends must share."""

from datetime import timedelta

import pytest

from livequiz.core.errors import Conflict
from livequiz.core.time import as_utc, utc_now
from livequiz.models import Answer, AuthToken, OtpCode, Question, Quiz, QuizStatus, User


async def seed(store):
    user = await store.create_user(User(email="p@example.com"))
    quiz = Quiz(title="t", passkey="k")
    q = Question(quiz_id=quiz.id, question_number=1, text="?", options=["a", "b", "c", "d"], correct_option=1)
    await store.create_quiz(quiz, [q])
    session, created = await store.get_or_create_participant(user.id, quiz.id)
    assert created
    return user, quiz, q, session


async def test_users_are_unique_by_email(store):
    user = await store.create_user(User(email="a@example.com"))
    assert (await store.get_user_by_email("a@example.com")).id == user.id
    assert (await store.get_user(user.id)).email == "a@example.com"
    with pytest.raises(Conflict):
        await store.create_user(User(email="a@example.com"))


async def test_otp_is_single_use_and_expires(store):
    now = utc_now()
    await store.create_otp(OtpCode(email="a@example.com", code="123456", expires_at=now + timedelta(minutes=10)))
    await store.create_otp(OtpCode(email="b@example.com", code="654321", expires_at=now - timedelta(seconds=1)))

    assert await store.consume_otp("a@example.com", "000000", now) is None
    assert (await store.consume_otp("a@example.com", "123456", now)).is_used
    assert await store.consume_otp("a@example.com", "123456", now) is None
    assert await store.consume_otp("b@example.com", "654321", now) is None


async def test_tokens_round_trip(store):
    user = await store.create_user(User(email="a@example.com"))
    expires = utc_now() + timedelta(days=1)
    await store.create_token(AuthToken(token="tok", user_id=user.id, expires_at=expires))
    stored = await store.get_token("tok")
    assert stored.user_id == user.id
    assert as_utc(stored.expires_at) == expires
    assert await store.get_token("nope") is None


async def test_quiz_transition_is_compare_and_set(store):
    _, quiz, _, _ = await seed(store)
    now = utc_now()
    assert (await store.transition_quiz(quiz.id, QuizStatus.DRAFT, QuizStatus.ACTIVE, now)).status == "active"
    assert await store.transition_quiz(quiz.id, QuizStatus.DRAFT, QuizStatus.ACTIVE, now) is None
    assert [q.id for q in await store.list_quizzes([QuizStatus.ACTIVE])] == [quiz.id]
    assert await store.list_quizzes([QuizStatus.DRAFT]) == []


async def test_reveal_and_close_happen_once(store):
    _, _, q, _ = await seed(store)
    now = utc_now()
    assert await store.close_question(q.id, now) is None
    revealed = await store.reveal_question(q.id, now)
    assert revealed.is_revealed
    assert as_utc(revealed.revealed_at) == now
    assert await store.reveal_question(q.id, now) is None
    assert (await store.close_question(q.id, now)).closed_at is not None
    assert await store.close_question(q.id, now) is None


async def test_participant_is_created_once(store):
    user, quiz, _, session = await seed(store)
    again, created = await store.get_or_create_participant(user.id, quiz.id)
    assert not created
    assert again.id == session.id
    assert (await store.find_participant(user.id, quiz.id)).id == session.id

    await store.set_participant_active(session.id, False)
    assert await store.list_participants(quiz.id) == []
    assert len(await store.list_participants(quiz.id, active_only=False)) == 1
    assert await store.set_participant_active("missing", False) is None


async def test_record_answer_keeps_total_consistent(store):
    _, quiz, q, session = await seed(store)
    answer = Answer(session_id=session.id, question_id=q.id, quiz_id=quiz.id, selected_option=1,
                    is_correct=True, points=20, answer_order=1)
    updated = await store.record_answer(answer)
    assert updated.total_score == 20

    with pytest.raises(Conflict):
        await store.record_answer(
            Answer(session_id=session.id, question_id=q.id, quiz_id=quiz.id, selected_option=2, points=0)
        )
    assert (await store.get_participant(session.id)).total_score == 20
    assert (await store.get_answer(session.id, q.id)).selected_option == 1
    assert await store.count_answers(q.id) == 1
    assert await store.count_answers(q.id, correct_only=True) == 1
    assert [a.id for a in await store.list_quiz_answers(quiz.id)] == [answer.id]
    assert [a.id for a in await store.list_session_answers(session.id)] == [answer.id]
