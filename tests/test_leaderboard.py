from datetime import timedelta

import pytest

from livequiz.core.errors import NotFound
from livequiz.core.time import utc_now

from helpers import question


async def join(runtime, make_user, quiz, email):
    user = await make_user(email)
    return user, await runtime.join(user, quiz.id, "secret")


async def test_empty_quiz_has_empty_leaderboard(runtime, live_quiz):
    quiz, _ = await live_quiz()
    assert await runtime.get_leaderboard(quiz.id) == []


async def test_unknown_quiz(runtime):
    with pytest.raises(NotFound):
        await runtime.get_leaderboard("missing")


async def test_ranks_by_score(runtime, live_quiz, make_user):
    quiz, (q1, q2) = await live_quiz(questions=[question("q1"), question("q2")])
    a, sa = await join(runtime, make_user, quiz, "a@example.com")
    b, sb = await join(runtime, make_user, quiz, "b@example.com")
    c, sc = await join(runtime, make_user, quiz, "c@example.com")

    await runtime.reveal(quiz.id, q1.id)
    await runtime.submit_answer(b, sb.id, q1.id, "B")
    await runtime.submit_answer(a, sa.id, q1.id, "B")
    await runtime.submit_answer(c, sc.id, q1.id, "C")
    await runtime.reveal(quiz.id, q2.id)
    await runtime.submit_answer(b, sb.id, q2.id, "B")

    board = await runtime.get_leaderboard(quiz.id)
    assert [e.email for e in board] == ["b@example.com", "a@example.com", "c@example.com"]
    assert [e.total_score for e in board] == [40, 15, 0]
    assert [e.rank for e in board] == [1, 2, 3]
    assert [(e.correct_answers, e.total_answers) for e in board] == [(2, 2), (1, 1), (0, 1)]
    scores = [e.total_score for e in board]
    assert scores == sorted(scores, reverse=True)


async def test_ties_fall_back_to_join_order(runtime, live_quiz, make_user):
    quiz, _ = await live_quiz()
    await join(runtime, make_user, quiz, "first@example.com")
    await join(runtime, make_user, quiz, "second@example.com")
    board = await runtime.get_leaderboard(quiz.id)
    assert [e.email for e in board] == ["first@example.com", "second@example.com"]
    assert [e.rank for e in board] == [1, 2]


async def test_removed_participants_are_excluded(runtime, live_quiz, make_user):
    quiz, _ = await live_quiz()
    _, kept = await join(runtime, make_user, quiz, "kept@example.com")
    _, removed = await join(runtime, make_user, quiz, "gone@example.com")
    await runtime.remove_participant(removed.id)
    board = await runtime.get_leaderboard(quiz.id)
    assert [e.user_id for e in board] == [kept.user_id]


async def test_equal_scores_rank_faster_player_first(runtime, live_quiz, make_user):
    quiz, (q1, q2) = await live_quiz(questions=[question("q1"), question("q2")], scoring_type="standard")
    slow, slow_session = await join(runtime, make_user, quiz, "slow@example.com")
    fast, fast_session = await join(runtime, make_user, quiz, "fast@example.com")

    await runtime.store.reveal_question(q1.id, utc_now() - timedelta(seconds=20))
    await runtime.submit_answer(slow, slow_session.id, q1.id, "B")
    await runtime.store.reveal_question(q2.id, utc_now() - timedelta(seconds=2))
    await runtime.submit_answer(fast, fast_session.id, q2.id, "B")

    board = await runtime.get_leaderboard(quiz.id)
    assert [e.total_score for e in board] == [10, 10]
    # Same score: less cumulative answer time wins even though "slow" joined first
    assert [e.email for e in board] == ["fast@example.com", "slow@example.com"]
    assert board[0].total_time < board[1].total_time
    assert [e.rank for e in board] == [1, 2]
