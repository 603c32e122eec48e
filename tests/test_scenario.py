"""A full round: three players, one normal and one bonus question."""

from helpers import FakeSocket, question


async def test_full_round(runtime, admin, live_quiz, make_user):
    quiz, (normal, bonus) = await live_quiz(questions=[question("Q1"), question("Bonus", is_bonus=True)])
    host_socket = FakeSocket()
    runtime.broadcaster.join(quiz.id, host_socket, admin.id, is_admin=True)

    players = []
    for name in ("p1", "p2", "p3"):
        user = await make_user(f"{name}@example.com")
        players.append((user, await runtime.join(user, quiz.id, "secret")))
    (p1, s1), (p2, s2), (p3, s3) = players

    await runtime.reveal(quiz.id, normal.id)
    assert (await runtime.submit_answer(p1, s1.id, normal.id, "B")).points == 20
    assert (await runtime.submit_answer(p2, s2.id, normal.id, "B")).points == 15
    assert (await runtime.submit_answer(p3, s3.id, normal.id, "A")).points == 0

    board = await runtime.get_leaderboard(quiz.id)
    assert [(e.user_id, e.total_score, e.rank) for e in board] == [(p1.id, 20, 1), (p2.id, 15, 2), (p3.id, 0, 3)]

    await runtime.reveal(quiz.id, bonus.id)
    assert (await runtime.submit_answer(p3, s3.id, bonus.id, "B")).points == 40
    assert (await runtime.submit_answer(p2, s2.id, bonus.id, None)).points == 0

    await runtime.end(quiz.id)
    board = await runtime.get_leaderboard(quiz.id)
    assert [(e.user_id, e.total_score) for e in board] == [(p3.id, 40), (p1.id, 20), (p2.id, 15)]

    assert host_socket.types() == [
        "question_revealed",
        "answer_submitted",
        "answer_submitted",
        "answer_submitted",
        "question_revealed",
        "answer_submitted",
        "answer_submitted",
        "quiz_ended",
    ]
