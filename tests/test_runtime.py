import pytest

from livequiz.core.errors import InvalidTransition, NotFound, ValidationError

from helpers import question, quiz_payload


async def test_create_quiz_numbers_questions_and_applies_default_time(runtime, admin):
    payload = quiz_payload(questions=[question("a"), question("b", time_limit=20)])
    payload.default_time_per_question = 30
    quiz = await runtime.create_quiz(payload, admin)
    questions = await runtime.store.list_questions(quiz.id)
    assert [q.question_number for q in questions] == [1, 2]
    assert [q.time_limit for q in questions] == [30, 20]
    assert [q.correct_option for q in questions] == [1, 1]
    assert quiz.created_by == admin.id


@pytest.mark.parametrize(
    "change",
    [
        {"scoring_type": "fastest"},
        {"questions": []},
        {"title": " "},
        {"passkey": ""},
        {"default_time_per_question": 0},
    ],
)
async def test_create_quiz_rejects_bad_payload(runtime, admin, change):
    payload = quiz_payload().model_copy(update=change)
    with pytest.raises(ValidationError):
        await runtime.create_quiz(payload, admin)
    assert await runtime.store.list_quizzes() == []


async def test_speed_table_is_stored(runtime, admin):
    quiz = await runtime.create_quiz(quiz_payload(speed_table=[50, 25]), admin)
    stored = await runtime.get_quiz(quiz.id)
    assert [tier["points"] for tier in stored.speed_scoring_config] == [50, 25]


async def test_join_requires_active_quiz(runtime, admin, make_user):
    quiz = await runtime.create_quiz(quiz_payload(), admin)
    player = await make_user("p@example.com")
    with pytest.raises(InvalidTransition):
        await runtime.join(player, quiz.id, "secret")
    with pytest.raises(NotFound):
        await runtime.join(player, "missing", "secret")


async def test_visibility_for_participants(runtime, admin, make_user):
    draft = await runtime.create_quiz(quiz_payload(), admin)
    live = await runtime.create_quiz(quiz_payload(), admin)
    await runtime.start(live.id)
    player = await make_user("p@example.com")

    assert [q.id for q in await runtime.list_quizzes(player)] == [live.id]
    assert {q.id for q in await runtime.list_quizzes(admin)} == {draft.id, live.id}
    with pytest.raises(NotFound):
        await runtime.quiz_view(draft.id, player)

    admin_view = await runtime.quiz_view(live.id, admin)
    assert admin_view.questions[0].correct_answer == "B"
    assert (await runtime.quiz_view(live.id, player)).questions == []
