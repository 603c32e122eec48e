from typing import List

from fastapi import APIRouter, Depends

from livequiz.dependencies import get_current_user, get_runtime
from livequiz.models import User
from livequiz.schemas import AnswerResult, AnswerSubmit, JoinRequest, LeaderboardEntry, QuizRead, SessionRead
from livequiz.services.runtime import QuizRuntime
from livequiz.services.views import serialize_session

router = APIRouter(tags=["quizzes"])


@router.get("/quizzes", response_model=List[QuizRead])
async def list_quizzes(user: User = Depends(get_current_user), runtime: QuizRuntime = Depends(get_runtime)):
    return await runtime.list_quizzes(user)


@router.get("/quizzes/{quiz_id}", response_model=QuizRead)
async def get_quiz(quiz_id: str, user: User = Depends(get_current_user), runtime: QuizRuntime = Depends(get_runtime)):
    return await runtime.quiz_view(quiz_id, user)


@router.post("/quizzes/{quiz_id}/join", response_model=SessionRead)
async def join_quiz(
    quiz_id: str,
    payload: JoinRequest,
    user: User = Depends(get_current_user),
    runtime: QuizRuntime = Depends(get_runtime),
):
    session = await runtime.join(user, quiz_id, payload.passkey)
    return serialize_session(session)


@router.get("/quizzes/{quiz_id}/session", response_model=SessionRead)
async def my_session(quiz_id: str, user: User = Depends(get_current_user), runtime: QuizRuntime = Depends(get_runtime)):
    return serialize_session(await runtime.my_session(user, quiz_id))


@router.get("/quizzes/{quiz_id}/leaderboard", response_model=List[LeaderboardEntry])
async def leaderboard(quiz_id: str, user: User = Depends(get_current_user), runtime: QuizRuntime = Depends(get_runtime)):
    return await runtime.get_leaderboard(quiz_id)


@router.post("/answers", response_model=AnswerResult)
async def submit_answer(
    payload: AnswerSubmit,
    user: User = Depends(get_current_user),
    runtime: QuizRuntime = Depends(get_runtime),
):
    return await runtime.submit_answer(
        user,
        payload.session_id,
        payload.question_id,
        payload.selected_answer,
        elapsed_seconds=payload.answer_time,
    )
