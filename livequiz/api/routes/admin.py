import json
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import Response

from livequiz.core.errors import ValidationError
from livequiz.dependencies import get_runtime, require_admin
from livequiz.models import User
from livequiz.schemas import QuestionRead, QuizCreate, QuizRead, SessionDetail, SessionRead, SpeedTier
from livequiz.services.importer import build_template, parse_workbook
from livequiz.services.lifecycle import NEXT_NORMAL
from livequiz.services.runtime import QuizRuntime
from livequiz.services.views import serialize_question, serialize_session

router = APIRouter(prefix="/admin", tags=["admin"])
logger = logging.getLogger("admin")

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.post("/quizzes", response_model=QuizRead)
async def create_quiz(
    payload: QuizCreate,
    admin: User = Depends(require_admin),
    runtime: QuizRuntime = Depends(get_runtime),
):
    quiz = await runtime.create_quiz(payload, admin)
    logger.info("Quiz %s created by %s", quiz.id, admin.email)
    return await runtime.quiz_view(quiz.id, admin)


def _parse_speed_config(raw: Optional[str]) -> Optional[List[SpeedTier]]:
    if not raw or not raw.strip():
        return None
    try:
        tiers = json.loads(raw)
    except ValueError:
        raise ValidationError("speed_scoring_config must be a JSON list")
    if not isinstance(tiers, list):
        raise ValidationError("speed_scoring_config must be a JSON list")
    try:
        return [SpeedTier(**tier) for tier in tiers]
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid speed_scoring_config: {exc}")


@router.post("/quizzes/import", response_model=QuizRead)
async def import_quiz(
    title: str = Form(...),
    passkey: str = Form(...),
    default_time_per_question: int = Form(45),
    scoring_type: str = Form("speed"),
    speed_scoring_config: Optional[str] = Form(None),
    file: UploadFile = File(...),
    admin: User = Depends(require_admin),
    runtime: QuizRuntime = Depends(get_runtime),
):
    filename = (file.filename or "").lower()
    if not filename.endswith(".xlsx"):
        raise ValidationError("Only .xlsx files are supported")
    data = await file.read()
    questions = parse_workbook(data, default_time=default_time_per_question)
    payload = QuizCreate(
        title=title,
        passkey=passkey,
        default_time_per_question=default_time_per_question,
        scoring_type=scoring_type,
        speed_scoring_config=_parse_speed_config(speed_scoring_config),
        questions=questions,
    )
    quiz = await runtime.create_quiz(payload, admin)
    logger.info("Quiz %s imported from %s by %s (%s questions)", quiz.id, file.filename, admin.email, len(questions))
    return await runtime.quiz_view(quiz.id, admin)


@router.get("/quiz-template")
async def quiz_template(admin: User = Depends(require_admin)):
    return Response(
        content=build_template(),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="quiz_template.xlsx"'},
    )


@router.post("/quizzes/{quiz_id}/start", response_model=QuizRead)
async def start_quiz(
    quiz_id: str,
    admin: User = Depends(require_admin),
    runtime: QuizRuntime = Depends(get_runtime),
):
    await runtime.start(quiz_id)
    logger.info("Quiz %s started by %s", quiz_id, admin.email)
    return await runtime.quiz_view(quiz_id, admin)


@router.post("/quizzes/{quiz_id}/end", response_model=QuizRead)
async def end_quiz(
    quiz_id: str,
    admin: User = Depends(require_admin),
    runtime: QuizRuntime = Depends(get_runtime),
):
    await runtime.end(quiz_id)
    logger.info("Quiz %s ended by %s", quiz_id, admin.email)
    return await runtime.quiz_view(quiz_id, admin)


@router.post("/quizzes/{quiz_id}/questions/{question_id}/reveal", response_model=QuestionRead)
async def reveal_question(
    quiz_id: str,
    question_id: str,
    admin: User = Depends(require_admin),
    runtime: QuizRuntime = Depends(get_runtime),
):
    question = await runtime.reveal(quiz_id, question_id)
    logger.info("Question %s of quiz %s revealed by %s", question_id, quiz_id, admin.email)
    return serialize_question(question, include_answer=True)


@router.post("/quizzes/{quiz_id}/questions/{question_id}/close", response_model=QuestionRead)
async def close_question(
    quiz_id: str,
    question_id: str,
    admin: User = Depends(require_admin),
    runtime: QuizRuntime = Depends(get_runtime),
):
    question = await runtime.close_question(quiz_id, question_id)
    logger.info("Question %s of quiz %s closed by %s", question_id, quiz_id, admin.email)
    return serialize_question(question, include_answer=True)


@router.get("/quizzes/{quiz_id}/next")
async def next_question(
    quiz_id: str,
    kind: str = Query(NEXT_NORMAL),
    admin: User = Depends(require_admin),
    runtime: QuizRuntime = Depends(get_runtime),
):
    question = await runtime.next_question(quiz_id, kind)
    return {"question": serialize_question(question, include_answer=True) if question else None}


@router.post("/quizzes/{quiz_id}/skip")
async def skip_question(
    quiz_id: str,
    kind: str = Query(NEXT_NORMAL),
    admin: User = Depends(require_admin),
    runtime: QuizRuntime = Depends(get_runtime),
):
    question = await runtime.skip(quiz_id, kind)
    logger.info("Quiz %s skipped ahead by %s", quiz_id, admin.email)
    return {"question": serialize_question(question, include_answer=True) if question else None}


@router.get("/quizzes/{quiz_id}/sessions", response_model=List[SessionDetail])
async def list_sessions(
    quiz_id: str,
    admin: User = Depends(require_admin),
    runtime: QuizRuntime = Depends(get_runtime),
):
    return await runtime.list_sessions(quiz_id)


@router.post("/sessions/{session_id}/remove", response_model=SessionRead)
async def remove_participant(
    session_id: str,
    admin: User = Depends(require_admin),
    runtime: QuizRuntime = Depends(get_runtime),
):
    session = await runtime.remove_participant(session_id)
    logger.info("Session %s removed from quiz %s by %s", session_id, session.quiz_id, admin.email)
    return serialize_session(session)
