import logging

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status

from livequiz.core.errors import QuizError
from livequiz.dependencies import get_auth_service, get_runtime
from livequiz.schemas.events import AnswerResultEvent, Connected, ErrorEvent, Pong
from livequiz.services.auth import AuthService
from livequiz.services.runtime import QuizRuntime

router = APIRouter()
logger = logging.getLogger("runtime")


def _as_seconds(value):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


@router.websocket("/ws/quizzes/{quiz_id}")
async def quiz_socket(
    websocket: WebSocket,
    quiz_id: str,
    token: str = Query(default=""),
    auth: AuthService = Depends(get_auth_service),
    runtime: QuizRuntime = Depends(get_runtime),
):
    try:
        user = await auth.resolve(token)
        await runtime.get_quiz(quiz_id)
    except QuizError as exc:
        logger.info("WebSocket rejected quiz=%s: %s", quiz_id, exc.detail)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=exc.detail)
        return

    await websocket.accept()
    connection_id = runtime.broadcaster.join(quiz_id, websocket, user.id, is_admin=user.is_admin)
    try:
        await websocket.send_json(Connected(user=user.email, quiz_id=quiz_id).payload())
        while True:
            try:
                message = await websocket.receive_json()
            except KeyError:
                # Binary frame: starlette only decodes JSON from text frames
                await websocket.send_json(
                    ErrorEvent(error="validation_error", detail="Expected a JSON text frame").payload()
                )
                continue
            except ValueError:
                await websocket.send_json(ErrorEvent(error="validation_error", detail="Invalid JSON").payload())
                continue
            if not isinstance(message, dict):
                await websocket.send_json(ErrorEvent(error="validation_error", detail="Expected an object").payload())
                continue

            kind = message.get("type")
            if kind == "ping":
                await websocket.send_json(Pong().payload())
            elif kind == "answer":
                try:
                    result = await runtime.submit_answer(
                        user,
                        str(message.get("session_id") or ""),
                        str(message.get("question_id") or ""),
                        message.get("selected_answer"),
                        elapsed_seconds=_as_seconds(message.get("answer_time")),
                    )
                except QuizError as exc:
                    await websocket.send_json(ErrorEvent(error=exc.code, detail=exc.detail).payload())
                else:
                    await websocket.send_json(AnswerResultEvent(result=result).payload())
            else:
                await websocket.send_json(
                    ErrorEvent(error="validation_error", detail=f"Unknown message type {kind!r}").payload()
                )
    except WebSocketDisconnect:
        return
    finally:
        runtime.broadcaster.leave(connection_id)
