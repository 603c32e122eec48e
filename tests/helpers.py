"""Builders shared by the test modules."""

import asyncio
from typing import Optional

from starlette.websockets import WebSocketState

from livequiz.schemas import QuestionCreate, QuizCreate, SpeedTier


class FakeSocket:
    """Stands in for a starlette WebSocket inside the broadcaster."""

    def __init__(self, fail: bool = False):
        self.sent: list[dict] = []
        self.fail = fail
        self.application_state = WebSocketState.CONNECTED
        self.client_state = WebSocketState.CONNECTED

    async def send_json(self, message: dict) -> None:
        if self.fail:
            raise RuntimeError("socket is gone")
        self.sent.append(message)

    def types(self) -> list[str]:
        return [m["type"] for m in self.sent]


def question(
    text: str = "What is 2 + 2?",
    correct: str = "B",
    is_bonus: bool = False,
    time_limit: Optional[int] = None,
    points: int = 10,
) -> QuestionCreate:
    return QuestionCreate(
        text=text,
        options=["3", "4", "5", "22"],
        correct_answer=correct,
        is_bonus=is_bonus,
        time_limit=time_limit,
        points=points,
    )


def quiz_payload(
    questions: Optional[list[QuestionCreate]] = None,
    scoring_type: str = "speed",
    speed_table: Optional[list[int]] = None,
    passkey: str = "secret",
) -> QuizCreate:
    return QuizCreate(
        title="Friday Quiz",
        passkey=passkey,
        scoring_type=scoring_type,
        speed_scoring_config=[SpeedTier(position=i, points=p) for i, p in enumerate(speed_table, start=1)]
        if speed_table
        else None,
        questions=questions if questions is not None else [question()],
    )


class StalledSocket(FakeSocket):
    """Looks connected but never finishes a send, like a peer that stopped reading."""

    async def send_json(self, message: dict) -> None:
        await asyncio.sleep(3600)
