import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Optional

from starlette.websockets import WebSocketState

from livequiz.schemas.events import Event


@dataclass
class Subscriber:
    websocket: Any
    quiz_id: str
    user_id: str
    is_admin: bool = False


class Broadcaster:
    """Per-quiz rooms of live connections.

    Delivery is best effort: no acks, no retries. Each room has its own send
    lock so a connection sees events in the order the server produced them.
    Sends within a room run concurrently and each is bounded by
    ``send_timeout``; a connection that fails or stalls is dropped.
    """

    def __init__(self, send_timeout: float = 5.0):
        self.send_timeout = send_timeout
        self.logger = logging.getLogger("runtime")
        self._connections: dict[str, Subscriber] = {}
        self._rooms: dict[str, set[str]] = {}
        self._room_locks: dict[str, asyncio.Lock] = {}

    def join(self, quiz_id: str, websocket, user_id: str, is_admin: bool = False) -> str:
        connection_id = str(uuid.uuid4())
        self._connections[connection_id] = Subscriber(
            websocket=websocket, quiz_id=quiz_id, user_id=user_id, is_admin=is_admin
        )
        self._rooms.setdefault(quiz_id, set()).add(connection_id)
        self.logger.info(
            "Connection joined quiz=%s user=%s admin=%s connection=%s", quiz_id, user_id, is_admin, connection_id
        )
        return connection_id

    def leave(self, connection_id: str) -> None:
        subscriber = self._connections.pop(connection_id, None)
        if subscriber is None:
            return
        room = self._rooms.get(subscriber.quiz_id)
        if room is not None:
            room.discard(connection_id)
            if not room:
                self._rooms.pop(subscriber.quiz_id, None)
                lock = self._room_locks.get(subscriber.quiz_id)
                if lock is not None and not lock.locked():
                    self._room_locks.pop(subscriber.quiz_id, None)
        self.logger.info("Connection left quiz=%s connection=%s", subscriber.quiz_id, connection_id)

    def room_size(self, quiz_id: str) -> int:
        return len(self._rooms.get(quiz_id, ()))

    def rooms(self) -> dict[str, int]:
        return {quiz_id: len(members) for quiz_id, members in self._rooms.items()}

    def connection_count(self) -> int:
        return len(self._connections)

    async def broadcast(self, quiz_id: str, event: Event, admin_event: Optional[Event] = None) -> int:
        """Send ``event`` to everyone in the room; admins get ``admin_event`` when given."""
        if quiz_id not in self._rooms:
            return 0
        lock = self._room_locks.setdefault(quiz_id, asyncio.Lock())
        message = event.payload()
        admin_message = admin_event.payload() if admin_event is not None else message
        async with lock:
            targets = []
            for connection_id in list(self._rooms.get(quiz_id, ())):
                subscriber = self._connections.get(connection_id)
                if subscriber is not None and _is_open(subscriber.websocket):
                    targets.append((connection_id, subscriber))
            results = await asyncio.gather(
                *(
                    self._send(quiz_id, connection_id, subscriber, admin_message if subscriber.is_admin else message)
                    for connection_id, subscriber in targets
                )
            )
        delivered = sum(results)
        for (connection_id, _), ok in zip(targets, results):
            if not ok:
                self.leave(connection_id)
        if quiz_id not in self._rooms and not lock.locked():
            self._room_locks.pop(quiz_id, None)
        self.logger.info("Broadcast quiz=%s type=%s delivered=%s", quiz_id, event.type, delivered)
        return delivered

    async def _send(self, quiz_id: str, connection_id: str, subscriber: Subscriber, message: dict) -> bool:
        try:
            await asyncio.wait_for(subscriber.websocket.send_json(message), timeout=self.send_timeout)
        except asyncio.TimeoutError:
            self.logger.warning(
                "Dropping connection=%s quiz=%s: send timed out after %ss", connection_id, quiz_id, self.send_timeout
            )
            return False
        except Exception as exc:
            self.logger.warning("Dropping connection=%s quiz=%s after send failure: %s", connection_id, quiz_id, exc)
            return False
        return True


def _is_open(websocket) -> bool:
    state = getattr(websocket, "application_state", WebSocketState.CONNECTED)
    client_state = getattr(websocket, "client_state", WebSocketState.CONNECTED)
    return state == WebSocketState.CONNECTED and client_state == WebSocketState.CONNECTED
