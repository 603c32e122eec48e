from typing import Optional

from fastapi import Depends, Header

from livequiz.core.config import settings
from livequiz.core.errors import Forbidden, Unauthorized
from livequiz.models import User
from livequiz.services.auth import AuthService
from livequiz.services.broadcaster import Broadcaster
from livequiz.services.runtime import QuizRuntime
from livequiz.services.sql_store import SqlStore
from livequiz.services.store import MemoryStore, QuizStore


def build_store(backend: str = settings.store_backend) -> QuizStore:
    if backend == "memory":
        return MemoryStore()
    return SqlStore()


store = build_store()
broadcaster = Broadcaster(send_timeout=settings.ws_send_timeout)
runtime = QuizRuntime(store, broadcaster, settings)
auth_service = AuthService(store, settings)


def get_runtime() -> QuizRuntime:
    return runtime


def get_auth_service() -> AuthService:
    return auth_service


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_user(
    authorization: Optional[str] = Header(default=None),
    auth: AuthService = Depends(get_auth_service),
) -> User:
    token = bearer_token(authorization)
    if not token:
        raise Unauthorized("No token provided")
    return await auth.resolve(token)


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise Forbidden("Admin access required")
    return user
