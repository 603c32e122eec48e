import os
import tempfile

# Must be set before livequiz is imported: the app singletons read settings at import
os.environ.setdefault("QUIZ_STORE_BACKEND", "memory")
os.environ.setdefault("QUIZ_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("QUIZ_LOG_DIR", tempfile.mkdtemp(prefix="livequiz-logs-"))

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from livequiz.core.config import Settings
from livequiz.db import init_db
from livequiz.models import User
from livequiz.services.broadcaster import Broadcaster
from livequiz.services.runtime import QuizRuntime
from livequiz.services.sql_store import SqlStore
from livequiz.services.store import MemoryStore

from helpers import quiz_payload


@pytest.fixture
def settings() -> Settings:
    return Settings(store_backend="memory", enforce_answer_deadline=True, answer_grace_seconds=2.0)


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def store(request, tmp_path):
    if request.param == "memory":
        yield MemoryStore()
        return
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'quiz.db'}")
    await init_db(engine)
    try:
        yield SqlStore(engine)
    finally:
        await engine.dispose()


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def broadcaster() -> Broadcaster:
    return Broadcaster()


@pytest.fixture
def runtime(store, broadcaster, settings) -> QuizRuntime:
    return QuizRuntime(store, broadcaster, settings)


@pytest.fixture
def make_user(store):
    async def _make(email: str, is_admin: bool = False) -> User:
        return await store.create_user(User(email=email, is_admin=is_admin))

    return _make


@pytest_asyncio.fixture
async def admin(make_user) -> User:
    return await make_user("host@example.com", is_admin=True)


@pytest.fixture
def live_quiz(runtime, admin):
    """Create and start a quiz; returns (quiz, questions in order)."""

    async def _make(**kwargs):
        quiz = await runtime.create_quiz(quiz_payload(**kwargs), admin)
        await runtime.start(quiz.id)
        return quiz, await runtime.store.list_questions(quiz.id)

    return _make
