from datetime import timedelta

import httpx
import pytest

from livequiz.core.config import Settings
from livequiz.core.errors import Unauthorized, ValidationError
from livequiz.core.time import utc_now
from livequiz.models import AuthToken, User
from livequiz.services.auth import AuthService


@pytest.fixture
def auth(memory_store):
    settings = Settings(store_backend="memory", admin_emails_raw="Host@Example.com", allowed_email_domain=None)
    return AuthService(memory_store, settings)


async def test_login_flow(auth):
    otp = await auth.request_code(" Player@Example.com ")
    assert otp.email == "player@example.com"
    assert len(otp.code) == 6 and otp.code.isdigit()

    token, user = await auth.verify_code("player@example.com", otp.code)
    assert user.email == "player@example.com"
    assert not user.is_admin
    assert (await auth.resolve(token.token)).id == user.id


async def test_code_is_single_use(auth):
    otp = await auth.request_code("a@example.com")
    await auth.verify_code("a@example.com", otp.code)
    with pytest.raises(ValidationError):
        await auth.verify_code("a@example.com", otp.code)


async def test_wrong_code(auth):
    await auth.request_code("a@example.com")
    with pytest.raises(ValidationError):
        await auth.verify_code("a@example.com", "not-it")


async def test_admin_list_grants_admin(auth):
    otp = await auth.request_code("host@example.com")
    _, user = await auth.verify_code("host@example.com", otp.code)
    assert user.is_admin


async def test_existing_user_is_reused(auth):
    first = await auth.request_code("a@example.com")
    _, user1 = await auth.verify_code("a@example.com", first.code)
    second = await auth.request_code("a@example.com")
    _, user2 = await auth.verify_code("a@example.com", second.code)
    assert user1.id == user2.id


async def test_domain_restriction(memory_store):
    auth = AuthService(memory_store, Settings(store_backend="memory", allowed_email_domain="corp.com"))
    with pytest.raises(ValidationError):
        await auth.request_code("someone@gmail.com")
    assert (await auth.request_code("someone@corp.com")).email == "someone@corp.com"


async def test_invalid_email(auth):
    with pytest.raises(ValidationError):
        await auth.request_code("not-an-email")


async def test_resolve_rejects_unknown_and_expired(auth, memory_store):
    with pytest.raises(Unauthorized):
        await auth.resolve("")
    with pytest.raises(Unauthorized):
        await auth.resolve("nope")
    user = await memory_store.create_user(User(email="a@example.com"))
    await memory_store.create_token(AuthToken(token="old", user_id=user.id, expires_at=utc_now() - timedelta(seconds=1)))
    with pytest.raises(Unauthorized):
        await auth.resolve("old")


async def test_webhook_delivery(memory_store, monkeypatch):
    sent = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(request)
        return httpx.Response(202)

    transport = httpx.MockTransport(handler)
    real_client = httpx.AsyncClient
    monkeypatch.setattr(httpx, "AsyncClient", lambda **kwargs: real_client(transport=transport, **kwargs))

    auth = AuthService(memory_store, Settings(store_backend="memory", otp_webhook_url="http://mailer.test/send"))
    assert await auth.deliver_code("a@example.com", "123456") is True
    (request,) = sent
    assert request.url == "http://mailer.test/send"
    assert b"123456" in request.content


async def test_webhook_failure_is_reported(memory_store, monkeypatch):
    transport = httpx.MockTransport(lambda request: httpx.Response(500, text="down"))
    real_client = httpx.AsyncClient
    monkeypatch.setattr(httpx, "AsyncClient", lambda **kwargs: real_client(transport=transport, **kwargs))

    auth = AuthService(memory_store, Settings(store_backend="memory", otp_webhook_url="http://mailer.test/send"))
    assert await auth.deliver_code("a@example.com", "123456") is False


async def test_no_webhook_logs_code(auth, caplog):
    caplog.set_level("INFO", logger="auth")
    assert await auth.deliver_code("a@example.com", "424242") is False
    assert "424242" in caplog.text
