import logging
import secrets
from datetime import timedelta

import httpx

from livequiz.core.config import Settings, settings as default_settings
from livequiz.core.errors import Unauthorized, ValidationError
from livequiz.core.time import as_utc, utc_now
from livequiz.models import AuthToken, OtpCode, User
from livequiz.services.store import QuizStore

logger = logging.getLogger("auth")


class AuthService:
    """Email + one-time-code login handing out opaque bearer tokens."""

    def __init__(self, store: QuizStore, settings: Settings = default_settings):
        self.store = store
        self.settings = settings

    def _normalise_email(self, email: str) -> str:
        email = (email or "").strip().lower()
        if "@" not in email:
            raise ValidationError("A valid email address is required")
        domain = self.settings.allowed_email_domain
        if domain and not email.endswith("@" + domain.lower().lstrip("@")):
            raise ValidationError(f"Only @{domain.lstrip('@')} emails are allowed")
        return email

    async def request_code(self, email: str) -> OtpCode:
        email = self._normalise_email(email)
        code = f"{secrets.randbelow(900000) + 100000}"
        otp = await self.store.create_otp(
            OtpCode(
                email=email,
                code=code,
                expires_at=utc_now() + timedelta(seconds=self.settings.otp_ttl_seconds),
            )
        )
        await self.deliver_code(email, code)
        return otp

    async def deliver_code(self, email: str, code: str) -> bool:
        """Send the code through the configured webhook; log it when none is set."""
        url = self.settings.otp_webhook_url
        if not url:
            logger.info("OTP for %s: %s (no delivery webhook configured)", email, code)
            return False
        try:
            async with httpx.AsyncClient(timeout=self.settings.otp_webhook_timeout) as client:
                resp = await client.post(
                    url,
                    json={
                        "to": email,
                        "subject": "Your quiz login code",
                        "text": f"Your login code is {code}. It expires in "
                        f"{self.settings.otp_ttl_seconds // 60} minutes.",
                    },
                )
        except httpx.HTTPError as exc:
            logger.error("OTP delivery failed for %s: %s", email, exc)
            return False
        if resp.status_code >= 400:
            logger.warning("OTP delivery failed status: %s body: %s", resp.status_code, resp.text)
            return False
        logger.info("OTP delivered to %s", email)
        return True

    async def verify_code(self, email: str, code: str) -> tuple[AuthToken, User]:
        email = self._normalise_email(email)
        otp = await self.store.consume_otp(email, (code or "").strip(), utc_now())
        if not otp:
            raise ValidationError("Invalid or expired OTP")

        user = await self.store.get_user_by_email(email)
        if not user:
            user = await self.store.create_user(User(email=email, is_admin=email in self.settings.admin_emails))
            logger.info("Created user %s admin=%s", email, user.is_admin)

        token = await self.store.create_token(
            AuthToken(
                token=secrets.token_urlsafe(32),
                user_id=user.id,
                expires_at=utc_now() + timedelta(seconds=self.settings.token_ttl_seconds),
            )
        )
        return token, user

    async def resolve(self, token: str) -> User:
        if not token:
            raise Unauthorized("No token provided")
        record = await self.store.get_token(token)
        if not record or as_utc(record.expires_at) <= utc_now():
            raise Unauthorized("Invalid token")
        user = await self.store.get_user(record.user_id)
        if not user:
            raise Unauthorized("Invalid token")
        return user
