from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="QUIZ_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Direct URL override (takes precedence if set)
    database_url: str | None = None

    # Individual DB params (used if database_url is not provided)
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "live_quiz"
    db_user: str = "postgres"
    db_password: str = "postgres"

    # "sql" for the database-backed store, "memory" for a throwaway process-local one
    store_backend: str = Field(default="sql", pattern="^(sql|memory)$")

    # Keep raw string to avoid JSON parsing issues for lists
    cors_origins_raw: str = Field(default="*")

    log_level: str = "INFO"
    log_dir: Path = Path("logs")

    # Server-side answer cutoff: revealed_at + time_limit + grace
    enforce_answer_deadline: bool = True
    answer_grace_seconds: float = Field(default=2.0, ge=0)

    otp_ttl_seconds: int = Field(default=600, ge=30)
    token_ttl_seconds: int = Field(default=30 * 24 * 3600, ge=60)
    allowed_email_domain: str | None = None
    admin_emails_raw: str = Field(default="")
    otp_webhook_url: str | None = None
    otp_webhook_timeout: float = 5.0

    # A realtime subscriber that cannot take a message within this window is dropped
    ws_send_timeout: float = Field(default=5.0, gt=0)

    @property
    def assembled_db_url(self) -> str:
        if self.database_url:
            return self.database_url
        return f"postgresql+asyncpg://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def cors_origins(self) -> list[str]:
        return _split_csv(self.cors_origins_raw)

    @property
    def admin_emails(self) -> set[str]:
        return {email.lower() for email in _split_csv(self.admin_emails_raw)}


def _split_csv(raw: str) -> list[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


settings = Settings()
