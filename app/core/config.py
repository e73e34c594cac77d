"""Application configuration from environment."""
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """App settings loaded from env / .env."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "CEO Business Tarot"
    debug: bool = False
    log_level: str = "INFO"

    # Session cookie signing (guest reading sessions)
    secret_key: str = "change-me-in-production-use-env"
    session_cookie_name: str = "tarot_session"
    session_cookie_max_age: int = 60 * 60 * 24  # 1 day
    reveal_max_sessions: int = 10_000  # in-memory readings kept at once

    # Reading flow
    selection_delay_seconds: float = 1.5  # dramatic pause after picking a scenario
    assumed_line_height: int = 30  # px per line of essay text
    min_reveal_step: int = 5
    default_viewport_height: int = 800  # used when the browser sends none
    share_url: str = "https://www.ceotarot.space/"
    threads_url: str = "https://www.threads.com/@shintaesoon"

    # CORS for /api/subscribe
    cors_allow_origins: str = "*"

    # Ledger sink (Google Sheets); either credentials JSON or email + private key
    google_sheet_id: str | None = None
    google_sheet_range: str = "Sheet1!A:C"
    google_credentials: str | None = None
    google_service_account_email: str | None = None
    google_private_key: str | None = None

    # Notification sink (Resend)
    resend_api_key: str | None = None
    resend_from_email: str | None = None
    sender_display_name: str = "CEO멘탈코치"
    confirmation_subject: str = "신태순 작가 신간 출간 알림 신청 완료"

    # Per outbound call
    sink_timeout_seconds: float = 5.0


def get_settings() -> Settings:
    return Settings()


# Base path for templates/static/data (the app/ package)
APP_DIR = Path(__file__).resolve().parent.parent
BASE_DIR = APP_DIR.parent
