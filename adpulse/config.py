"""AdPulse — Central Configuration via Pydantic Settings."""

from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Sync settings loaded from environment variables / .env file."""

    # ── Store ──
    database_url: str = ""

    # ── Meta API ──
    meta_app_id: str = ""
    meta_app_secret: str = ""
    meta_ad_account_ids: str = ""  # comma-separated, e.g. "act_123,act_456"
    meta_access_token: str = ""  # fallback only; primary source is the store
    meta_api_version: str = "v19.0"
    meta_base_url: str = "https://graph.facebook.com"
    meta_page_size: int = 100
    meta_max_retries: int = 3
    meta_timeout_seconds: float = 30.0

    # ── Sync ──
    token_provider: str = "facebook"
    sync_lookback_days: int = 14  # inclusive of today
    sync_day_delay_seconds: float = 3.0

    # ── App ──
    log_level: str = "INFO"
    scheduler_enabled: bool = False
    sync_hour: int = 2  # nightly run at 2 AM UTC

    @property
    def ad_account_ids(self) -> List[str]:
        """Configured ad accounts in listed order, trimmed, blanks skipped."""
        return [a.strip() for a in self.meta_ad_account_ids.split(",") if a.strip()]

    @property
    def meta_graph_url(self) -> str:
        return f"{self.meta_base_url.rstrip('/')}/{self.meta_api_version}"

    @property
    def effective_database_url(self) -> str:
        """Return PostgreSQL URL if set, otherwise fall back to SQLite."""
        if self.database_url:
            # Hosted Postgres providers hand out postgres:// DSNs
            if self.database_url.startswith("postgres://"):
                return "postgresql://" + self.database_url[len("postgres://") :]
            return self.database_url
        return "sqlite:///./adpulse.db"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
