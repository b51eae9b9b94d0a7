from pathlib import Path
from urllib.parse import urlparse

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Supabase settings
    SUPABASE_URL: str
    SUPABASE_JWKS_URL: str | None = None
    SUPABASE_DB_URL: str
    SUPABASE_ANON_KEY: str | None = None

    # Redis settings
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_MAX_CONNECTIONS: int = 20

    # =================================================================
    # DATABASE POOL SETTINGS
    # =================================================================
    DB_POOL_MIN_SIZE: int = 3
    DB_POOL_MAX_SIZE: int = 12
    DB_POOL_TIMEOUT: float = 30.0
    DB_POOL_MAX_IDLE: float = 600.0  # 10 minutes
    DB_POOL_MAX_LIFETIME: float = 3600.0  # 1 hour

    # =================================================================
    # WISHLIST SETTINGS
    # =================================================================
    WISHLIST_SLOT_COUNT: int = 10
    SLOT_COOLDOWN_MONTHS: int = 1
    # 0 = every slot is open at sign-up; N = slot k unlocks (k - 1) * N days later
    SLOT_INITIAL_STAGGER_DAYS: int = 0
    PHONE_COUNTRY_CODE: str = "1"

    # Weekly reveal: Monday=0 ... Sunday=6
    MATCH_REVEAL_WEEKDAY: int = 3
    MATCH_REVEAL_HOUR: int = 17
    MATCH_REVEAL_MINUTE: int = 0
    MATCH_REVEAL_TIMEZONE: str = "America/New_York"

    MATCH_PROCESSING_SECRET: str | None = None
    MATCH_PROCESSING_IN_APP: bool = False

    HANDLE_SKIP_SESSION_TTL_S: int = 12 * 3600
    ICEBREAKER_MAX_LENGTH: int = 500

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # derive sensible defaults if not provided
    def jwks_url(self) -> str:
        if self.SUPABASE_JWKS_URL:
            return self.SUPABASE_JWKS_URL
        base = self.SUPABASE_URL.rstrip("/")
        return f"{base}/auth/v1/.well-known/jwks.json"

    def project_ref(self) -> str | None:
        """
        Extract the Supabase project ref from SUPABASE_URL host, e.g.
        https://ykvceus...supabase.co -> ykvceus...
        """
        try:
            host = urlparse(self.SUPABASE_URL).hostname or ""
            return host.split(".")[0]
        except Exception:
            return None

    def get_db_pool_config(self) -> dict:
        """
        Get database pool configuration.
        Adjust environment-specific settings based on self.environment.
        """
        config = {
            "min_size": self.DB_POOL_MIN_SIZE,
            "max_size": self.DB_POOL_MAX_SIZE,
            "timeout": self.DB_POOL_TIMEOUT,
            "max_idle": self.DB_POOL_MAX_IDLE,
            "max_lifetime": self.DB_POOL_MAX_LIFETIME,
        }

        if self.environment == "development":
            # More conservative for local development
            config.update(
                {
                    "min_size": 2,
                    "max_size": 6,
                    "timeout": 15.0,
                }
            )

        return config

    def get_match_schedule_config(self) -> dict:
        """Weekly reveal schedule used by the scheduler and the worker loop."""
        return {
            "weekday": self.MATCH_REVEAL_WEEKDAY,
            "hour": self.MATCH_REVEAL_HOUR,
            "minute": self.MATCH_REVEAL_MINUTE,
            "timezone": self.MATCH_REVEAL_TIMEZONE,
        }


settings = Settings()
