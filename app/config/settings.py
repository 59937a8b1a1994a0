from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for invite/delete user
    documents_bucket: str = "documents"
    signed_url_ttl_seconds: int = 3600

    # Auth
    app_url: str = "http://localhost:3000"
    new_user_window_minutes: int = 10
    session_cookie_secure: bool = False
    session_cache_ttl_seconds: int = 60
    session_cache_max_size: int = 500

    # Feeds
    feed_limit: int = 20

    # Push notifications (Firebase Cloud Messaging web push)
    firebase_vapid_key: Optional[str] = None

    # App
    app_name: str = "journey-home-api"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
