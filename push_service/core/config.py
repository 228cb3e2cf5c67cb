from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    # --- GENERAL ---
    PROJECT_NAME: str = "Push Notification Service"
    API_V1_STR: str = "/api/v1"
    INTERNAL_API_STR: str = "/internalapi/v1"
    LOG_LEVEL: str = "INFO"

    # Comma separated list; "*" allows any origin
    CORS_ORIGINS: str = "*"

    # --- DATABASE ---
    SQLALCHEMY_DATABASE_URI: str = "sqlite:///./push_notifications.db"

    # --- PUSH NOTIFICATIONS ---
    # Empty keys leave the service up but every send fails with PushConfigError.
    VAPID_PRIVATE_KEY: str = ""
    VAPID_PUBLIC_KEY: str = ""
    VAPID_CLAIMS_EMAIL: str = ""

    PUSH_TTL: int = 86400
    PUSH_TIMEOUT_SECONDS: float = 10
    PUSH_MAX_CONCURRENCY: int = 10

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def vapid_subject(self) -> str:
        """The push service expects a mailto: (or https:) contact in the `sub` claim."""
        email = self.VAPID_CLAIMS_EMAIL
        if email.startswith("mailto:") or email.startswith("https:"):
            return email
        return f"mailto:{email}"

settings = Settings()
