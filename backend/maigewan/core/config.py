import os
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings


def _get_version() -> str:
    """Read version from pyproject.toml or environment variable."""
    if env_version := os.getenv("MAIGEWAN_VERSION"):
        return env_version

    try:
        pyproject_path = Path(__file__).parent.parent.parent.parent / "pyproject.toml"
        if pyproject_path.exists():
            content = pyproject_path.read_text()
            for line in content.split("\n"):
                if line.startswith("version"):
                    # Parse: version = "0.1.0"
                    return line.split("=")[1].strip().strip('"').strip("'")
    except OSError:
        pass

    return "0.0.0-dev"


APP_VERSION = _get_version()


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Maigewan"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # PocketBase
    POCKETBASE_URL: str = "http://127.0.0.1:8090"
    POCKETBASE_TIMEOUT: float = 15.0

    # Superuser credentials for writes that bypass collection rules
    # (login logs are created before the caller has an identity)
    POCKETBASE_SUPERUSER_EMAIL: str | None = None
    POCKETBASE_SUPERUSER_PASSWORD: str | None = None

    # Collections
    USERS_COLLECTION: str = "users"
    LOGIN_LOG_COLLECTION: str = "maigewan_login_logs"
    LICENSE_COLLECTION: str = "maigewan_licenses"
    NOTIFICATION_COLLECTION: str = "notifications"

    # Auth cookie written back on every response
    AUTH_COOKIE_NAME: str = "pb_auth"

    # Admin user listing
    ADMIN_USERS_PER_PAGE: int = 20

    # Image generation
    OPENAI_API_KEY: str | None = None
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_IMAGE_MODEL: str = "dall-e-3"

    @field_validator("POCKETBASE_URL", "OPENAI_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"LOG_LEVEL must be a standard logging level, got {v!r}")
        return level

    @property
    def has_superuser_credentials(self) -> bool:
        return bool(self.POCKETBASE_SUPERUSER_EMAIL and self.POCKETBASE_SUPERUSER_PASSWORD)

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
