"""Application configuration via environment variables."""

from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App
    debug: bool = False
    environment: str = "development"

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
    ]

    # Content store: one flat directory of *.md post files
    content_dir: Path = Path("storage/posts")
    slug_max_length: int = 80

    # Authoring endpoints (create/update/publish/delete, drafts, preview).
    # None means "enabled only in development".
    authoring_enabled: bool | None = None

    # Rendering
    code_theme_light: str = "default"
    code_theme_dark: str = "github-dark"
    words_per_minute: int = 200

    model_config = {"env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _default_authoring(self) -> "Settings":
        if self.authoring_enabled is None:
            self.authoring_enabled = self.environment == "development"
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
