"""Application settings."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Default data directory (next to the source tree, like the CLI expects)
DATA_DIR = Path(__file__).parent.parent.parent / "data"


class Settings(BaseSettings):
    """Runtime configuration, read from the environment and an optional .env file."""

    hevy_api_key: str | None = None
    hevy_base_url: str = "https://api.hevyapp.com/v1"
    hevy_timeout_seconds: float = 10.0
    sync_page_delay_seconds: float = 0.1

    openai_api_key: str | None = None
    openai_model: str = "gpt-4.1-2025-04-14"
    openai_temperature: float = 0.3
    openai_max_tokens: int = 8000
    generation_max_attempts: int = 3

    environment: str = "development"
    data_dir: Path = DATA_DIR
    log_level: str = "INFO"
    log_json: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def db_path(self) -> Path:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        return self.data_dir / "hevy_coach.db"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
