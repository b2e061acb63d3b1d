"""Application configuration."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from ``HABIT_LEDGER_*`` environment variables or ``.env``."""

    # Start with the demo habits, rewards and last week's history
    seed_demo_data: bool = True

    # Server (local uvicorn runs only)
    server_host: str = "0.0.0.0"
    server_port: int = 8000

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="HABIT_LEDGER_",
        env_file=".env",
        case_sensitive=False,
    )
