from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MAX_AUTO_STEPS = 500
DEFAULT_MAX_INCLUDE_DEPTH = 8
DEFAULT_MAX_REPEATS = 200
LOG_LEVELS: set[str] = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    app_name: str = "storygraph"
    env: str = "dev"
    log_level: str = "INFO"

    runtime_max_auto_steps: int = Field(default=DEFAULT_MAX_AUTO_STEPS, ge=1)
    runtime_max_include_depth: int = Field(default=DEFAULT_MAX_INCLUDE_DEPTH, ge=0)
    runtime_max_repeats: int = Field(default=DEFAULT_MAX_REPEATS, ge=1)

    validator_short_content_chars: int = Field(default=10, ge=0)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


def normalize_log_level(level: str | None) -> str:
    candidate = (level or "").strip().upper()
    if candidate not in LOG_LEVELS:
        return "INFO"
    return candidate


settings = Settings()
settings.log_level = normalize_log_level(settings.log_level)
