"""
Engine configuration loaded from environment variables.
"""

from functools import lru_cache
from typing import Literal, get_args

from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["debug", "info", "warning", "error", "critical"]
LOG_LEVELS = get_args(LogLevel)

DEFAULT_STOP_WORDS = [
    "the", "and", "for", "with", "this", "that", "will", "can", "should",
]


class Settings(BaseSettings):
    """Dependency engine configuration."""

    model_config = SettingsConfigDict(env_prefix="TASKDEPS_", env_file=".env", extra="ignore")

    # Logging
    log_level: LogLevel = "info"
    log_format: Literal["json", "text"] = "json"

    # Keyword extraction
    keyword_min_length: int = 3
    stop_words: list[str] = DEFAULT_STOP_WORDS

    # Suggestion scoring
    title_weight: float = 40.0
    tag_weight: float = 30.0
    description_keyword_points: int = 2
    description_max_points: int = 30
    min_suggestion_confidence: int = 0

    # Blocking
    unknown_prerequisite_blocks: bool = True


@lru_cache
def get_settings() -> Settings:
    return Settings()
