"""Application settings and configuration management."""
from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interview.db")
    STORE_BACKEND: Literal["memory", "sqlite"] = "sqlite"
    APP_CONFIG_PATH: str = "app_config.json"
    QUESTION_BANK_PATH: str = ""

    MIN_QUESTION_COUNT: int = 1
    MAX_QUESTION_COUNT: int = 10  # size of the default question bank
    DEFAULT_QUESTION_COUNT: int = 5

    SCORE_TOLERANCE: float = 0.5
    SCORING_STRATEGY: str = "mean"
    DEGRADED_FEEDBACK: str = "grading unavailable"

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True)


settings = Settings()
