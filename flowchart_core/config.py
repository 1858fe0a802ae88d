"""
Runtime settings for analysis and layout.

Values are read from environment variables prefixed with ``FLOWCHART_``
(or a local ``.env`` file) and validated by pydantic-settings.
"""

from functools import lru_cache
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings shared by the analyzer, the layout engine and the MCP server."""

    # === Analysis ===
    max_paths: int = Field(
        default=10_000, ge=1,
        description="Stop path enumeration after this many paths"
    )

    # === Layout ===
    layout_seed: Optional[int] = Field(
        default=None,
        description="Seed for force-directed start positions (None = nondeterministic)"
    )

    # === Logging ===
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[str] = Field(default=None, description="Optional log file path")

    model_config = SettingsConfigDict(
        env_prefix="FLOWCHART_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()


@lru_cache()
def get_settings() -> Settings:
    """Get the cached settings instance (loaded once per process)."""
    return Settings()
