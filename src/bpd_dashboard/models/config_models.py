"""Configuration models for the BPD dashboard.

This module defines the persisted application configuration and the
credential pair used to reach the remote store.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class StoreConfig(BaseModel):
    """Remote store configuration."""

    timeout: int = Field(default=30)
    rest_path: str = Field(default="/rest/v1")


class SyncConfig(BaseModel):
    """Change notification configuration."""

    realtime: bool = Field(default=True)
    poll_interval: float = Field(default=5.0, gt=0)


class AIConfig(BaseModel):
    """Narrative report generation configuration."""

    model: str = Field(default="gemini-3-flash-preview")
    endpoint: str = Field(default="https://generativelanguage.googleapis.com/v1beta")
    timeout: int = Field(default=60)
    api_key_env: str = Field(default="API_KEY")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        if v.upper() not in valid:
            raise ValueError(f"Invalid logging level: {v}. Valid values: {', '.join(valid)}")
        return v.upper()


class OutputConfig(BaseModel):
    """Output configuration."""

    format: Literal["table", "json", "yaml"] = Field(default="table")


class AppConfig(BaseModel):
    """Main dashboard configuration."""

    store: StoreConfig = Field(default_factory=StoreConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    ai: AIConfig = Field(default_factory=AIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


class StoreCredentials(BaseModel):
    """Store URL and anonymous access key."""

    url: str = Field(..., description="Remote store base URL")
    key: str = Field(..., description="Anonymous access key")

    @field_validator("url", "key")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("credential values cannot be empty")
        return v.strip()
