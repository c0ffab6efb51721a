"""Configuration for the mock database.

``MockDatabase`` accepts either a ``MockDbSettings`` instance or a plain dict
of overrides. Anything not overridden falls back to the environment and then
to the defaults below.
"""
import os

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MockDbSettings(BaseModel):
    """Settings shared by a database and every collection it creates."""

    model_config = ConfigDict(validate_default=True, extra="forbid")

    id_field: str = Field(default_factory=lambda: os.getenv("MOCKDB_ID_FIELD", "_id"))
    log_level: str = Field(default_factory=lambda: os.getenv("MOCKDB_LOG_LEVEL", "WARNING"))
    # Deep-copy documents handed out by find/find_one
    copy_results: bool = Field(
        default_factory=lambda: os.getenv("MOCKDB_COPY_RESULTS", "true")
    )

    @field_validator("id_field")
    @classmethod
    def _non_empty_id_field(cls, value: str) -> str:
        if not value:
            raise ValueError("id_field must be a non-empty string")
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()


def _default_settings() -> "MockDbSettings":
    return MockDbSettings()


settings: MockDbSettings = _default_settings()
