"""Companion memory configuration models."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field, model_validator


class StorageConfig(BaseModel):
    """Storage paths configuration."""

    sqlite_db_path: str = "./memory/companion.db"

    @model_validator(mode="after")
    def _validate_paths(self) -> "StorageConfig":
        if self.sqlite_db_path == ":memory:":
            return self
        normalized = os.path.normpath(self.sqlite_db_path)
        parts = normalized.replace("\\", "/").split("/")
        if ".." in parts:
            raise ValueError(
                f"sqlite_db_path must not contain '..' components: "
                f"{self.sqlite_db_path!r}"
            )
        self.sqlite_db_path = normalized
        return self


class ExtractionConfig(BaseModel):
    """Long-term fact extraction cadence."""

    enabled: bool = True
    every_n_turns: int = Field(5, ge=1)
    min_message_length: int = Field(40, ge=0)
    min_turns: int = Field(2, ge=1)


class SummarizationConfig(BaseModel):
    """Mid-term rolling summary cadence."""

    enabled: bool = True
    every_n_interactions: int = Field(10, ge=1)
    min_turns: int = Field(5, ge=1)
    max_words: int = Field(100, ge=10)


class MemoryConfig(BaseModel):
    """Top-level memory configuration."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    long_term_limit: int = Field(10, ge=0)
    recent_turns_limit: int = Field(15, ge=1)
    memory_view_turns: int = Field(20, ge=1)
    persist_retries: int = Field(1, ge=0)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    summarization: SummarizationConfig = Field(default_factory=SummarizationConfig)
