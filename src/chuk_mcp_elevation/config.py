"""
Engine configuration.

Settings are read from the environment (optionally populated from a .env
file by server.py) and validated once, when the engine is built.
"""

import logging
import os

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .constants import (
    DEFAULT_BATCH_CHUNK_SIZE,
    DEFAULT_DATA_PATH,
    DEFAULT_DATA_SOURCE,
    DEFAULT_MAX_BATCH_SIZE,
    EnvVar,
)

logger = logging.getLogger(__name__)


class EngineSettings(BaseModel):
    """Configuration consumed by the query engine."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    data_path: str = Field(DEFAULT_DATA_PATH, description="Directory holding raster tiles")
    batch_chunk_size: int = Field(
        DEFAULT_BATCH_CHUNK_SIZE, ge=1, description="Default points per batch chunk"
    )
    max_batch_size: int = Field(
        DEFAULT_MAX_BATCH_SIZE, ge=1, description="Hard ceiling on points per request"
    )
    data_source: str = Field(DEFAULT_DATA_SOURCE, description="Label reported in metadata")

    @model_validator(mode="after")
    def _chunk_within_batch(self) -> "EngineSettings":
        if self.batch_chunk_size > self.max_batch_size:
            logger.warning(
                f"batch_chunk_size ({self.batch_chunk_size}) exceeds max_batch_size "
                f"({self.max_batch_size}); chunks will be clamped"
            )
        return self

    @classmethod
    def from_env(cls) -> "EngineSettings":
        """Build settings from environment variables, falling back to defaults."""
        values: dict[str, object] = {}
        if EnvVar.DATA_PATH in os.environ:
            values["data_path"] = os.environ[EnvVar.DATA_PATH]
        if EnvVar.BATCH_CHUNK_SIZE in os.environ:
            values["batch_chunk_size"] = os.environ[EnvVar.BATCH_CHUNK_SIZE]
        if EnvVar.MAX_BATCH_SIZE in os.environ:
            values["max_batch_size"] = os.environ[EnvVar.MAX_BATCH_SIZE]
        if EnvVar.DATA_SOURCE in os.environ:
            values["data_source"] = os.environ[EnvVar.DATA_SOURCE]
        return cls.model_validate(values)
