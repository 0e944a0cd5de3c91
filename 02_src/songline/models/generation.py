"""Song generation models."""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class GenerationRequest(BaseModel):
    """Arguments of a generate_song tool call."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True, extra="ignore")

    lyrics: str = Field(min_length=1)
    style: str = Field(min_length=1)


class ErrorKind(str, Enum):
    """Why the artifact pipeline stopped."""

    GENERATION_FAILED = "generation_failed"
    DELIVERY_FAILED = "delivery_failed"


@dataclass
class ArtifactResult:
    """Outcome of one pipeline run: an uploaded media handle or an error."""

    media_id: str | None = None
    payload: bytes | None = None
    error_kind: ErrorKind | None = None
    error_message: str | None = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None and self.media_id is not None

    @classmethod
    def success(cls, media_id: str, payload: bytes) -> "ArtifactResult":
        return cls(media_id=media_id, payload=payload)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str | None = None) -> "ArtifactResult":
        return cls(error_kind=kind, error_message=message)
