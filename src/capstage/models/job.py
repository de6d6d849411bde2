"""Render job request and state models."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from capstage.models.broll import BRollEntry
from capstage.models.captions import CaptionSegment, StylePreset


class RenderStage(StrEnum):
    """Stages of one render job."""

    IDLE = "idle"
    SERVER_STARTED = "server_started"
    ASSETS_STAGED = "assets_staged"
    PARAMS_RESOLVED = "params_resolved"
    RENDERING = "rendering"
    COMPLETED = "completed"
    FAILED = "failed"


class RenderJob(BaseModel):
    """Aggregate request for a single render invocation."""

    source_video_path: str = Field(..., min_length=1)
    captions: list[CaptionSegment] = Field(default_factory=list)
    b_rolls: list[BRollEntry] = Field(default_factory=list)
    style_preset: StylePreset = Field(default=StylePreset.BOTTOM)
    duration_seconds: float | None = Field(default=None, gt=0)
    output_path: str = Field(..., min_length=1)


class RenderState(BaseModel):
    """Current state of a render job."""

    job_id: str = Field(..., min_length=1)
    stage: RenderStage = Field(default=RenderStage.IDLE)
    progress: float = Field(default=0.0, ge=0, le=1)
    message: str = Field(default="")
    started_at: datetime | None = None
    updated_at: datetime | None = None
    completed_at: datetime | None = None
    error: str | None = None
    video_path: str | None = None
    output_path: str | None = None
    broll_failures: list[str] = Field(default_factory=list)
