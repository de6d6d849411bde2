"""Caption and manifest data models."""

from enum import StrEnum

from pydantic import BaseModel, Field, model_validator

from capstage.models.broll import BRollEntry


class StylePreset(StrEnum):
    """Caption overlay presets understood by the composition."""

    BOTTOM = "bottom"
    TOP = "top"
    KARAOKE = "karaoke"


class CaptionSegment(BaseModel):
    """A timed piece of caption text."""

    start: float = Field(..., ge=0, description="Start time in seconds")
    end: float = Field(..., ge=0, description="End time in seconds")
    text: str = Field(default="")

    @model_validator(mode="after")
    def validate_time_range(self) -> "CaptionSegment":
        if self.end <= self.start:
            raise ValueError(f"end ({self.end}) must be > start ({self.start})")
        return self


class Manifest(BaseModel):
    """Captions and B-rolls supplied for one render."""

    captions: list[CaptionSegment] = Field(default_factory=list)
    b_rolls: list[BRollEntry] = Field(default_factory=list, alias="bRolls")

    model_config = {"populate_by_name": True}
