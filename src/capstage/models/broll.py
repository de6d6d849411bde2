"""B-roll entry models."""

from enum import StrEnum

from pydantic import BaseModel, Field


class BRollType(StrEnum):
    IMAGE = "image"
    VIDEO = "video"


class BRollEntry(BaseModel):
    """A supplementary image/video composited over a time window.

    ``src`` is always the caller's original reference (local path, ``file://``
    URI or http(s) URL) and is never rewritten. Staging fills in
    ``resolved_url`` with the address served by the asset range server;
    only that address is handed to the render engine.
    """

    id: str = Field(..., min_length=1)
    src: str = Field(..., min_length=1, description="Original source reference")
    thumb: str | None = None
    type: BRollType = Field(default=BRollType.IMAGE)
    start_seconds: float = Field(default=0.0, ge=0, alias="startSeconds")
    duration_seconds: float = Field(..., gt=0, alias="durationSeconds")
    resolved_url: str | None = Field(default=None, exclude=True)

    model_config = {"populate_by_name": True}

    @property
    def is_resolved(self) -> bool:
        return self.resolved_url is not None

    def with_resolved_url(self, url: str) -> "BRollEntry":
        """Return a copy pointing at a served URL."""
        return self.model_copy(update={"resolved_url": url})

    def to_engine_props(self) -> dict:
        """Serialize for the render engine, exposing only the effective address."""
        props = self.model_dump(by_alias=True, exclude_none=True, mode="json")
        props["src"] = self.resolved_url or self.src
        return props
