"""Render result and progress data models."""

from pathlib import Path

from pydantic import BaseModel, Field


class RenderProgress(BaseModel):
    """Frame/chunk progress reported by the render engine."""

    rendered_frames: int = Field(default=0, ge=0)
    total_frames: int = Field(default=0, ge=0)
    chunk: int = Field(default=0, ge=0)
    total_chunks: int = Field(default=1, ge=1)

    @property
    def fraction(self) -> float:
        if self.total_frames <= 0:
            return 0.0
        return min(1.0, self.rendered_frames / self.total_frames)


class RenderResult(BaseModel):
    """Result of a rendering operation."""

    output_path: str = Field(..., description="Path to rendered output file")
    file_size_bytes: int = Field(..., gt=0)
    duration: float | None = Field(default=None, ge=0, description="Output duration in seconds")
    video_codec: str | None = None
    width: int | None = Field(default=None, gt=0)
    height: int | None = Field(default=None, gt=0)
    fps: float | None = Field(default=None, gt=0)

    @property
    def file_size_mb(self) -> float:
        return self.file_size_bytes / (1024 * 1024)

    @property
    def output_file(self) -> Path:
        return Path(self.output_path)
