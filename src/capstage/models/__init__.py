"""Data models for Capstage."""

from capstage.models.broll import BRollEntry, BRollType
from capstage.models.captions import CaptionSegment, Manifest, StylePreset
from capstage.models.errors import (
    CapstageError,
    DownloadFailed,
    ErrorResponse,
    InvalidArguments,
    ManifestError,
    NotFoundError,
    OutputMissing,
    ProviderError,
    RenderEngineError,
    RenderingError,
    RenderTimeout,
    SourceNotFound,
    StagingError,
    TrimFailed,
)
from capstage.models.job import RenderJob, RenderStage, RenderState
from capstage.models.render import RenderProgress, RenderResult

__all__ = [
    "BRollEntry",
    "BRollType",
    "CaptionSegment",
    "CapstageError",
    "DownloadFailed",
    "ErrorResponse",
    "InvalidArguments",
    "Manifest",
    "ManifestError",
    "NotFoundError",
    "OutputMissing",
    "ProviderError",
    "RenderEngineError",
    "RenderJob",
    "RenderProgress",
    "RenderResult",
    "RenderStage",
    "RenderState",
    "RenderTimeout",
    "RenderingError",
    "SourceNotFound",
    "StagingError",
    "StylePreset",
    "TrimFailed",
]
