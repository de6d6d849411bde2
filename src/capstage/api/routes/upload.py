"""Upload endpoint."""

import shutil
from pathlib import Path

from fastapi import APIRouter, Depends, UploadFile

from capstage.api.dependencies import get_app_settings, get_orchestrator
from capstage.config import Settings
from capstage.models.errors import InvalidArguments
from capstage.pipeline.orchestrator import RenderOrchestrator

router = APIRouter(prefix="/api/v1", tags=["upload"])


@router.post("/upload")
def upload_video(
    file: UploadFile,
    orchestrator: RenderOrchestrator = Depends(get_orchestrator),
    settings: Settings = Depends(get_app_settings),
):
    """Upload the source video and open a render job for it."""
    if not file.filename:
        raise InvalidArguments("No filename provided")
    ext = Path(file.filename).suffix.lstrip(".").lower()
    if ext not in settings.allowed_video_formats:
        raise InvalidArguments(
            f"Unsupported format: .{ext}. Allowed: {settings.allowed_video_formats}",
            details={"extension": ext, "allowed": settings.allowed_video_formats},
        )

    state = orchestrator.create_job()
    job_dir = orchestrator.temp_store.create_job_dir(state.job_id)
    file_path = job_dir / f"source.{ext}"

    with open(file_path, "wb") as f:
        shutil.copyfileobj(file.file, f)

    size_mb = file_path.stat().st_size / (1024 * 1024)
    if size_mb > settings.upload_max_size_mb:
        orchestrator.delete_job_data(state.job_id)
        raise InvalidArguments(
            f"File too large: {size_mb:.1f}MB exceeds {settings.upload_max_size_mb}MB limit",
            details={"size_mb": size_mb, "max_mb": settings.upload_max_size_mb},
        )

    state.video_path = str(file_path)
    return {
        "job_id": state.job_id,
        "filename": file.filename,
        "message": "Video uploaded successfully",
    }
