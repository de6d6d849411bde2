"""Render endpoint."""

import json
import logging
from pathlib import Path
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel, Field

from capstage.api.dependencies import get_app_settings, get_orchestrator
from capstage.config import Settings
from capstage.models.captions import StylePreset
from capstage.models.errors import CapstageError, InvalidArguments
from capstage.pipeline.orchestrator import RenderOrchestrator
from capstage.rendering.props import parse_manifest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["render"])


class RenderRequest(BaseModel):
    job_id: str
    captions: list[Any] | dict[str, Any] = Field(default_factory=list)
    style_preset: StylePreset = Field(default=StylePreset.BOTTOM, alias="stylePreset")
    duration_in_seconds: float | None = Field(default=None, ge=0, alias="durationInSeconds")

    model_config = {"populate_by_name": True}


def _run_job(orchestrator: RenderOrchestrator, **kwargs) -> None:
    try:
        orchestrator.run(**kwargs)
    except CapstageError as e:
        # Already recorded on the job state for the status endpoint.
        logger.warning("Render job %s failed: %s", kwargs.get("job_id"), e.message)


@router.post("/render")
async def start_render(
    request: RenderRequest,
    background_tasks: BackgroundTasks,
    orchestrator: RenderOrchestrator = Depends(get_orchestrator),
    settings: Settings = Depends(get_app_settings),
):
    """Start rendering captions and B-rolls over an uploaded video."""
    state = orchestrator.get_job_state(request.job_id)
    if not state:
        raise InvalidArguments(f"Job {request.job_id} not found")
    if not state.video_path:
        raise InvalidArguments("No video uploaded for this job")

    manifest = parse_manifest(request.captions)
    job_dir = orchestrator.temp_store.create_job_dir(state.job_id)
    manifest_path = job_dir / "manifest.json"
    manifest_path.write_text(json.dumps(request.captions), encoding="utf-8")

    output_dir = Path(settings.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    background_tasks.add_task(
        _run_job,
        orchestrator,
        video_path=state.video_path,
        manifest_path=manifest_path,
        style_preset=request.style_preset.value,
        output_path=output_dir / f"{state.job_id}.mp4",
        duration_seconds=request.duration_in_seconds,
        job_id=state.job_id,
    )

    return {
        "job_id": state.job_id,
        "status": "rendering",
        "captions": len(manifest.captions),
        "b_rolls": len(manifest.b_rolls),
        "message": "Render started",
    }
