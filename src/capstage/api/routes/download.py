"""Rendered video download endpoint."""

from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from capstage.api.dependencies import get_orchestrator
from capstage.models.errors import InvalidArguments, NotFoundError
from capstage.models.job import RenderStage
from capstage.pipeline.orchestrator import RenderOrchestrator

router = APIRouter(prefix="/api/v1", tags=["download"])


@router.get("/download/{job_id}")
async def download_render(
    job_id: str,
    orchestrator: RenderOrchestrator = Depends(get_orchestrator),
):
    """Stream the finished video of a completed render job."""
    state = orchestrator.get_job_state(job_id)
    if state is None:
        raise InvalidArguments(f"Job {job_id} not found", details={"job_id": job_id})
    if state.stage is not RenderStage.COMPLETED:
        raise InvalidArguments(
            f"Render for job {job_id} is {state.stage.value}, not completed",
            details={"stage": state.stage.value},
        )

    output = Path(state.output_path) if state.output_path else None
    if output is None or not output.is_file():
        raise NotFoundError(
            f"Rendered video for job {job_id} is gone", component="api", details={"job_id": job_id}
        )

    return FileResponse(output, media_type="video/mp4", filename=f"captioned-{job_id}.mp4")
