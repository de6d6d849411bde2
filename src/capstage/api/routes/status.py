"""Job status endpoint."""

from fastapi import APIRouter, Depends

from capstage.api.dependencies import get_orchestrator
from capstage.models.errors import InvalidArguments
from capstage.pipeline.orchestrator import RenderOrchestrator

router = APIRouter(prefix="/api/v1", tags=["status"])


@router.get("/status/{job_id}")
async def get_status(
    job_id: str,
    orchestrator: RenderOrchestrator = Depends(get_orchestrator),
):
    """Report a render job's stage, progress, output and B-roll issues."""
    state = orchestrator.get_job_state(job_id)
    if state is None:
        raise InvalidArguments(f"Job {job_id} not found", details={"job_id": job_id})
    # The uploaded source is a server-side path and stays private.
    return state.model_dump(mode="json", exclude={"video_path"})
