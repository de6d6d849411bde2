"""Caption generation endpoint."""

from fastapi import APIRouter, Depends, UploadFile
from fastapi.concurrency import run_in_threadpool

from capstage.api.dependencies import get_transcription_client
from capstage.collaborators.transcription import TranscriptionClient

router = APIRouter(prefix="/api/v1", tags=["captions"])


@router.post("/captions")
async def generate_captions(
    file: UploadFile,
    client: TranscriptionClient = Depends(get_transcription_client),
):
    """Transcribe uploaded media into timed caption segments."""
    data = await file.read()
    captions = await run_in_threadpool(
        client.transcribe,
        data,
        file.filename or "audio.mp4",
        file.content_type or "video/mp4",
    )
    return {"success": True, "captions": [c.model_dump() for c in captions]}
