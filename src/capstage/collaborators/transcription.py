"""Transcription collaborator: turns media bytes into caption segments."""

import logging

from openai import OpenAI, OpenAIError

from capstage.config import Settings, get_settings
from capstage.models.captions import CaptionSegment
from capstage.models.errors import ProviderError

logger = logging.getLogger(__name__)


def _field(obj, name: str, default=None):
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


class TranscriptionClient:
    """Opaque speech-to-text call returning timed segments."""

    def __init__(self, client: OpenAI | None = None, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.model = self.settings.transcription_model
        self.client = client
        if self.client is None and self.settings.openai_api_key:
            self.client = OpenAI(api_key=self.settings.openai_api_key)

    def transcribe(
        self, data: bytes, filename: str = "audio.mp4", content_type: str = "video/mp4"
    ) -> list[CaptionSegment]:
        """Transcribe ``data`` and return non-degenerate caption segments."""
        if self.client is None:
            raise ProviderError("Transcription provider is not configured")
        if not data:
            raise ProviderError("No media provided for transcription")

        try:
            response = self.client.audio.transcriptions.create(
                model=self.model,
                file=(filename, data, content_type),
                response_format="verbose_json",
            )
        except OpenAIError as e:
            raise ProviderError(f"Transcription failed: {e}") from e

        captions = []
        for seg in _field(response, "segments", None) or []:
            start = float(_field(seg, "start", 0.0))
            end = float(_field(seg, "end", 0.0))
            if end <= start:
                logger.debug("Skipping zero-length segment at %.2fs", start)
                continue
            captions.append(
                CaptionSegment(start=start, end=end, text=(_field(seg, "text", "") or "").strip())
            )
        return captions
