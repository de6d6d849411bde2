"""Render engine progress monitoring."""

import re
from collections.abc import Callable

from capstage.models.render import RenderProgress

_FRAMES_RE = re.compile(r"(?:Rendered|Rendering frames|Encoded)\D*?(\d+)\s*/\s*(\d+)", re.IGNORECASE)
_CHUNK_RE = re.compile(r"chunks?\D*?(\d+)\s*/\s*(\d+)", re.IGNORECASE)


class RenderProgressMonitor:
    """Monitor render progress from the engine's output lines."""

    def __init__(self, callback: Callable[[RenderProgress], None] | None = None):
        self.callback = callback
        self.current = RenderProgress()

    def parse_line(self, line: str) -> RenderProgress | None:
        """Parse a frame or chunk counter out of one output line."""
        updated = False
        chunk_match = _CHUNK_RE.search(line)
        if chunk_match:
            chunk, total_chunks = int(chunk_match.group(1)), int(chunk_match.group(2))
            if total_chunks > 0:
                self.current = self.current.model_copy(
                    update={"chunk": chunk, "total_chunks": total_chunks}
                )
                updated = True

        frame_match = _FRAMES_RE.search(line)
        if frame_match:
            rendered, total = int(frame_match.group(1)), int(frame_match.group(2))
            self.current = self.current.model_copy(
                update={"rendered_frames": min(rendered, total), "total_frames": total}
            )
            updated = True

        if not updated:
            return None
        if self.callback:
            self.callback(self.current)
        return self.current

    @property
    def progress(self) -> float:
        """Current progress as fraction [0, 1]."""
        return self.current.fraction
