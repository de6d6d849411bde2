"""Staging directory lifecycle management."""

import logging
import shutil
from pathlib import Path

from capstage.config import get_settings

logger = logging.getLogger(__name__)


class TempFileManager:
    """Manages per-job staging directories with cleanup."""

    def __init__(self, base_dir: Path | None = None):
        self.base_dir = base_dir or get_settings().temp_dir
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._job_dirs: dict[str, Path] = {}

    def create_job_dir(self, job_id: str) -> Path:
        """Create a staging directory owned by one job."""
        job_dir = self.base_dir / job_id
        job_dir.mkdir(parents=True, exist_ok=True)
        self._job_dirs[job_id] = job_dir
        return job_dir

    def cleanup_job(self, job_id: str) -> None:
        """Remove a job's staging directory. Best-effort."""
        job_dir = self._job_dirs.pop(job_id, self.base_dir / job_id)
        if job_dir.exists():
            shutil.rmtree(job_dir, ignore_errors=True)
            logger.info(f"Cleaned up staging files for job {job_id}")
