"""B-roll acquisition pipeline: stage each entry and point it at the range server."""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from urllib.parse import quote

import httpx
from pydantic import BaseModel, Field

from capstage.config import Settings, get_settings
from capstage.models.broll import BRollEntry
from capstage.models.errors import StagingError, TrimFailed
from capstage.staging.sources import acquire, is_video_file
from capstage.staging.trimmer import VideoTrimmer

logger = logging.getLogger(__name__)


class StagedAsset(BaseModel):
    """A B-roll file resident in the staging directory."""

    path: Path
    is_video: bool = False
    trimmed: bool = False
    trim_error: str | None = None


class StagingReport(BaseModel):
    """Outcome of staging a batch of B-roll entries."""

    entries: list[BRollEntry] = Field(default_factory=list)
    failures: dict[str, str] = Field(default_factory=dict)

    @property
    def resolved_count(self) -> int:
        return sum(1 for e in self.entries if e.is_resolved)


class BRollStager:
    """Resolves B-roll sources into a staging directory served at ``base_url``."""

    def __init__(
        self,
        staging_dir: Path,
        base_url: str,
        settings: Settings | None = None,
        client: httpx.Client | None = None,
        trimmer: VideoTrimmer | None = None,
    ):
        self.settings = settings or get_settings()
        self.staging_dir = staging_dir
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.Client(
            timeout=self.settings.download_timeout_seconds, follow_redirects=True
        )
        self.trimmer = trimmer or VideoTrimmer(self.settings)

    def __enter__(self) -> "BRollStager":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def stage_asset(self, src: str, hint: str, desired_duration: float | None = None) -> StagedAsset:
        """Acquire ``src`` and trim it when it is a video and a duration is given.

        Raises ``SourceNotFound`` / ``DownloadFailed``. A failed trim does
        not raise: the untrimmed file is returned with ``trim_error`` set.
        """
        path = acquire(
            src,
            self.staging_dir,
            hint,
            client=self.client,
            timeout=self.settings.download_timeout_seconds,
        )
        if not is_video_file(path, self.settings.video_extensions):
            return StagedAsset(path=path)

        if not desired_duration or desired_duration <= 0:
            return StagedAsset(path=path, is_video=True)

        try:
            trimmed = self.trimmer.trim(path, desired_duration)
        except TrimFailed as e:
            logger.warning("Using untrimmed B-roll %s: %s", path.name, e.message)
            return StagedAsset(path=path, is_video=True, trim_error=e.message)
        return StagedAsset(path=trimmed, is_video=True, trimmed=True)

    def public_url(self, path: Path) -> str:
        return f"{self.base_url}/broll/{quote(path.name)}"

    def stage_entry(self, entry: BRollEntry) -> tuple[BRollEntry, str | None]:
        """Stage one entry. Returns the entry and a failure reason, if any."""
        if entry.is_resolved:
            return entry, None
        try:
            asset = self.stage_asset(entry.src, f"broll-{entry.id}", entry.duration_seconds)
        except StagingError as e:
            logger.warning("B-roll %s left unresolved: %s", entry.id, e.message)
            return entry, e.message
        except OSError as e:
            logger.warning("B-roll %s left unresolved: %s", entry.id, e)
            return entry, str(e)
        except Exception as e:
            logger.exception("B-roll %s left unresolved after unexpected error", entry.id)
            return entry, f"{type(e).__name__}: {e}"
        return entry.with_resolved_url(self.public_url(asset.path)), asset.trim_error

    def stage_all(self, entries: list[BRollEntry]) -> StagingReport:
        """Stage every entry independently; failures never abort the batch."""
        workers = max(1, self.settings.broll_workers)
        if workers == 1 or len(entries) <= 1:
            results = [self.stage_entry(e) for e in entries]
        else:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                results = list(pool.map(self.stage_entry, entries))

        report = StagingReport()
        for entry, failure in results:
            report.entries.append(entry)
            if failure:
                report.failures[entry.id] = failure
        logger.info(
            "Staged %d/%d B-roll entries (%d issues)",
            report.resolved_count,
            len(entries),
            len(report.failures),
        )
        return report
