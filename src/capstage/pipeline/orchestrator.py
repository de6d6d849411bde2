"""Render orchestrator: drives one render job from inputs to output file."""

import logging
import math
import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import httpx

from capstage.config import Settings, get_settings
from capstage.models.captions import StylePreset
from capstage.models.errors import CapstageError, InvalidArguments, RenderEngineError
from capstage.models.job import RenderJob, RenderStage, RenderState
from capstage.models.render import RenderProgress, RenderResult
from capstage.rendering.engine import RenderingEngine
from capstage.rendering.props import load_manifest, resolve_input_props
from capstage.server.range_server import AssetRangeServer
from capstage.staging.broll import BRollStager
from capstage.staging.temp_store import TempFileManager

logger = logging.getLogger(__name__)


def validate_arguments(
    video_path: str | Path | None,
    manifest_path: str | Path | None,
    style_preset: str | None,
    output_path: str | Path | None,
    duration_seconds: float | None = None,
) -> tuple[StylePreset, float | None]:
    """Check required inputs before any resource is opened.

    Returns the parsed style preset and the duration hint (zero means none).
    """
    required = {
        "video_path": video_path,
        "manifest_path": manifest_path,
        "style_preset": style_preset,
        "output_path": output_path,
    }
    missing = [name for name, value in required.items() if not value]
    if missing:
        raise InvalidArguments(
            f"Missing required arguments: {', '.join(missing)}", details={"missing": missing}
        )
    try:
        preset = StylePreset(style_preset)
    except ValueError:
        raise InvalidArguments(
            f"Unknown style preset {style_preset!r}",
            details={"allowed": [p.value for p in StylePreset]},
        )
    if duration_seconds is not None:
        if math.isnan(duration_seconds) or duration_seconds < 0:
            raise InvalidArguments(f"Invalid duration: {duration_seconds}")
        if duration_seconds == 0:
            duration_seconds = None
    return preset, duration_seconds


class RenderOrchestrator:
    """Runs render jobs: serve → stage → resolve → render, with guaranteed teardown."""

    def __init__(
        self,
        settings: Settings | None = None,
        temp_store: TempFileManager | None = None,
        engine: RenderingEngine | None = None,
        http_client: httpx.Client | None = None,
    ):
        self.settings = settings or get_settings()
        self.temp_store = temp_store or TempFileManager(self.settings.temp_dir)
        self.engine = engine or RenderingEngine(self.settings)
        self.http_client = http_client
        self._jobs: dict[str, RenderState] = {}

    def create_job(self, video_path: str | Path | None = None) -> RenderState:
        """Register a new render job."""
        now = datetime.now(UTC)
        state = RenderState(
            job_id=str(uuid.uuid4()),
            started_at=now,
            updated_at=now,
            video_path=str(video_path) if video_path else None,
        )
        self._jobs[state.job_id] = state
        return state

    def get_job_state(self, job_id: str) -> RenderState | None:
        """Get current state of a job."""
        return self._jobs.get(job_id)

    def run(
        self,
        video_path: str | Path | None,
        manifest_path: str | Path | None,
        style_preset: str | None,
        output_path: str | Path | None,
        duration_seconds: float | None = None,
        job_id: str | None = None,
        progress_callback: Callable[[RenderProgress], None] | None = None,
    ) -> RenderResult:
        """Run one job end to end and return the rendered output.

        Argument and manifest errors are raised before the asset server is
        started. From then on the server is closed exactly once and the
        staging directory removed, whatever happens.
        """
        preset, duration = validate_arguments(
            video_path, manifest_path, style_preset, output_path, duration_seconds
        )
        manifest = load_manifest(Path(manifest_path))
        job = RenderJob(
            source_video_path=str(video_path),
            captions=manifest.captions,
            b_rolls=manifest.b_rolls,
            style_preset=preset,
            duration_seconds=duration,
            output_path=str(output_path),
        )

        state = self._jobs.get(job_id) if job_id else None
        if state is None:
            state = self.create_job(job.source_video_path)
        state.video_path = job.source_video_path
        return self._execute(job, state, progress_callback)

    def _execute(
        self,
        job: RenderJob,
        state: RenderState,
        progress_callback: Callable[[RenderProgress], None] | None,
    ) -> RenderResult:
        job_id = state.job_id
        staging_dir = self.temp_store.create_job_dir(job_id) / "broll"
        staging_dir.mkdir(parents=True, exist_ok=True)
        server = AssetRangeServer(Path(job.source_video_path), staging_dir, self.settings)

        try:
            handle = server.start()
            self._update_state(job_id, RenderStage.SERVER_STARTED, 0.05, "Serving source video")

            with BRollStager(
                staging_dir, handle.base_url, self.settings, client=self.http_client
            ) as stager:
                report = stager.stage_all(job.b_rolls)
            state.broll_failures = [f"{k}: {v}" for k, v in report.failures.items()]
            self._update_state(
                job_id,
                RenderStage.ASSETS_STAGED,
                0.2,
                f"Staged {report.resolved_count}/{len(job.b_rolls)} B-rolls",
            )

            props = resolve_input_props(
                handle.video_url,
                job.captions,
                report.entries,
                job.style_preset,
                job.duration_seconds,
            )
            self._update_state(job_id, RenderStage.PARAMS_RESOLVED, 0.25, "Composition resolved")

            def on_render_progress(progress: RenderProgress):
                self._update_state(
                    job_id,
                    RenderStage.RENDERING,
                    0.25 + progress.fraction * 0.7,
                    f"Rendered {progress.rendered_frames}/{progress.total_frames} frames",
                )
                if progress_callback:
                    progress_callback(progress)

            self._update_state(job_id, RenderStage.RENDERING, 0.25, "Rendering video...")
            result = self.engine.render(
                props, Path(job.output_path), staging_dir, on_render_progress
            )

            self._update_state(job_id, RenderStage.COMPLETED, 1.0, "Render complete")
            state.output_path = result.output_path
            state.completed_at = datetime.now(UTC)
            return result

        except CapstageError as e:
            self._update_state(job_id, RenderStage.FAILED, message=e.message)
            raise
        except Exception as e:
            self._update_state(job_id, RenderStage.FAILED, message=str(e))
            raise RenderEngineError(f"Render job failed: {e}") from e
        finally:
            server.close()
            self.temp_store.cleanup_job(job_id)

    def _update_state(
        self, job_id: str, stage: RenderStage, progress: float | None = None, message: str = ""
    ):
        """Update job state."""
        if job_id in self._jobs:
            state = self._jobs[job_id]
            state.stage = stage
            if progress is not None:
                state.progress = min(1.0, progress)
            state.message = message
            state.updated_at = datetime.now(UTC)
            if stage == RenderStage.FAILED:
                state.error = message
                logger.error("Job %s failed: %s", job_id, message)

    def delete_job_data(self, job_id: str) -> None:
        """Forget a job and remove anything it left on disk."""
        self.temp_store.cleanup_job(job_id)
        self._jobs.pop(job_id, None)
