"""Rendering engine: drives the external frame renderer as a subprocess."""

import json
import logging
import os
import signal
import subprocess
import threading
import time
from collections import deque
from collections.abc import Callable
from pathlib import Path

from capstage.config import Settings, get_settings
from capstage.models.errors import OutputMissing, RenderEngineError, RenderTimeout
from capstage.models.render import RenderProgress, RenderResult
from capstage.rendering.progress import RenderProgressMonitor

logger = logging.getLogger(__name__)


class RenderingEngine:
    """Renders a composition from input props with one worker and a hard time budget."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def render(
        self,
        input_props: dict,
        output_path: Path,
        work_dir: Path,
        progress_callback: Callable[[RenderProgress], None] | None = None,
    ) -> RenderResult:
        """Render to ``output_path``. Never retries; any failure is raised."""
        output_path.parent.mkdir(parents=True, exist_ok=True)
        props_path = work_dir / "input-props.json"
        props_path.write_text(json.dumps(input_props), encoding="utf-8")

        cmd = self.build_render_command(props_path, output_path)
        monitor = RenderProgressMonitor(progress_callback)
        timeout = self.settings.render_timeout_seconds
        logger.info("Rendering %s -> %s", self.settings.render_composition_id, output_path)
        logger.debug("Render command: %s", " ".join(cmd))

        try:
            process = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                start_new_session=True,
            )
        except OSError as e:
            raise RenderEngineError(
                f"Could not start render engine: {e}",
                details={"command": cmd[0]},
            ) from e

        tail: deque[str] = deque(maxlen=30)
        reader = threading.Thread(
            target=self._consume_output, args=(process, monitor, tail), daemon=True
        )
        reader.start()
        started = time.monotonic()

        try:
            process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            self._kill(process)
            reader.join(timeout=5)
            output_path.unlink(missing_ok=True)
            raise RenderTimeout(
                f"Render exceeded {timeout:.0f}s and was stopped",
                details={"timeout_seconds": timeout, "output": "".join(tail)},
            )
        reader.join(timeout=5)

        if process.returncode != 0:
            output_path.unlink(missing_ok=True)
            logger.error("Render engine failed (code %d)", process.returncode)
            raise RenderEngineError(
                f"Render engine exited with code {process.returncode}",
                details={"returncode": process.returncode, "output": "".join(tail)},
            )

        logger.info("Render finished in %.1fs", time.monotonic() - started)
        return self.validate_output(output_path)

    def build_render_command(self, props_path: Path, output_path: Path) -> list[str]:
        """Build the complete render engine command."""
        return [
            *self.settings.render_command,
            self.settings.render_entry_point,
            self.settings.render_composition_id,
            str(output_path),
            f"--props={props_path}",
            f"--concurrency={self.settings.render_concurrency}",
            f"--codec={self.settings.render_codec}",
        ]

    @staticmethod
    def _consume_output(
        process: subprocess.Popen, monitor: RenderProgressMonitor, tail: deque
    ) -> None:
        for line in process.stdout:
            tail.append(line)
            logger.debug("[render] %s", line.rstrip())
            try:
                monitor.parse_line(line)
            except Exception:
                # Keep draining stdout or the engine blocks on a full pipe.
                logger.exception("Progress handling failed for line %r", line.rstrip())

    @staticmethod
    def _kill(process: subprocess.Popen) -> None:
        """Kill the engine and any workers it spawned."""
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except (AttributeError, ProcessLookupError, PermissionError):
            process.kill()
        process.wait()

    def validate_output(self, output_path: Path) -> RenderResult:
        """Check the output exists and is non-empty, then probe it for metadata."""
        if not output_path.is_file() or output_path.stat().st_size == 0:
            raise OutputMissing(
                "Render produced no output file", details={"output": str(output_path)}
            )
        file_size = output_path.stat().st_size
        if not self.settings.probe_output:
            return RenderResult(output_path=str(output_path), file_size_bytes=file_size)

        try:
            result = subprocess.run(
                [
                    self.settings.ffprobe_bin,
                    "-v",
                    "quiet",
                    "-print_format",
                    "json",
                    "-show_format",
                    "-show_streams",
                    str(output_path),
                ],
                capture_output=True,
                text=True,
                timeout=30,
            )
            probe = json.loads(result.stdout)
        except (OSError, subprocess.TimeoutExpired, json.JSONDecodeError) as e:
            logger.warning("Could not probe render output %s: %s", output_path, e)
            return RenderResult(output_path=str(output_path), file_size_bytes=file_size)

        return self._result_from_probe(output_path, file_size, probe)

    @staticmethod
    def _result_from_probe(output_path: Path, file_size: int, probe: dict) -> RenderResult:
        duration = probe.get("format", {}).get("duration")
        video_codec = width = height = fps = None

        for stream in probe.get("streams", []):
            if stream.get("codec_type") != "video":
                continue
            video_codec = stream.get("codec_name")
            width = stream.get("width")
            height = stream.get("height")
            r_fps = str(stream.get("r_frame_rate", ""))
            if "/" in r_fps:
                num, den = r_fps.split("/")
                if int(den) > 0 and int(num) > 0:
                    fps = int(num) / int(den)
            break

        return RenderResult(
            output_path=str(output_path),
            file_size_bytes=file_size,
            duration=float(duration) if duration is not None else None,
            video_codec=video_codec,
            width=width,
            height=height,
            fps=fps,
        )
