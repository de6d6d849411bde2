"""Two-tier video trimming: stream copy first, re-encode as fallback."""

import logging
import subprocess
from pathlib import Path

from capstage.config import Settings, get_settings
from capstage.models.errors import TrimFailed

logger = logging.getLogger(__name__)


class VideoTrimmer:
    """Cuts a video to a target duration without changing its play rate.

    Only ``-t`` is ever set; the frame rate is never overridden, so the
    trimmed clip plays at normal speed whatever the requested duration.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def build_copy_command(self, source: Path, output: Path, duration: float) -> list[str]:
        return [
            self.settings.ffmpeg_bin,
            "-y",
            "-ss",
            "0",
            "-i",
            str(source),
            "-t",
            f"{duration:.3f}",
            "-c",
            "copy",
            "-avoid_negative_ts",
            "make_zero",
            str(output),
        ]

    def build_reencode_command(self, source: Path, output: Path, duration: float) -> list[str]:
        return [
            self.settings.ffmpeg_bin,
            "-y",
            "-ss",
            "0",
            "-i",
            str(source),
            "-t",
            f"{duration:.3f}",
            "-c:v",
            self.settings.trim_video_codec,
            "-preset",
            self.settings.trim_preset,
            "-crf",
            str(self.settings.trim_crf),
            "-pix_fmt",
            self.settings.trim_pixel_format,
            "-c:a",
            self.settings.trim_audio_codec,
            "-movflags",
            "+faststart",
            str(output),
        ]

    def trim(self, source: Path, duration: float) -> Path:
        """Trim ``source`` to ``duration`` seconds and return the new file.

        The source is removed once a trimmed copy exists. Raises
        ``TrimFailed`` (leaving the source untouched) when both tiers fail.
        """
        copy_output = source.with_name(f"{source.stem}-trim{source.suffix}")
        reencode_output = source.with_name(f"{source.stem}-trim-enc.mp4")
        tiers = [
            (
                "copy",
                self.build_copy_command(source, copy_output, duration),
                copy_output,
                self.settings.trim_copy_timeout_seconds,
            ),
            (
                "reencode",
                self.build_reencode_command(source, reencode_output, duration),
                reencode_output,
                self.settings.trim_reencode_timeout_seconds,
            ),
        ]

        failures: dict[str, str] = {}
        for name, cmd, output, timeout in tiers:
            error = self._run_tier(cmd, output, timeout)
            if error is None:
                self._remove_intermediate(source)
                logger.info("Trimmed %s to %.2fs (%s)", source.name, duration, name)
                return output
            failures[name] = error
            output.unlink(missing_ok=True)
            logger.warning("Trim tier '%s' failed for %s: %s", name, source.name, error)

        raise TrimFailed(
            f"Could not trim {source.name} to {duration:.2f}s",
            details={"source": str(source), "failures": failures},
        )

    def _run_tier(self, cmd: list[str], output: Path, timeout: float) -> str | None:
        """Run one trim attempt. Returns an error description, or None on success."""
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, errors="replace", timeout=timeout
            )
        except subprocess.TimeoutExpired:
            return f"timed out after {timeout:.0f}s"
        except OSError as e:
            return f"could not run {cmd[0]}: {e}"
        if result.returncode != 0:
            return f"exit code {result.returncode}: {result.stderr[-500:].strip()}"
        if not output.exists() or output.stat().st_size == 0:
            return "no output produced"
        return None

    @staticmethod
    def _remove_intermediate(path: Path) -> None:
        try:
            path.unlink()
        except OSError as e:
            logger.warning("Could not remove pre-trim file %s: %s", path, e)
