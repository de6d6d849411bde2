"""Application configuration using Pydantic BaseSettings."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Capstage configuration loaded from environment variables."""

    model_config = {"env_prefix": "CAPSTAGE_", "env_file": ".env", "extra": "ignore"}

    # External tools
    ffmpeg_bin: str = "ffmpeg"
    ffprobe_bin: str = "ffprobe"

    # B-roll trimming
    trim_copy_timeout_seconds: float = 120.0
    trim_reencode_timeout_seconds: float = 240.0
    trim_video_codec: str = "libx264"
    trim_audio_codec: str = "aac"
    trim_preset: str = "veryfast"
    trim_crf: int = 23
    trim_pixel_format: str = "yuv420p"

    # B-roll acquisition
    video_extensions: list[str] = ["mp4", "mov", "mkv", "webm", "ogg", "ogv", "m4v"]
    download_timeout_seconds: float = 60.0
    broll_workers: int = 1

    # Asset range server
    server_host: str = "127.0.0.1"
    server_start_timeout_seconds: float = 10.0

    # Render engine
    render_command: list[str] = ["npx", "remotion", "render"]
    render_entry_point: str = "remotion/index.tsx"
    render_composition_id: str = "VideoWithCaptions"
    render_codec: str = "h264"
    render_concurrency: int = 1
    render_timeout_seconds: float = 120.0
    probe_output: bool = True

    # Upload constraints
    upload_max_size_mb: int = 500
    allowed_video_formats: list[str] = ["mp4", "mov", "webm", "mkv", "m4v"]

    # Directories
    temp_dir: Path = Path("/tmp/capstage/temp")
    output_dir: Path = Path("/tmp/capstage/output")

    # Collaborators
    openai_api_key: str = ""
    transcription_model: str = "whisper-1"
    pexels_api_key: str = ""
    pexels_base_url: str = "https://api.pexels.com"


def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
