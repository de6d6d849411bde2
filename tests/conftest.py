"""Shared test fixtures and test media generators."""

import json
import tempfile
from pathlib import Path

import pytest

from capstage.config import Settings


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as d:
        yield Path(d)


@pytest.fixture
def settings(tmp_dir):
    """Settings pointing every directory into the test's temp dir."""
    return Settings(
        temp_dir=tmp_dir / "temp",
        output_dir=tmp_dir / "output",
        probe_output=False,
        render_timeout_seconds=30,
    )


@pytest.fixture
def staging_dir(tmp_dir):
    d = tmp_dir / "staging"
    d.mkdir()
    return d


@pytest.fixture
def sample_video(tmp_dir):
    """A fake video file with position-dependent bytes."""
    return generate_fake_media(tmp_dir / "source.mp4", size=256 * 1024)


@pytest.fixture
def sample_captions():
    return [
        {"start": 0.0, "end": 2.0, "text": "hello"},
        {"start": 2.0, "end": 4.5, "text": "world"},
    ]


@pytest.fixture
def manifest_path(tmp_dir, sample_captions):
    return write_manifest(tmp_dir / "manifest.json", {"captions": sample_captions, "bRolls": []})


def generate_fake_media(path: Path, size: int = 4096) -> Path:
    """Write ``size`` bytes whose value depends on their offset."""
    path.write_bytes(bytes(i % 251 for i in range(size)))
    return path


def write_manifest(path: Path, payload) -> Path:
    """Write a JSON manifest file."""
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path
