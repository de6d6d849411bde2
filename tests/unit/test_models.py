"""Tests for Pydantic data models and the error hierarchy."""

import pytest

from capstage.models.broll import BRollEntry, BRollType
from capstage.models.captions import CaptionSegment, Manifest, StylePreset
from capstage.models.errors import (
    CapstageError,
    DownloadFailed,
    ErrorResponse,
    InvalidArguments,
    OutputMissing,
    RenderingError,
    RenderTimeout,
    SourceNotFound,
    StagingError,
    TrimFailed,
)
from capstage.models.job import RenderJob, RenderStage, RenderState
from capstage.models.render import RenderProgress, RenderResult


class TestCaptionSegment:
    def test_valid_segment(self):
        seg = CaptionSegment(start=0.0, end=1.5, text="hi")
        assert seg.end - seg.start == 1.5

    def test_end_before_start(self):
        with pytest.raises(Exception):
            CaptionSegment(start=2.0, end=1.0, text="x")

    def test_equal_start_end(self):
        with pytest.raises(Exception):
            CaptionSegment(start=1.0, end=1.0, text="x")

    def test_negative_start(self):
        with pytest.raises(Exception):
            CaptionSegment(start=-0.5, end=1.0, text="x")


class TestManifest:
    def test_accepts_camel_case_alias(self):
        manifest = Manifest.model_validate(
            {"bRolls": [{"id": "b1", "src": "/x.jpg", "durationSeconds": 2}]}
        )
        assert len(manifest.b_rolls) == 1


class TestBRollEntry:
    def test_camel_case_fields(self):
        entry = BRollEntry.model_validate(
            {
                "id": "b1",
                "src": "https://example.com/a.mp4",
                "type": "video",
                "startSeconds": 1.5,
                "durationSeconds": 3,
            }
        )
        assert entry.type == BRollType.VIDEO
        assert entry.start_seconds == 1.5
        assert entry.duration_seconds == 3.0
        assert not entry.is_resolved

    def test_duration_must_be_positive(self):
        with pytest.raises(Exception):
            BRollEntry(id="b1", src="/a.jpg", duration_seconds=0)

    def test_resolution_keeps_original_src(self):
        entry = BRollEntry(id="b1", src="/media/a.jpg", duration_seconds=2)
        resolved = entry.with_resolved_url("http://127.0.0.1:9/broll/a.jpg")
        assert resolved.src == "/media/a.jpg"
        assert resolved.resolved_url == "http://127.0.0.1:9/broll/a.jpg"
        assert entry.resolved_url is None

    def test_engine_props_expose_resolved_url(self):
        entry = BRollEntry(
            id="b1", src="/media/a.jpg", thumb="t.jpg", duration_seconds=2
        ).with_resolved_url("http://127.0.0.1:9/broll/a.jpg")
        props = entry.to_engine_props()
        assert props["src"] == "http://127.0.0.1:9/broll/a.jpg"
        assert props["durationSeconds"] == 2
        assert props["startSeconds"] == 0
        assert props["type"] == "image"
        assert "resolved_url" not in props
        assert "resolvedUrl" not in props

    def test_engine_props_fall_back_to_original_src(self):
        entry = BRollEntry(id="b1", src="https://x/a.jpg", duration_seconds=2)
        assert entry.to_engine_props()["src"] == "https://x/a.jpg"
        assert "thumb" not in entry.to_engine_props()


class TestRenderJob:
    def test_defaults(self):
        job = RenderJob(source_video_path="/v.mp4", output_path="/o.mp4")
        assert job.style_preset == StylePreset.BOTTOM
        assert job.captions == []
        assert job.b_rolls == []
        assert job.duration_seconds is None

    def test_duration_must_be_positive(self):
        with pytest.raises(Exception):
            RenderJob(source_video_path="/v.mp4", output_path="/o.mp4", duration_seconds=0)


class TestRenderState:
    def test_default_stage(self):
        state = RenderState(job_id="j1")
        assert state.stage == RenderStage.IDLE
        assert state.progress == 0.0

    def test_progress_bounds(self):
        with pytest.raises(Exception):
            RenderState(job_id="j1", progress=1.5)


class TestRenderProgress:
    def test_fraction(self):
        assert RenderProgress(rendered_frames=30, total_frames=120).fraction == 0.25

    def test_fraction_without_total(self):
        assert RenderProgress().fraction == 0.0


class TestRenderResult:
    def test_file_size_mb(self):
        result = RenderResult(output_path="/o.mp4", file_size_bytes=2 * 1024 * 1024)
        assert result.file_size_mb == 2.0
        assert result.output_file.name == "o.mp4"

    def test_empty_output_rejected(self):
        with pytest.raises(Exception):
            RenderResult(output_path="/o.mp4", file_size_bytes=0)


class TestErrors:
    def test_hierarchy(self):
        assert issubclass(SourceNotFound, StagingError)
        assert issubclass(TrimFailed, StagingError)
        assert issubclass(RenderTimeout, RenderingError)
        assert issubclass(OutputMissing, RenderingError)
        assert issubclass(InvalidArguments, CapstageError)

    def test_components(self):
        assert InvalidArguments("x").component == "arguments"
        assert SourceNotFound("x").component == "staging"
        assert RenderTimeout("x").component == "rendering"

    def test_download_failed_carries_status(self):
        err = DownloadFailed("nope", status=404)
        assert err.status == 404
        assert err.details["status"] == 404

    def test_error_response(self):
        resp = ErrorResponse.from_exception(RenderTimeout("too slow"), retry=True)
        assert resp.error_type == "RenderTimeout"
        assert resp.component == "rendering"
        assert resp.retry_possible
