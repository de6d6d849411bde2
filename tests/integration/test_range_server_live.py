"""Integration tests for the asset range server over a real socket."""

import threading
from unittest.mock import patch

import httpx
import pytest

from capstage.models.errors import InvalidArguments, NotFoundError
from capstage.server import range_server
from capstage.server.range_server import AssetRangeServer
from tests.conftest import generate_fake_media


@pytest.fixture
def http():
    with httpx.Client(trust_env=False, timeout=5) as client:
        yield client


class TestAssetRangeServerLive:
    def test_serves_ranges(self, sample_video, staging_dir, settings, http):
        with AssetRangeServer(sample_video, staging_dir, settings) as handle:
            assert handle.base_url.startswith("http://127.0.0.1:")
            assert handle.file_size == sample_video.stat().st_size

            response = http.get(handle.video_url, headers={"Range": "bytes=100-199"})
            assert response.status_code == 206
            assert response.headers["content-range"] == f"bytes 100-199/{handle.file_size}"
            assert response.content == sample_video.read_bytes()[100:200]
            assert response.headers["access-control-allow-origin"] == "*"

            whole = http.get(handle.video_url)
            assert whole.status_code == 200
            assert len(whole.content) == handle.file_size

    def test_serves_staged_broll(self, sample_video, staging_dir, settings, http):
        clip = generate_fake_media(staging_dir / "broll-b1-1-abcd1234.mp4", size=4096)
        with AssetRangeServer(sample_video, staging_dir, settings) as handle:
            response = http.get(
                f"{handle.base_url}/broll/{clip.name}", headers={"Range": "bytes=0-9"}
            )
            assert response.status_code == 206
            assert response.content == clip.read_bytes()[:10]

    def test_concurrent_range_requests(self, sample_video, staging_dir, settings):
        data = sample_video.read_bytes()
        errors = []

        def fetch(start: int, url: str):
            try:
                with httpx.Client(trust_env=False, timeout=5) as client:
                    r = client.get(url, headers={"Range": f"bytes={start}-{start + 4095}"})
                assert r.content == data[start : start + 4096]
            except Exception as e:  # collected for the main thread
                errors.append(e)

        with AssetRangeServer(sample_video, staging_dir, settings) as handle:
            threads = [
                threading.Thread(target=fetch, args=(i * 8192, handle.video_url)) for i in range(8)
            ]
            for t in threads:
                t.start()
            for t in threads:
                t.join()
        assert errors == []

    def test_stream_error_aborts_only_that_response(self, sample_video, staging_dir, settings, http):
        real_iter = range_server.iter_file_range
        failed = []

        def fail_once(path, start, length):
            if not failed:
                failed.append(path)
                yield b"\0" * 1024
                raise OSError("read error")
            yield from real_iter(path, start, length)

        with AssetRangeServer(sample_video, staging_dir, settings) as handle:
            with patch.object(range_server, "iter_file_range", side_effect=fail_once):
                with pytest.raises(httpx.TransportError):
                    http.get(handle.video_url)

                response = http.get(handle.video_url)
                assert response.status_code == 200
                assert response.content == sample_video.read_bytes()

                ranged = http.get(handle.video_url, headers={"Range": "bytes=10-19"})
                assert ranged.status_code == 206
                assert ranged.content == sample_video.read_bytes()[10:20]
            assert failed

    def test_close_refuses_connections(self, sample_video, staging_dir, settings, http):
        server = AssetRangeServer(sample_video, staging_dir, settings)
        handle = server.start()
        assert server.is_running
        server.close()
        assert not server.is_running
        with pytest.raises(httpx.TransportError):
            http.get(handle.video_url)

    def test_close_is_idempotent(self, sample_video, staging_dir, settings):
        server = AssetRangeServer(sample_video, staging_dir, settings)
        server.start()
        server.close()
        server.close()
        assert not server.is_running

    def test_close_without_start(self, sample_video, staging_dir, settings):
        AssetRangeServer(sample_video, staging_dir, settings).close()

    def test_missing_video(self, tmp_dir, staging_dir, settings):
        with pytest.raises(NotFoundError):
            AssetRangeServer(tmp_dir / "missing.mp4", staging_dir, settings).start()

    def test_rejects_non_loopback_host(self, sample_video, staging_dir, settings):
        settings.server_host = "0.0.0.0"
        with pytest.raises(InvalidArguments):
            AssetRangeServer(sample_video, staging_dir, settings).start()

    def test_each_server_gets_its_own_port(self, sample_video, staging_dir, settings):
        with AssetRangeServer(sample_video, staging_dir, settings) as first:
            with AssetRangeServer(sample_video, staging_dir, settings) as second:
                assert first.port != second.port
