"""Asset range server: exposes the source video and staged B-roll over HTTP.

The render engine reads video frames by seeking, so every video resource
supports ``Range: bytes=start-end`` requests. The server binds an ephemeral
port on the loopback interface and runs uvicorn in a background thread for
the lifetime of one render job.
"""

import ipaddress
import logging
import re
import socket
import threading
import time
from collections.abc import Iterator
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response, StreamingResponse
from pydantic import BaseModel

from capstage.config import Settings, get_settings
from capstage.models.errors import CapstageError, InvalidArguments, NotFoundError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Expose-Headers": "Content-Length,Content-Range,Accept-Ranges",
}

IMAGE_MIME_TYPES = {
    "png": "image/png",
    "svg": "image/svg+xml",
    "webp": "image/webp",
}

VIDEO_MIME_TYPES = {
    "webm": "video/webm",
    "mov": "video/quicktime",
    "mkv": "video/x-matroska",
    "ogg": "video/ogg",
    "ogv": "video/ogg",
    "m4v": "video/x-m4v",
}

_RANGE_RE = re.compile(r"^\s*bytes\s*=\s*(\d*)\s*-\s*(\d*)\s*$")


class UnsatisfiableRange(ValueError):
    """A Range header that cannot be served for the file's size."""


def parse_range_header(header: str, file_size: int) -> tuple[int, int] | None:
    """Parse a single ``bytes=`` range into inclusive ``(start, end)``.

    Returns None when the header is not understood, in which case the whole
    file is served. ``end`` defaults to, and is clamped at, ``file_size - 1``;
    ``bytes=-N`` selects the last N bytes.
    """
    match = _RANGE_RE.match(header)
    if not match:
        return None
    start_text, end_text = match.groups()
    if not start_text and not end_text:
        return None

    if not start_text:
        suffix = int(end_text)
        if suffix == 0 or file_size == 0:
            raise UnsatisfiableRange(header)
        return max(0, file_size - suffix), file_size - 1

    start = int(start_text)
    end = int(end_text) if end_text else file_size - 1
    end = min(end, file_size - 1)
    if start >= file_size or start > end:
        raise UnsatisfiableRange(header)
    return start, end


def image_mime_type(path: Path) -> str:
    return IMAGE_MIME_TYPES.get(path.suffix.lstrip(".").lower(), "image/jpeg")


def video_mime_type(path: Path) -> str:
    return VIDEO_MIME_TYPES.get(path.suffix.lstrip(".").lower(), "video/mp4")


def iter_file_range(path: Path, start: int, length: int) -> Iterator[bytes]:
    """Yield ``length`` bytes of ``path`` beginning at ``start``."""
    try:
        with open(path, "rb") as f:
            f.seek(start)
            remaining = length
            while remaining > 0:
                data = f.read(min(CHUNK_SIZE, remaining))
                if not data:
                    break
                remaining -= len(data)
                yield data
    except OSError as e:
        # Propagating aborts this response only; uvicorn drops the connection.
        logger.error("Stream error on %s: %s", path.name, e)
        raise


def ranged_file_response(request: Request, path: Path, media_type: str) -> Response:
    """Serve ``path`` whole (200) or partially (206) depending on the Range header."""
    file_size = path.stat().st_size
    headers = {**CORS_HEADERS, "Accept-Ranges": "bytes"}
    range_header = request.headers.get("range")

    byte_range = None
    if range_header:
        try:
            byte_range = parse_range_header(range_header, file_size)
        except UnsatisfiableRange:
            return Response(
                status_code=416,
                headers={**headers, "Content-Range": f"bytes */{file_size}"},
            )

    if byte_range is None:
        start, end, status_code = 0, file_size - 1, 200
    else:
        start, end = byte_range
        status_code = 206
        headers["Content-Range"] = f"bytes {start}-{end}/{file_size}"

    length = max(0, end - start + 1)
    headers["Content-Length"] = str(length)

    if request.method == "HEAD" or length == 0:
        return Response(status_code=status_code, headers=headers, media_type=media_type)
    return StreamingResponse(
        iter_file_range(path, start, length),
        status_code=status_code,
        headers=headers,
        media_type=media_type,
    )


def whole_file_response(request: Request, path: Path, media_type: str) -> Response:
    headers = {**CORS_HEADERS, "Content-Length": str(path.stat().st_size)}
    if request.method == "HEAD":
        return Response(status_code=200, headers=headers, media_type=media_type)
    return StreamingResponse(
        iter_file_range(path, 0, path.stat().st_size),
        headers=headers,
        media_type=media_type,
    )


def not_found() -> Response:
    return PlainTextResponse("Not found", status_code=404, headers=CORS_HEADERS)


def resolve_staged_file(staging_dir: Path, name: str) -> Path | None:
    """Locate ``name`` directly inside ``staging_dir``; None when absent or escaping."""
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        return None
    root = staging_dir.resolve()
    candidate = (root / name).resolve()
    if candidate.parent != root or not candidate.is_file():
        return None
    return candidate


def create_asset_app(video_path: Path, staging_dir: Path, video_extensions: list[str]) -> FastAPI:
    """Build the ASGI app serving ``/video`` and ``/broll/{name}``."""
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)
    video_exts = {e.lower() for e in video_extensions}

    @app.api_route("/video", methods=["GET", "HEAD"])
    def serve_video(request: Request):
        if not video_path.is_file():
            return not_found()
        return ranged_file_response(request, video_path, "video/mp4")

    @app.api_route("/broll/{name}", methods=["GET", "HEAD"])
    def serve_broll(name: str, request: Request):
        path = resolve_staged_file(staging_dir, name)
        if path is None:
            return not_found()
        if path.suffix.lstrip(".").lower() in video_exts:
            return ranged_file_response(request, path, video_mime_type(path))
        return whole_file_response(request, path, image_mime_type(path))

    @app.options("/{path:path}")
    def preflight(path: str):
        return Response(
            status_code=204,
            headers={
                **CORS_HEADERS,
                "Access-Control-Allow-Methods": "GET, HEAD, OPTIONS",
                "Access-Control-Allow-Headers": "Range",
            },
        )

    @app.api_route("/{path:path}", methods=["GET", "HEAD"])
    def fallback(path: str):
        return not_found()

    return app


class ServerHandle(BaseModel):
    """Addresses of a running asset range server."""

    port: int
    base_url: str
    file_size: int
    staging_dir: Path

    @property
    def video_url(self) -> str:
        return f"{self.base_url}/video"


def _is_loopback(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


class AssetRangeServer:
    """Runs the asset app on an ephemeral loopback port. ``close`` is idempotent."""

    def __init__(self, video_path: Path, staging_dir: Path, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.video_path = Path(video_path)
        self.staging_dir = Path(staging_dir)
        self.handle: ServerHandle | None = None
        self._server: uvicorn.Server | None = None
        self._thread: threading.Thread | None = None
        self._socket: socket.socket | None = None
        self._lock = threading.Lock()
        self._closed = False

    def __enter__(self) -> ServerHandle:
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._closed

    def start(self) -> ServerHandle:
        """Bind, start serving, and return the handle once requests are accepted."""
        if self.handle is not None:
            return self.handle
        if not self.video_path.is_file():
            raise NotFoundError(
                f"Source video not found: {self.video_path}",
                details={"path": str(self.video_path)},
            )
        host = self.settings.server_host
        if not _is_loopback(host):
            raise InvalidArguments(
                f"Asset server must bind a loopback address, got {host!r}",
                details={"host": host},
            )

        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        sock.bind(("127.0.0.1" if host == "localhost" else host, 0))
        port = sock.getsockname()[1]
        self._socket = sock

        app = create_asset_app(self.video_path, self.staging_dir, self.settings.video_extensions)
        config = uvicorn.Config(app, log_level="warning", access_log=False, lifespan="off")
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(
            target=self._server.run,
            kwargs={"sockets": [sock]},
            name=f"asset-range-server-{port}",
            daemon=True,
        )
        self._thread.start()

        deadline = time.monotonic() + self.settings.server_start_timeout_seconds
        while not self._server.started:
            if not self._thread.is_alive() or time.monotonic() > deadline:
                self.close()
                raise CapstageError(
                    "Asset range server failed to start", component="server", details={"port": port}
                )
            time.sleep(0.01)

        url_host = f"[{host}]" if family == socket.AF_INET6 else sock.getsockname()[0]
        self.handle = ServerHandle(
            port=port,
            base_url=f"http://{url_host}:{port}",
            file_size=self.video_path.stat().st_size,
            staging_dir=self.staging_dir,
        )
        logger.info("Asset range server listening on %s", self.handle.base_url)
        return self.handle

    def close(self) -> None:
        """Stop accepting connections. Safe to call any number of times."""
        with self._lock:
            if self._closed:
                return
            self._closed = True

        if self._server is not None:
            self._server.should_exit = True
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=5)
            if self._thread.is_alive() and self._server is not None:
                self._server.force_exit = True
                self._thread.join(timeout=5)
        if self._socket is not None:
            self._socket.close()
        logger.info("Asset range server closed")
