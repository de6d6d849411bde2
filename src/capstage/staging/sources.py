"""B-roll source classification and acquisition into a staging directory."""

import logging
import mimetypes
import re
import secrets
import shutil
import time
from enum import StrEnum
from pathlib import Path
from urllib.parse import unquote, urlparse

import httpx

from capstage.models.errors import DownloadFailed, SourceNotFound

logger = logging.getLogger(__name__)

_HINT_RE = re.compile(r"[^A-Za-z0-9_-]+")


class SourceKind(StrEnum):
    FILE_URI = "file_uri"
    LOCAL_PATH = "local_path"
    REMOTE = "remote"


def classify_source(src: str) -> SourceKind:
    """Decide how a B-roll ``src`` must be acquired."""
    lowered = src.strip().lower()
    if lowered.startswith("file://"):
        return SourceKind.FILE_URI
    if lowered.startswith(("http://", "https://")):
        return SourceKind.REMOTE
    return SourceKind.LOCAL_PATH


def local_path_from_src(src: str) -> Path:
    """Filesystem path for a ``file://`` URI or bare path."""
    src = src.strip()
    if classify_source(src) == SourceKind.FILE_URI:
        return Path(unquote(urlparse(src).path))
    return Path(src).expanduser()


def unique_name(hint: str, extension: str) -> str:
    """Staging filename: sanitized hint, millisecond timestamp, random suffix."""
    safe_hint = _HINT_RE.sub("-", hint).strip("-") or "broll"
    ext = extension if not extension or extension.startswith(".") else f".{extension}"
    return f"{safe_hint}-{int(time.time() * 1000)}-{secrets.token_hex(4)}{ext.lower()}"


def copy_local(src: str, staging_dir: Path, hint: str) -> Path:
    """Copy a local source into the staging directory."""
    source = local_path_from_src(src)
    if not source.is_file():
        raise SourceNotFound(f"B-roll source not found: {source}", details={"src": src})
    target = staging_dir / unique_name(hint, source.suffix)
    shutil.copyfile(source, target)
    return target


def _remote_extension(url: str, content_type: str | None) -> str:
    suffix = Path(unquote(urlparse(url).path)).suffix
    if suffix:
        return suffix
    if content_type:
        guessed = mimetypes.guess_extension(content_type.split(";")[0].strip())
        if guessed:
            return guessed
    return ""


def download_remote(
    url: str,
    staging_dir: Path,
    hint: str,
    client: httpx.Client | None = None,
    timeout: float = 60.0,
) -> Path:
    """Fetch a remote source and persist the body into the staging directory."""
    owns_client = client is None
    client = client or httpx.Client(timeout=timeout, follow_redirects=True)
    target: Path | None = None
    try:
        with client.stream("GET", url) as response:
            if not response.is_success:
                raise DownloadFailed(
                    f"Download failed with HTTP {response.status_code}: {url}",
                    status=response.status_code,
                    details={"src": url},
                )
            ext = _remote_extension(url, response.headers.get("content-type"))
            target = staging_dir / unique_name(hint, ext)
            with open(target, "wb") as f:
                for chunk in response.iter_bytes():
                    f.write(chunk)
        return target
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
        # InvalidURL and ValueError come from URL parsing, before any request is sent.
        if target is not None:
            target.unlink(missing_ok=True)
        raise DownloadFailed(f"Download failed for {url}: {e}", details={"src": url}) from e
    finally:
        if owns_client:
            client.close()


def acquire(
    src: str,
    staging_dir: Path,
    hint: str,
    client: httpx.Client | None = None,
    timeout: float = 60.0,
) -> Path:
    """Bring ``src`` into ``staging_dir`` regardless of where it lives."""
    kind = classify_source(src)
    if kind == SourceKind.REMOTE:
        logger.debug("Downloading B-roll %s", src)
        return download_remote(src.strip(), staging_dir, hint, client=client, timeout=timeout)
    return copy_local(src, staging_dir, hint)


def is_video_file(path: Path, video_extensions: list[str]) -> bool:
    """Extension-based video detection."""
    return path.suffix.lstrip(".").lower() in {e.lower() for e in video_extensions}
