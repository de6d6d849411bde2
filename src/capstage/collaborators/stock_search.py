"""Stock-media search collaborator (Pexels)."""

import logging
from typing import Literal

import httpx
from pydantic import BaseModel

from capstage.config import Settings, get_settings
from capstage.models.errors import InvalidArguments, ProviderError

logger = logging.getLogger(__name__)

MediaKind = Literal["photos", "videos"]


class StockMediaResult(BaseModel):
    """A B-roll candidate offered by the stock provider."""

    id: str
    type: Literal["image", "video"]
    thumb: str = ""
    src: str = ""


def _video_result(item: dict) -> StockMediaResult:
    files = item.get("video_files") or []
    hd = next(
        (f for f in files if f.get("quality") == "hd" and f.get("file_type") == "video/mp4"),
        None,
    )
    src = (hd or (files[0] if files else {})).get("link", "")
    thumb = item.get("image") or (files[0].get("link", "") if files else "")
    return StockMediaResult(id=str(item.get("id", "")), type="video", thumb=thumb, src=src)


def _photo_result(item: dict) -> StockMediaResult:
    sizes = item.get("src") or {}
    thumb = sizes.get("medium") or sizes.get("small") or sizes.get("original") or ""
    src = sizes.get("original") or sizes.get("large") or sizes.get("medium") or ""
    return StockMediaResult(id=str(item.get("id", "")), type="image", thumb=thumb, src=src)


class StockSearchClient:
    """Opaque query → candidate image/video URLs."""

    def __init__(self, client: httpx.Client | None = None, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.client = client or httpx.Client(timeout=30.0)

    def search(
        self, query: str, kind: MediaKind = "photos", per_page: int = 12, page: int = 1
    ) -> list[StockMediaResult]:
        if not query or not query.strip():
            raise InvalidArguments("query required")
        if not self.settings.pexels_api_key:
            raise ProviderError("Stock media provider is not configured")

        base = self.settings.pexels_base_url.rstrip("/")
        url = f"{base}/videos/search" if kind == "videos" else f"{base}/v1/search"
        params = {"query": query, "per_page": per_page, "page": page, "orientation": "portrait"}

        try:
            response = self.client.get(
                url, params=params, headers={"Authorization": self.settings.pexels_api_key}
            )
        except httpx.HTTPError as e:
            raise ProviderError(f"Stock media search failed: {e}") from e

        if not response.is_success:
            raise ProviderError(
                f"Stock media provider responded with {response.status_code}",
                details={"status": response.status_code, "body": response.text[:500]},
            )

        payload = response.json()
        if kind == "videos":
            return [_video_result(v) for v in payload.get("videos") or []]
        return [_photo_result(p) for p in payload.get("photos") or []]
