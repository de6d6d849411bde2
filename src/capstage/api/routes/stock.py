"""Stock media search endpoint."""

from typing import Literal

from fastapi import APIRouter, Depends, Query

from capstage.api.dependencies import get_stock_search_client
from capstage.collaborators.stock_search import StockSearchClient

router = APIRouter(prefix="/api/v1", tags=["stock"])


@router.get("/stock-media")
def search_stock_media(
    query: str = "",
    type: Literal["photos", "videos"] = "photos",
    per_page: int = Query(default=12, ge=1, le=80),
    page: int = Query(default=1, ge=1),
    client: StockSearchClient = Depends(get_stock_search_client),
):
    """Search the stock provider for B-roll candidates."""
    results = client.search(query, kind=type, per_page=per_page, page=page)
    return {"results": [r.model_dump() for r in results]}
