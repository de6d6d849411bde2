"""Dependency injection providers for FastAPI."""

from functools import lru_cache

from capstage.collaborators.stock_search import StockSearchClient
from capstage.collaborators.transcription import TranscriptionClient
from capstage.config import Settings, get_settings
from capstage.pipeline.orchestrator import RenderOrchestrator


@lru_cache
def get_orchestrator() -> RenderOrchestrator:
    return RenderOrchestrator()


@lru_cache
def get_transcription_client() -> TranscriptionClient:
    return TranscriptionClient()


@lru_cache
def get_stock_search_client() -> StockSearchClient:
    return StockSearchClient()


def get_app_settings() -> Settings:
    return get_settings()
