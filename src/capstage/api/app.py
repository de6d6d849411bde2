"""FastAPI application factory."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from capstage.api.middleware import capstage_error_handler
from capstage.api.routes import captions, download, render, status, stock, upload
from capstage.models.errors import CapstageError


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Capstage",
        description="Caption and B-roll staging and render service",
        version="0.1.0",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Error handlers
    app.add_exception_handler(CapstageError, capstage_error_handler)

    # Routes
    app.include_router(upload.router)
    app.include_router(render.router)
    app.include_router(status.router)
    app.include_router(download.router)
    app.include_router(captions.router)
    app.include_router(stock.router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": "0.1.0"}

    return app


app = create_app()
