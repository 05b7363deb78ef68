"""
Event Grid webhook for local debugging and HTTP push delivery.

Run:  uvicorn thumbnailer.main:app --port 7071

Settings are loaded in the lifespan hook, so importing this module needs no
environment and a missing THUMBNAIL_WIDTH fails at startup instead of on
the first event.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from pydantic import BaseModel

from thumbnailer.config import Settings, load_settings
from thumbnailer.middleware import error_envelope_middleware, request_id_middleware
from thumbnailer.storage import BlobStore, build_blob_store
from thumbnailer.thumbnail.generator import ThumbnailGenerator
from thumbnailer.thumbnail.router import router as events_router


# ── OpenAPI metadata ──────────────────────────────────────────────────────────

_DESCRIPTION = """
## Thumbnailer

Generates a fixed-width thumbnail for every image blob created in storage.

* **Event Grid** — subscription validation handshake and BlobCreated delivery.
* **Formats** — PNG, JPEG and GIF, re-encoded in the source format.
* **Naming** — `<code>_<file>` -> container `<code>`, key `<file>`; or `thumb_<key>`
  in the source container.
"""


# ── Health schema ─────────────────────────────────────────────────────────────

class HealthResponse(BaseModel):
    status: str
    service: str


# ── App factory ───────────────────────────────────────────────────────────────

def _configure(app: FastAPI, settings: Settings, store: BlobStore | None) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(levelname)s:%(name)s: %(message)s",
    )
    app.state.settings = settings
    app.state.generator = ThumbnailGenerator(settings, store or build_blob_store(settings))


@asynccontextmanager
async def lifespan(app: FastAPI):
    if app.state.generator is None:
        _configure(app, load_settings(), app.state.store)
    yield


def create_app(settings: Settings | None = None, store: BlobStore | None = None) -> FastAPI:
    app = FastAPI(
        title="Thumbnailer",
        version="1.0.0",
        description=_DESCRIPTION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.generator = None
    app.state.store = store
    if settings is not None:
        _configure(app, settings, store)

    # Middleware (applied in reverse-registration order: last added = outermost)
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(error_envelope_middleware)

    app.include_router(events_router, prefix="/api/v1")

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", service="thumbnailer")

    return app


app = create_app()
