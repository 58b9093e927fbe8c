"""
FastAPI application entrypoint for the music library backend.

Every /albums, /songs and /playlists endpoint requires:
- Authorization: Bearer <token>   (obtained from POST /auth/login)

Data is owner-scoped: a caller only ever sees and changes its own rows.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from music_library.config import Settings
from music_library.db import Database
from music_library.errors import LibraryError
from music_library.routes_albums import router as albums_router
from music_library.routes_auth import router as auth_router
from music_library.routes_playlists import router as playlists_router
from music_library.routes_songs import router as songs_router

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "Auth", "description": "Register, login and inspect the current user."},
    {"name": "Albums", "description": "Owner-scoped albums; mutations are limited to artists."},
    {"name": "Songs", "description": "Owner-scoped songs, optionally filed under the owner's albums."},
    {"name": "Playlists", "description": "Owner-scoped playlists referencing songs."},
    {"name": "Health", "description": "Service health and basic runtime info."},
]


async def _library_error_handler(request: Request, exc: LibraryError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning(
            "request_failed: path=%s error=%s message=%s", request.url.path, exc.error, exc.message
        )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request_crashed: method=%s path=%s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": LibraryError("Internal server error.").to_detail()})


async def _log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "request: method=%s path=%s status=%s duration_ms=%.1f",
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started) * 1000,
    )
    return response


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Build the application.

    `settings` defaults to `Settings.from_env()`; `database` defaults to a handle
    on `settings.database_url`. The database is opened on startup and closed on
    shutdown by the application lifespan.
    """
    settings = settings or Settings.from_env()
    database = database or Database(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        database.open()
        try:
            yield
        finally:
            database.close()

    app = FastAPI(
        title="Music Library Backend API",
        description=(
            "Multi-user backend for a personal music library.\n\n"
            "Authentication: Bearer JWT from POST /auth/login (valid 24 hours by default).\n\n"
            "Albums may only be created, updated or deleted by accounts with the `artist` role."
        ),
        version="1.0.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins) or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(LibraryError, _library_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
    app.middleware("http")(_log_requests)

    app.include_router(auth_router)
    app.include_router(albums_router)
    app.include_router(songs_router)
    app.include_router(playlists_router)

    @app.get(
        "/",
        summary="Health check",
        description="Simple health check endpoint.",
        tags=["Health"],
    )
    def health_check():
        """Return basic service health information."""
        return {"status": "ok"}

    return app


if __name__ == "__main__":
    import uvicorn

    _settings = Settings.from_env()
    logging.basicConfig(
        level=_settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(_settings), host="0.0.0.0", port=8000, log_level=_settings.log_level.lower())
