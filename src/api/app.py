# src/api/app.py

"""HTTP façade: FastAPI routes over the cached deal feed."""

import asyncio
import logging
import platform
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.config.settings import Settings
from src.services.feed_service import FeedService, InvalidQueryError
from src.services.health_checker import check_snapshot
from src.storage.snapshot_writer import SnapshotWriter

logger = logging.getLogger("dealfeed.api")

AVAILABLE_ROUTES = [
    "/",
    "/produtos",
    "/search?q=",
    "/platform/{name}",
    "/cache/clear",
    "/test",
    "/check-json",
]


def create_app(
    service: FeedService | None = None,
    background_refresh: bool = True,
) -> FastAPI:
    """Build the application around *service* (a default one if omitted)."""
    feed_service = service or FeedService(snapshot_writer=SnapshotWriter())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Warm the cache before serving, stop background work on exit."""
        logger.info("Starting dealfeed API (env=%s)", Settings.ENVIRONMENT)
        feed = await feed_service.warm_up()
        logger.info(
            "Initial feed ready: %d records, origin=%s",
            feed.total_count,
            feed.origin.value,
        )
        if background_refresh:
            feed_service.start_background_refresh()
        yield
        logger.info("Shutting down dealfeed API")
        await feed_service.shutdown()

    app = FastAPI(
        title="dealfeed",
        description="Aggregated marketplace deals with affiliate links",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.feed_service = feed_service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == 404:
            logger.info(
                "Route not found: %s %s", request.method, request.url.path
            )
            return JSONResponse(
                status_code=404,
                content={
                    "error": "Rota não encontrada",
                    "availableRoutes": AVAILABLE_ROUTES,
                },
            )
        return JSONResponse(
            status_code=exc.status_code, content={"error": exc.detail}
        )

    @app.get("/")
    async def get_feed() -> dict[str, Any]:
        """Full feed."""
        feed = await feed_service.get_feed()
        return feed.to_response()

    @app.get("/produtos")
    async def get_feed_alias() -> dict[str, Any]:
        """Alias of ``/`` kept for older frontends."""
        return await get_feed()

    @app.get("/search")
    async def search(q: str = Query("")) -> dict[str, Any]:
        """Records whose title or platform contains ``q``."""
        try:
            feed = await feed_service.search(q)
        except InvalidQueryError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        body = feed.to_response()
        body["query"] = q.strip()
        return body

    @app.get("/platform/{name}")
    async def by_platform(name: str) -> dict[str, Any]:
        feed = await feed_service.by_platform(name)
        body = feed.to_response()
        body["platform"] = name.lower()
        return body

    @app.post("/cache/clear")
    async def clear_cache() -> dict[str, Any]:
        """Drop the cached feed; the next request rebuilds it."""
        had_entry = feed_service.clear_cache()
        return {
            "success": True,
            "cleared": had_entry,
            "message": "Cache limpo com sucesso",
        }

    @app.get("/test")
    async def liveness() -> dict[str, Any]:
        cache = feed_service.cache
        return {
            "message": "Servidor funcionando!",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "pythonVersion": platform.python_version(),
            "env": Settings.ENVIRONMENT,
            "cachePopulated": cache.is_populated,
            "cacheAge": cache.age(),
            "refreshCount": cache.refresh_count,
        }

    @app.get("/check-json")
    async def check_json() -> dict[str, Any]:
        """Probe the remote snapshot document."""
        return await asyncio.to_thread(check_snapshot, Settings.SNAPSHOT_URL)

    return app
