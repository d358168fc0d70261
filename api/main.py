#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
FastAPI Web Server - JSON-RPC control surface for AI Subtitle Translator.

A desktop client drives the whole workflow through a handful of RPC
methods:
- Sessions (create, get, clear, delete, list)
- Files (load a subtitle or a video, list/extract embedded subtitles)
- Translation jobs (start, poll status, fetch/save result, cancel)

Usage:
    # Start server
    uvicorn api.main:app --host 127.0.0.1 --port 9090

    # Or run directly
    python -m api.main

Endpoints:
    POST /rpc - JSON-RPC 2.0 (single call or batch)
    POST /    - same as /rpc
    GET /health - liveness probe

Configuration:
    Environment variables (or .env):
    - PORT: listen port (default: 9090)
    - RATE_LIMIT: RPC rate limit (default: "600/minute")
    - ORACLE_MAX_ATTEMPTS: attempts per batch before giving up (0 = forever)
    - JOB_RETENTION_SECONDS / CLEANUP_INTERVAL_SECONDS: retention sweep
    - FFMPEG_PATH: explicit ffmpeg binary
"""

import json
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from config.constants import SERVER_NAME, SERVER_VERSION
from config.logging_config import get_logger
from config.settings import Settings
from core.errors import MediaToolError
from core.job_store import RetentionSweeper, SessionStore
from core.media import FFmpegToolkit

from api.rpc import RpcDispatcher, parse_error
from api.service import ProviderFactory, SubtitleTranslationService

logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[SessionStore] = None,
    service: Optional[SubtitleTranslationService] = None,
    provider_factory: Optional[ProviderFactory] = None,
    toolkit: Optional[FFmpegToolkit] = None,
) -> FastAPI:
    """
    Build the application around one store and one service.

    Args:
        settings: Settings (read from environment if None)
        store: Session/job store (fresh one if None)
        service: Prebuilt service; store/provider_factory/toolkit are ignored then
        provider_factory: Oracle factory passed to a new service
        toolkit: ffmpeg wrapper passed to a new service
    """
    settings = settings or Settings()
    if service is None:
        store = store or SessionStore(retention_seconds=settings.job_retention_seconds)
        service = SubtitleTranslationService(
            store,
            settings,
            toolkit=toolkit,
            provider_factory=provider_factory,
        )
    sweeper = RetentionSweeper(service.store, settings.cleanup_interval_seconds)
    dispatcher = RpcDispatcher(service.method_table())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # ffmpeg is optional until a video is loaded
        try:
            await service.init()
        except MediaToolError as e:
            logger.warning(f"Startup: {e.message}")
        sweeper.start()
        logger.info(f"{SERVER_NAME} {SERVER_VERSION} ready")
        yield
        await sweeper.stop()
        await service.shutdown()

    app = FastAPI(
        title=SERVER_NAME,
        description="JSON-RPC server for batch subtitle translation",
        version=SERVER_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.service = service
    app.state.sweeper = sweeper
    app.state.dispatcher = dispatcher

    # Rate limiting (configurable via RATE_LIMIT env var)
    limiter = Limiter(key_func=get_remote_address)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @limiter.limit(settings.rate_limit)
    async def rpc_endpoint(request: Request):
        """JSON-RPC 2.0 entry point."""
        body = await request.body()
        try:
            payload = json.loads(body)
        except ValueError:
            return JSONResponse(parse_error())

        response = await dispatcher.handle(payload)
        if response is None:
            return Response(status_code=204)
        return JSONResponse(response)

    app.add_api_route("/rpc", rpc_endpoint, methods=["POST"])
    app.add_api_route("/", rpc_endpoint, methods=["POST"], include_in_schema=False)

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "version": SERVER_VERSION,
            "jobs": service.store.get_stats(),
        }

    return app


app = create_app()


# =============================================================================
# Main Entry Point
# =============================================================================

def main():
    import uvicorn

    settings = app.state.settings
    logger.info(f"Starting {SERVER_NAME}...")
    logger.info(f"JSON-RPC endpoint: http://{settings.host}:{settings.port}/rpc")

    uvicorn.run(app, host=settings.host, port=settings.port, log_level="info")


if __name__ == "__main__":
    main()
