# src/subdraft/api/app.py
from __future__ import annotations

import logging

from fastapi import FastAPI

from subdraft import __version__
from subdraft.api.config import load_config
from subdraft.api.middlewares.access_log import AccessLogMiddleware
from subdraft.api.middlewares.error_handler import install_error_handlers
from subdraft.api.middlewares.request_context import RequestContextMiddleware
from subdraft.api.routes import api_router
from subdraft.utils.logger import configure_logging, get_logger

logger = get_logger("subdraft")


def create_app() -> FastAPI:
    cfg = load_config()

    app = FastAPI(
        title="Subdraft API",
        version=__version__,
    )

    # Starlette runs the last added middleware first: request context wraps access log.
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestContextMiddleware, header_name="X-Request-Id")

    # Error handlers (stable error JSON, includes request_id)
    install_error_handlers(app)

    app.include_router(api_router)

    @app.on_event("startup")
    async def _startup() -> None:
        configure_logging(
            logger_name="subdraft",
            console_level=getattr(logging, (cfg.log_level or "INFO").upper(), logging.INFO),
            file_level=logging.DEBUG,
            log_path=(cfg.log_path or None),
        )
        logger.info("API_STARTUP")

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        logger.info("API_SHUTDOWN")

    return app


app = create_app()
