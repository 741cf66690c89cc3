"""
HTTP Application

Builds the FastAPI app that serves the datapack installer router.
"""

import logging
import time
from typing import Callable, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import __version__
from .activity import ActivitySink, JsonLinesActivitySink, LoggingActivitySink
from .api_clients import CatalogClientConfig, VanillaTweaksClient
from .cache import ResponseCache
from .config_loader import default_config
from .panel import ServerRegistry
from .routes import router

logger = logging.getLogger(__name__)


def build_activity_sink(config: Dict) -> ActivitySink:
    log_file = (config.get('activity') or {}).get('log_file')
    if log_file:
        return JsonLinesActivitySink(log_file)
    return LoggingActivitySink()


def create_app(config: Optional[Dict] = None, *,
               registry: Optional[ServerRegistry] = None,
               catalog_client: Optional[VanillaTweaksClient] = None,
               activity: Optional[ActivitySink] = None,
               sleep: Callable[[float], None] = time.sleep) -> FastAPI:
    """
    Build the application

    Args:
        config: Loaded configuration (defaults if None)
        registry: Server/node lookup (built from config if None)
        catalog_client: Vanilla Tweaks client (built from config with a fresh cache if None)
        activity: Audit sink for installs
        sleep: Delay used before archive downloads

    Returns:
        FastAPI application
    """
    config = config or default_config()

    app = FastAPI(title="Minecraft Datapack Installer", version=__version__)

    app.state.config = config
    app.state.registry = registry or ServerRegistry.from_config(config)
    app.state.catalog_client = catalog_client or VanillaTweaksClient(
        CatalogClientConfig.from_dict(config.get('catalog') or {}, config.get('cache')),
        cache=ResponseCache(),
    )
    app.state.activity = activity or build_activity_sink(config)
    app.state.sleep = sleep

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_: Request, exc: RequestValidationError):
        logger.warning(f"Rejected request: {exc.errors()}")
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": "Missing required parameters",
                     "error_code": "INVALID_REQUEST"},
        )

    @app.get("/health")
    def health():
        return {"ok": True, "service": "minecraft-datapack-installer", "version": app.version}

    app.include_router(router)

    logger.info(f"✓ App ready with {len(app.state.registry.servers)} server(s)")
    return app
