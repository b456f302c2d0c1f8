"""Entrada principal de la app FastAPI (configura middlewares, excepciones y routers)."""
import logging
from typing import Optional

from fastapi import FastAPI

from authapi.api.router import api_router
from authapi.core.config import Settings, get_settings
from authapi.core.logging import setup_logging
from authapi.core.middleware import add_middlewares
from authapi.core.exceptions import InfrastructureError, register_exception_handlers
from authapi.infrastructure.db.bootstrap import ensure_collections
from authapi.infrastructure.db.mongo import close_mongo, init_mongo
from authapi.infrastructure.cache.redis_client import close_redis

_log = logging.getLogger("authapi.startup")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)
    app = FastAPI(title=settings.app_name)

    add_middlewares(app, settings)
    register_exception_handlers(app)

    @app.on_event("startup")
    def on_startup():
        # Secretos o URIs ausentes: fatal, la app no arranca
        settings.require()
        try:
            ensure_collections(init_mongo(settings))
        except InfrastructureError as e:
            # Mongo caído al arrancar: se reintenta lazy en la primera petición
            _log.warning("Mongo no listo; omitiendo ensure_collections(): %s", e)

    @app.on_event("shutdown")
    def on_shutdown():
        close_mongo()
        close_redis()

    # Monta routers bajo el prefijo configurado
    app.include_router(api_router, prefix=settings.api_prefix_normalized)
    return app


app = create_app()
