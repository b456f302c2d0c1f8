"""Cliente MongoDB (pymongo) con inicialización lazy y única por proceso.

- `init_mongo` conecta y valida con ping; si falla, no cachea nada y el
  siguiente llamado vuelve a intentar (no hay reintentos dentro de un llamado).
- Un lock evita que dos peticiones concurrentes abran dos clientes.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

import certifi
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from authapi.core.config import Settings, get_settings
from authapi.core.exceptions import ConfigurationError, InfrastructureError

_log = logging.getLogger("authapi.mongo")

_lock = threading.Lock()
_client: Optional[MongoClient] = None
_db: Optional[Database] = None


def _build_client(settings: Settings) -> MongoClient:
    uri = settings.mongo_uri or ""
    kwargs = dict(serverSelectionTimeoutMS=settings.mongo_timeout_ms)
    if uri.startswith("mongodb+srv://"):
        # SRV ya implica TLS; proveemos CA bundle para robustez
        kwargs["tlsCAFile"] = certifi.where()
        if settings.mongo_tls_insecure:
            kwargs["tlsAllowInvalidCertificates"] = True
    return MongoClient(uri, **kwargs)


def init_mongo(settings: Optional[Settings] = None) -> Database:
    """Conecta (una sola vez) y devuelve la base configurada."""
    global _client, _db
    if _db is not None:
        return _db
    settings = settings or get_settings()
    if not settings.mongo_uri:
        raise ConfigurationError("MONGODB_URI is not defined")
    with _lock:
        if _db is not None:
            return _db
        client = _build_client(settings)
        try:
            client.admin.command("ping")
        except PyMongoError as e:
            client.close()
            _log.warning("Mongo no accesible: %s", e)
            raise InfrastructureError("Mongo connection failed") from e
        _client = client
        _db = client[settings.mongo_db]
        _log.info("Mongo conectado (db=%s)", settings.mongo_db)
    return _db


def get_db() -> Database:
    """Devuelve la base; úsalo en repositorios, no en routers."""
    return _db if _db is not None else init_mongo()


def db_ready() -> bool:
    return _db is not None


def close_mongo() -> None:
    global _client, _db
    with _lock:
        if _client is not None:
            _client.close()
        _client = None
        _db = None
