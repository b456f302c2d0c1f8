"""Cliente Redis (redis-py, síncrono) compartido por el proceso.

redis-py abre conexiones bajo demanda desde su pool, así que crear el cliente
no toca la red; los fallos aparecen en el primer comando.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

from redis import Redis

from authapi.core.config import Settings, get_settings
from authapi.core.exceptions import ConfigurationError

_log = logging.getLogger("authapi.redis")

_lock = threading.Lock()
_client: Optional[Redis] = None


def get_redis(settings: Optional[Settings] = None) -> Redis:
    global _client
    if _client is not None:
        return _client
    settings = settings or get_settings()
    if not settings.redis_uri:
        raise ConfigurationError("REDIS_URI is not defined")
    with _lock:
        if _client is None:
            _client = Redis.from_url(
                settings.redis_uri,
                decode_responses=True,
                socket_timeout=settings.redis_socket_timeout,
                socket_connect_timeout=settings.redis_socket_timeout,
            )
            _log.info("Cliente Redis listo")
    return _client


def close_redis() -> None:
    global _client
    with _lock:
        if _client is not None:
            _client.close()
        _client = None
