"""
Sesiones de refresh token en Redis.

Dos formatos de clave conviven:

- `user_sessions:{userId}`: hash deviceId -> refresh token. Cada escritura
  reinicia el TTL del hash completo (expiración deslizante por usuario).
- `refresh_token:{userId}`: formato legacy de una sola sesión, para clientes
  que no envían `x-device-id`.

La estrategia se resuelve una vez por petición con `session_key`; el store no
vuelve a preguntar si hay device o no.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from redis import Redis
from redis.exceptions import RedisError

from authapi.core.exceptions import InfrastructureError

DEFAULT_SESSION_TTL = 60 * 60 * 24 * 7  # 7 días


def device_sessions_key(user_id: str) -> str:
    return f"user_sessions:{user_id}"


def legacy_session_key(user_id: str) -> str:
    return f"refresh_token:{user_id}"


@dataclass(frozen=True)
class DeviceScoped:
    user_id: str
    device_id: str

    def write(self, client: Redis, token: str, ttl: int) -> None:
        key = device_sessions_key(self.user_id)
        pipe = client.pipeline(transaction=True)
        pipe.hset(key, self.device_id, token)
        pipe.expire(key, ttl)
        pipe.execute()

    def read(self, client: Redis) -> Optional[str]:
        return client.hget(device_sessions_key(self.user_id), self.device_id)


@dataclass(frozen=True)
class Legacy:
    user_id: str

    def write(self, client: Redis, token: str, ttl: int) -> None:
        client.set(legacy_session_key(self.user_id), token, ex=ttl)

    def read(self, client: Redis) -> Optional[str]:
        return client.get(legacy_session_key(self.user_id))


SessionKey = Union[DeviceScoped, Legacy]


def session_key(user_id: str, device_id: Optional[str] = None) -> SessionKey:
    device_id = (device_id or "").strip()
    if device_id:
        return DeviceScoped(user_id=str(user_id), device_id=device_id)
    return Legacy(user_id=str(user_id))


class RedisSessionStore:
    """Store de refresh tokens; los errores de Redis suben como InfrastructureError, sin reintentos."""

    def __init__(self, client: Redis, *, ttl_seconds: int = DEFAULT_SESSION_TTL) -> None:
        self.client = client
        self.ttl_seconds = ttl_seconds

    def put(self, key: SessionKey, token: str) -> None:
        try:
            key.write(self.client, token, self.ttl_seconds)
        except RedisError as e:
            raise InfrastructureError("session store write failed") from e

    def get(self, key: SessionKey) -> Optional[str]:
        try:
            return key.read(self.client)
        except RedisError as e:
            raise InfrastructureError("session store read failed") from e

    def delete_all(self, user_id: str) -> int:
        """Borra todas las sesiones del usuario (todos los devices + legacy). Idempotente."""
        try:
            return int(self.client.delete(device_sessions_key(user_id), legacy_session_key(user_id)) or 0)
        except RedisError as e:
            raise InfrastructureError("session store delete failed") from e
