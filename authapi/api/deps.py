"""
Dependencias reutilizables para routers (FastAPI Depends).

- Construye el servicio de auth una sola vez a partir de `Settings`.
- Autenticación: extrae y valida el access token de la cookie.
- Mantener esta capa delgada: sin lógica de negocio.
"""
from functools import lru_cache
from typing import Callable, Optional

from fastapi import Cookie, Depends, Header, HTTPException, Request
from starlette.status import HTTP_401_UNAUTHORIZED

from authapi.api.cookies import ACCESS_COOKIE
from authapi.core.config import Settings, get_settings
from authapi.core.exceptions import InvalidToken
from authapi.infrastructure.cache.redis_client import get_redis
from authapi.repositories.user_repo import MongoUserRepository
from authapi.services.auth_service import AuthService
from authapi.services.session_store import RedisSessionStore
from authapi.services.token_service import TokenIssuer


def build_auth_service(settings: Settings) -> AuthService:
    return AuthService(
        users=MongoUserRepository(),
        sessions=RedisSessionStore(get_redis(settings), ttl_seconds=settings.session_ttl_seconds),
        tokens=TokenIssuer(settings),
    )


@lru_cache
def get_auth_service() -> AuthService:
    # Si falta configuración no se cachea: el error se repite en cada petición
    return build_auth_service(get_settings())


def get_device_id(x_device_id: Optional[str] = Header(default=None, alias="x-device-id")) -> Optional[str]:
    return (x_device_id or "").strip() or None


def get_current_user_id(
    access_token: Optional[str] = Cookie(default=None, alias=ACCESS_COOKIE),
    service: AuthService = Depends(get_auth_service),
) -> str:
    if not access_token:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Missing access token")
    try:
        return service.tokens.verify_access_token(access_token)
    except InvalidToken:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid access token") from None


def auth_service_provider(request: Request) -> Callable[[], AuthService]:
    """Devuelve el constructor del servicio sin invocarlo (respeta `dependency_overrides`).

    Para rutas que deben responder aunque el servicio no pueda construirse (logout).
    """
    return request.app.dependency_overrides.get(get_auth_service, get_auth_service)
