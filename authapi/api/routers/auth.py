"""Rutas de autenticación: signup, login, logout y refresh del access token."""
import logging
from typing import Callable, Optional

from fastapi import APIRouter, Cookie, Depends, Response, status
from fastapi.responses import JSONResponse

from authapi.api.cookies import REFRESH_COOKIE, clear_auth_cookies, set_access_cookie, set_auth_cookies
from authapi.api.deps import auth_service_provider, get_auth_service, get_current_user_id, get_device_id
from authapi.api.schemas.auth import AuthOut, LoginPayload, MessageOut, SignupPayload
from authapi.core.config import Settings, get_settings
from authapi.core.exceptions import GENERIC_SERVER_ERROR
from authapi.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])

_log = logging.getLogger("authapi.auth.routes")


@router.post(
    "/signup",
    response_model=AuthOut,
    status_code=status.HTTP_201_CREATED,
    summary="Registrar usuario",
    description="Crea el usuario, abre sesión para la device y emite cookies access/refresh.",
)
def signup(
    payload: SignupPayload,
    response: Response,
    device_id: Optional[str] = Depends(get_device_id),
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    result = service.signup(payload, device_id)
    set_auth_cookies(response, result.tokens, settings)
    return {"message": "User created successfully", "user": result.user}


@router.post(
    "/login",
    response_model=AuthOut,
    summary="Login con email y password",
    description="Verifica credenciales; reemplaza la sesión previa de la misma device.",
)
def login(
    payload: LoginPayload,
    response: Response,
    device_id: Optional[str] = Depends(get_device_id),
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    result = service.login(payload, device_id)
    set_auth_cookies(response, result.tokens, settings)
    return {"message": "Login successful", "user": result.user}


@router.get(
    "/logout",
    response_model=MessageOut,
    summary="Cerrar sesión",
    description="Invalida todas las sesiones del usuario y borra ambas cookies.",
)
def logout(
    refresh_token: Optional[str] = Cookie(default=None, alias=REFRESH_COOKIE),
    provider: Callable[[], AuthService] = Depends(auth_service_provider),
    settings: Settings = Depends(get_settings),
):
    try:
        provider().logout(refresh_token)
    except Exception:
        _log.exception("logout failed")
        # Las cookies se borran igual
        resp = JSONResponse(status_code=500, content={"message": GENERIC_SERVER_ERROR})
        clear_auth_cookies(resp, settings)
        return resp
    resp = JSONResponse(status_code=200, content={"message": "Logout successful"})
    clear_auth_cookies(resp, settings)
    return resp


@router.get(
    "/refresh-token",
    response_model=MessageOut,
    summary="Renovar access token",
    description="Valida el refresh token contra el store y emite solo un access token nuevo.",
)
def refresh(
    response: Response,
    refresh_token: Optional[str] = Cookie(default=None, alias=REFRESH_COOKIE),
    device_id: Optional[str] = Depends(get_device_id),
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    access = service.refresh(refresh_token, device_id)
    set_access_cookie(response, access, settings)
    return {"message": "Access token refreshed"}


@router.get(
    "/me",
    summary="Usuario autenticado",
    description="Devuelve el userId del access token de la cookie.",
)
def me(user_id: str = Depends(get_current_user_id)):
    return {"user_id": user_id}
