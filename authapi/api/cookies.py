"""
Cookies de sesión: mismos atributos en todos los endpoints.
"""
from datetime import datetime, timedelta, timezone

from fastapi import Response

from authapi.core.config import Settings
from authapi.services.token_service import TokenPair

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"


def _set(response: Response, name: str, value: str, max_age: int, settings: Settings) -> None:
    response.set_cookie(
        key=name,
        value=value,
        max_age=max_age,
        expires=datetime.now(timezone.utc) + timedelta(seconds=max_age),
        path="/",
        secure=settings.is_production,
        httponly=True,
        samesite="strict",
    )


def set_access_cookie(response: Response, token: str, settings: Settings) -> None:
    _set(response, ACCESS_COOKIE, token, settings.access_token_max_age, settings)


def set_auth_cookies(response: Response, tokens: TokenPair, settings: Settings) -> None:
    set_access_cookie(response, tokens.access_token, settings)
    _set(response, REFRESH_COOKIE, tokens.refresh_token, settings.refresh_token_max_age, settings)


def clear_auth_cookies(response: Response, settings: Settings) -> None:
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(
            key=name,
            path="/",
            secure=settings.is_production,
            httponly=True,
            samesite="strict",
        )
