"""
Errores de dominio y handlers globales para respuestas de error consistentes.

Cada error de autenticación lleva su status HTTP y un mensaje fijo para el
cliente; el detalle interno solo va al log.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

GENERIC_SERVER_ERROR = "Internal server error"


class AuthError(Exception):
    status_code = 500
    message = GENERIC_SERVER_ERROR

    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__(detail or self.message)
        self.detail = detail


class ValidationError(AuthError):
    """Payload mal formado; el texto del esquema sí se devuelve al cliente."""
    status_code = 400
    message = "Validation error"

    def __init__(self, detail: Optional[str] = None, errors: Optional[list] = None) -> None:
        super().__init__(detail)
        if detail:
            self.message = detail
        self.errors = errors or []


class DuplicateUser(AuthError):
    status_code = 400
    message = "User already exists"


class InvalidCredentials(AuthError):
    """Mismo mensaje para email inexistente y password incorrecto (sin enumeración)."""
    status_code = 401
    message = "Invalid email or password"


class MissingToken(AuthError):
    status_code = 401
    message = "Refresh token not found"


class InvalidToken(AuthError):
    status_code = 401
    message = "Invalid refresh token"


class ConfigurationError(AuthError):
    status_code = 500
    message = GENERIC_SERVER_ERROR


class InfrastructureError(AuthError):
    status_code = 500
    message = GENERIC_SERVER_ERROR


def _req_id(request: Request) -> str | None:
    return getattr(getattr(request, "state", object()), "request_id", None)


def _body(request: Request, message: str, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"message": message, **extra}
    rid = _req_id(request)
    if rid:
        body["request_id"] = rid
    return body


_PUBLIC_ERROR_KEYS = ("type", "loc", "msg")


def _public_errors(errors: list) -> list:
    # `input` y `ctx` pueden contener el body enviado (password incluido)
    return [{k: err[k] for k in _PUBLIC_ERROR_KEYS if k in err} for err in errors]


def _format_validation_errors(errors: list) -> str:
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "Invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "Validation error"


def register_exception_handlers(app: FastAPI) -> None:
    log = logging.getLogger("authapi.errors")

    @app.exception_handler(AuthError)
    async def _auth_error_handler(request: Request, exc: AuthError):
        rid = _req_id(request)
        if exc.status_code >= 500:
            log.error(
                "%s request_id=%s detail=%s",
                type(exc).__name__, rid, exc.detail, exc_info=exc.__cause__ or exc,
            )
        else:
            log.info("%s request_id=%s path=%s", type(exc).__name__, rid, request.url.path)
        extra: Dict[str, Any] = {}
        if isinstance(exc, ValidationError) and exc.errors:
            extra["errors"] = jsonable_encoder(exc.errors)
        return JSONResponse(status_code=exc.status_code, content=_body(request, exc.message, **extra))

    @app.exception_handler(StarletteHTTPException)
    async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_body(request, exc.detail or "HTTP error"),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_handler(request: Request, exc: RequestValidationError):
        errors = _public_errors(list(exc.errors()))
        return await _auth_error_handler(request, ValidationError(_format_validation_errors(errors), errors))

    @app.exception_handler(Exception)
    async def _generic_handler(request: Request, exc: Exception):
        rid = _req_id(request)
        log.exception("Unhandled error request_id=%s", rid)
        return JSONResponse(status_code=500, content=_body(request, GENERIC_SERVER_ERROR))
