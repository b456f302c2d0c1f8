"""
Esquemas Pydantic para operaciones de autenticación.

- Mantiene las validaciones y normalizaciones (p. ej. email en minúsculas).
- Los mensajes de error del esquema se devuelven tal cual al cliente (400).
"""

from pydantic import BaseModel, field_validator
from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError

MIN_PASSWORD_LENGTH = 6


def _check_password(v: str) -> str:
    if len(v) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    return v


def _check_email(v: str) -> str:
    try:
        _, email = validate_email(v)
    except PydanticCustomError:
        raise ValueError("Invalid email address") from None
    return email.lower()


class SignupPayload(BaseModel):
    name: str
    email: str
    password: str

    @field_validator("name")
    @classmethod
    def _require_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("email")
    @classmethod
    def _valid_email(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def _password_length(cls, v: str) -> str:
        return _check_password(v)


class LoginPayload(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _valid_email(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def _password_length(cls, v: str) -> str:
        return _check_password(v)


# === Response models ===

class UserOut(BaseModel):
    """Respuesta pública de usuario (sin secretos)."""
    id: str
    name: str
    email: str
    role: str


class AuthOut(BaseModel):
    message: str
    user: UserOut


class MessageOut(BaseModel):
    message: str
