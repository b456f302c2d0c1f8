"""Configuración central de la aplicación (Pydantic Settings).

- Carga variables desde .env en la raíz del repositorio.
- Agrupa ajustes por área: App, CORS, Mongo, Redis, Auth/JWT.
- Se construye una sola vez por proceso (`get_settings`) y se pasa a cada
  componente por constructor; ningún componente lee el entorno por su cuenta.
"""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from authapi.core.exceptions import ConfigurationError

# Resuelve el .env ubicado en la raíz del repo (independiente del CWD)
ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    """Variables de configuración con valores por defecto razonables.

    Los secretos y URIs de conexión no tienen default: su ausencia es un
    error fatal de arranque (ver `require`).
    """
    # App
    app_name: str = "Auth API"
    api_prefix: str = "/api/v1"
    app_env: str = Field(
        "development",
        validation_alias=AliasChoices("APP_ENV", "NODE_ENV"),
    )
    log_level: str = "INFO"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Mongo
    mongo_uri: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("MONGODB_URI", "MONGO_URI"),
    )
    mongo_db: str = "auth_db"
    mongo_tls_insecure: bool = False  # solo dev: acepta certificados inválidos
    mongo_timeout_ms: int = 15000

    # Redis (sesiones)
    redis_uri: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("REDIS_URI", "REDIS_URL"),
    )
    redis_socket_timeout: float = 5.0

    # Auth / JWT
    access_token_secret: Optional[str] = None
    refresh_token_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7
    session_ttl_days: int = 7

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # --- Utilidades derivadas / helpers ---
    @property
    def api_prefix_normalized(self) -> str:
        """Devuelve `api_prefix` con '/' inicial y sin '/' final ("" si está vacío)."""
        pref = (self.api_prefix or "").strip()
        if not pref:
            return ""
        if not pref.startswith("/"):
            pref = "/" + pref
        if len(pref) > 1 and pref.endswith("/"):
            pref = pref[:-1]
        return pref

    @property
    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    @property
    def access_token_max_age(self) -> int:
        return self.access_token_expire_minutes * 60

    @property
    def refresh_token_max_age(self) -> int:
        return self.refresh_token_expire_days * 24 * 60 * 60

    @property
    def session_ttl_seconds(self) -> int:
        return self.session_ttl_days * 24 * 60 * 60

    def missing_required(self) -> List[str]:
        """Nombres de las variables obligatorias que no están definidas."""
        required = {
            "MONGODB_URI": self.mongo_uri,
            "REDIS_URI": self.redis_uri,
            "ACCESS_TOKEN_SECRET": self.access_token_secret,
            "REFRESH_TOKEN_SECRET": self.refresh_token_secret,
        }
        return [name for name, value in required.items() if not value]

    def require(self) -> None:
        missing = self.missing_required()
        if missing:
            raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")


@lru_cache
def get_settings() -> Settings:
    return Settings()
