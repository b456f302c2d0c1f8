"""Persistencia de usuarios (colección `user`)."""
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Protocol

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from authapi.core.exceptions import DuplicateUser, InfrastructureError
from authapi.infrastructure.db.mongo import get_db
from authapi.services.password import hash_password, verify_password

USER_COLL = "user"
DEFAULT_ROLE = "user"


def _now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class UserStore(Protocol):
    def find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]: ...

    def create_user(self, *, name: str, email: str, password: str) -> Dict[str, Any]: ...

    def verify_password(self, user: Dict[str, Any], password: str) -> bool: ...


class MongoUserRepository:
    """Repositorio sobre pymongo; la base se resuelve lazy en cada operación."""

    def __init__(self, db_provider: Callable[[], Database] = get_db) -> None:
        self._db_provider = db_provider

    def _coll(self):
        return self._db_provider()[USER_COLL]

    def find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Busca usuario por email (email en minúsculas)."""
        try:
            return self._coll().find_one({"email": email.lower()})
        except PyMongoError as e:
            raise InfrastructureError("user lookup failed") from e

    def create_user(self, *, name: str, email: str, password: str) -> Dict[str, Any]:
        """Inserta el usuario con el password ya hasheado; devuelve el documento."""
        now = _now_iso()
        doc: Dict[str, Any] = {
            "name": name,
            "email": email.lower(),
            "password_hash": hash_password(password),
            "role": DEFAULT_ROLE,
            "created_at": now,
            "updated_at": now,
        }
        try:
            res = self._coll().insert_one(doc)
        except DuplicateKeyError as e:
            # Carrera entre dos signups: el índice único decide
            raise DuplicateUser("email already registered") from e
        except PyMongoError as e:
            raise InfrastructureError("user insert failed") from e
        doc["_id"] = res.inserted_id
        return doc

    def verify_password(self, user: Dict[str, Any], password: str) -> bool:
        return verify_password(password, user.get("password_hash") or "")


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    """Proyección pública del usuario (sin password_hash)."""
    return {
        "id": str(user.get("_id")),
        "name": user.get("name"),
        "email": user.get("email"),
        "role": user.get("role") or DEFAULT_ROLE,
    }
