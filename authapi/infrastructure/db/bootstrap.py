"""
Bootstrap de la base Mongo: define y aplica el validador (JSON Schema) e
índices de la colección `user`.
Se ejecuta al inicio de la app; no tumba el arranque si algo falla.
"""
from __future__ import annotations

from typing import Any, Dict, List
import logging
from pymongo.database import Database
from pymongo.errors import PyMongoError

_log = logging.getLogger("authapi.mongo.bootstrap")

USER_VALIDATOR: Dict[str, Any] = {
    "bsonType": "object",
    "required": ["name", "email", "password_hash", "role", "created_at", "updated_at"],
    "properties": {
        "name": {"bsonType": "string", "minLength": 1},
        "email": {"bsonType": "string", "minLength": 3, "description": "lowercase"},
        "password_hash": {"bsonType": "string"},
        "role": {"bsonType": "string"},
        "created_at": {"bsonType": "string", "minLength": 10},
        "updated_at": {"bsonType": "string", "minLength": 10},
    },
    "additionalProperties": True,
}

USER_INDEXES: List[Dict[str, Any]] = [
    {"keys": [("email", 1)], "unique": True, "name": "uniq_email"},
]


def _collmod_or_create(db: Database, name: str, validator: Dict[str, Any]) -> None:
    try:
        if name in db.list_collection_names():
            db.command({
                "collMod": name,
                "validator": {"$jsonSchema": validator},
                "validationLevel": "moderate",
            })
        else:
            db.create_collection(name, validator={"$jsonSchema": validator})
    except PyMongoError as e:
        # Sin privilegios para collMod: seguimos sin validator estricto
        _log.warning("No se pudo aplicar validator en '%s': %s", name, e)


def _ensure_indexes(db: Database, name: str, indexes: List[Dict[str, Any]]) -> None:
    coll = db[name]
    for ix in indexes:
        spec = dict(ix)
        keys = spec.pop("keys")
        try:
            coll.create_index(keys, **spec)
        except PyMongoError as e:
            _log.warning("No se pudo crear índice en '%s' (%s): %s", name, keys, e)


def ensure_collections(db: Database) -> None:
    """Garantiza la colección `user`, su validador y el índice único por email."""
    _collmod_or_create(db, "user", USER_VALIDATOR)
    _ensure_indexes(db, "user", USER_INDEXES)
