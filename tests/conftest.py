import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from authapi.api.deps import get_auth_service  # noqa: E402
from authapi.core.config import Settings, get_settings  # noqa: E402
from authapi.core.exceptions import DuplicateUser  # noqa: E402
from authapi.main import create_app  # noqa: E402
from authapi.services.auth_service import AuthService  # noqa: E402
from authapi.services.password import hash_password, verify_password  # noqa: E402
from authapi.services.session_store import RedisSessionStore  # noqa: E402
from authapi.services.token_service import TokenIssuer  # noqa: E402

ACCESS_SECRET = "test-access-secret-do-not-use-in-production"
REFRESH_SECRET = "test-refresh-secret-do-not-use-in-production"


class MutableClock:
    """Reloj controlable; arranca en la hora real para que PyJWT acepte los tokens."""

    def __init__(self) -> None:
        self.now = datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakePipeline:
    def __init__(self, redis: "FakeRedis") -> None:
        self.redis = redis
        self.ops: List[tuple] = []

    def hset(self, *args):
        self.ops.append(("hset", args))
        return self

    def expire(self, *args):
        self.ops.append(("expire", args))
        return self

    def execute(self):
        self.redis._check()
        return [getattr(self.redis, name)(*args) for name, args in self.ops]


class FakeRedis:
    """Doble en memoria con el subconjunto de comandos que usa el session store."""

    def __init__(self) -> None:
        self.strings: Dict[str, str] = {}
        self.hashes: Dict[str, Dict[str, str]] = {}
        self.ttls: Dict[str, int] = {}
        self.calls: List[str] = []
        self.fail = False

    def _check(self) -> None:
        if self.fail:
            raise RedisConnectionError("redis down")

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self)

    def hset(self, key: str, field: str, value: str) -> int:
        self._check()
        self.calls.append("hset")
        bucket = self.hashes.setdefault(key, {})
        created = field not in bucket
        bucket[field] = value
        return int(created)

    def hget(self, key: str, field: str) -> Optional[str]:
        self._check()
        self.calls.append("hget")
        return self.hashes.get(key, {}).get(field)

    def expire(self, key: str, seconds: int) -> bool:
        self._check()
        self.calls.append("expire")
        if key not in self.hashes and key not in self.strings:
            return False
        self.ttls[key] = seconds
        return True

    def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        self._check()
        self.calls.append("set")
        self.strings[key] = value
        if ex is not None:
            self.ttls[key] = ex
        return True

    def get(self, key: str) -> Optional[str]:
        self._check()
        self.calls.append("get")
        return self.strings.get(key)

    def delete(self, *keys: str) -> int:
        self._check()
        self.calls.append("delete")
        removed = 0
        for key in keys:
            if self.hashes.pop(key, None) is not None or self.strings.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    def ttl(self, key: str) -> int:
        return self.ttls.get(key, -2)


class InMemoryUserStore:
    def __init__(self) -> None:
        self.users: Dict[str, Dict[str, Any]] = {}

    def find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return self.users.get(email.lower())

    def create_user(self, *, name: str, email: str, password: str) -> Dict[str, Any]:
        if email.lower() in self.users:
            raise DuplicateUser()
        doc = {
            "_id": ObjectId(),
            "name": name,
            "email": email.lower(),
            "password_hash": hash_password(password),
            "role": "user",
        }
        self.users[doc["email"]] = doc
        return doc

    def verify_password(self, user: Dict[str, Any], password: str) -> bool:
        return verify_password(password, user.get("password_hash") or "")


def make_settings(**overrides) -> Settings:
    values = dict(
        access_token_secret=ACCESS_SECRET,
        refresh_token_secret=REFRESH_SECRET,
        mongo_uri="mongodb://localhost:27017",
        redis_uri="redis://localhost:6379/15",
        app_env="development",
        log_level="WARNING",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def issuer(settings, clock) -> TokenIssuer:
    return TokenIssuer(settings, clock=clock)


@pytest.fixture
def sessions(fake_redis, settings) -> RedisSessionStore:
    return RedisSessionStore(fake_redis, ttl_seconds=settings.session_ttl_seconds)


@pytest.fixture
def auth_service(user_store, sessions, issuer) -> AuthService:
    return AuthService(users=user_store, sessions=sessions, tokens=issuer)


@pytest.fixture
def app(settings, auth_service):
    application = create_app(settings)
    application.dependency_overrides[get_auth_service] = lambda: auth_service
    application.dependency_overrides[get_settings] = lambda: settings
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
