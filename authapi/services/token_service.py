"""
Creación y verificación de JWTs de acceso (corto) y refresh (largo).

Cada tipo se firma con su propio secreto; el payload solo lleva `userId`
más los claims temporales `iat`/`exp`.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict

import jwt

from authapi.core.config import Settings
from authapi.core.exceptions import ConfigurationError, InvalidToken

USER_ID_CLAIM = "userId"


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenIssuer:
    def __init__(self, settings: Settings, *, clock: Callable[[], datetime] = _now_utc) -> None:
        if not settings.access_token_secret or not settings.refresh_token_secret:
            raise ConfigurationError("ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must be defined")
        if settings.access_token_secret == settings.refresh_token_secret:
            raise ConfigurationError("ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must differ")
        self._access_secret = settings.access_token_secret
        self._refresh_secret = settings.refresh_token_secret
        self._algorithm = settings.jwt_algorithm
        self.access_ttl = timedelta(minutes=settings.access_token_expire_minutes)
        self.refresh_ttl = timedelta(days=settings.refresh_token_expire_days)
        self._clock = clock

    def _sign(self, user_id: str, secret: str, ttl: timedelta) -> str:
        now = self._clock()
        payload = {
            USER_ID_CLAIM: str(user_id),
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
        return jwt.encode(payload, secret, algorithm=self._algorithm)

    def _decode(self, token: str, secret: str) -> Dict[str, Any]:
        try:
            payload = jwt.decode(
                token,
                key=secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", USER_ID_CLAIM]},
            )
        except jwt.PyJWTError as e:
            raise InvalidToken(f"token rejected: {type(e).__name__}") from e
        if not isinstance(payload.get(USER_ID_CLAIM), str) or not payload[USER_ID_CLAIM]:
            raise InvalidToken("token without userId")
        return payload

    def create_access_token(self, user_id: str) -> str:
        return self._sign(user_id, self._access_secret, self.access_ttl)

    def create_refresh_token(self, user_id: str) -> str:
        return self._sign(user_id, self._refresh_secret, self.refresh_ttl)

    def issue(self, user_id: str) -> TokenPair:
        """Genera el par access/refresh para el usuario."""
        return TokenPair(
            access_token=self.create_access_token(user_id),
            refresh_token=self.create_refresh_token(user_id),
        )

    def verify_access_token(self, token: str) -> str:
        return self._decode(token, self._access_secret)[USER_ID_CLAIM]

    def verify_refresh_token(self, token: str) -> str:
        """Valida firma y expiración del refresh; devuelve el userId."""
        return self._decode(token, self._refresh_secret)[USER_ID_CLAIM]
