"""
Lógica de autenticación: signup, login, logout y refresh del access token.

El servicio no conoce HTTP: devuelve tokens y usuarios, y el router decide
qué cookies emitir. Los fallos esperados (credenciales, tokens) se expresan
con las excepciones de `authapi.core.exceptions`.
"""
import hmac
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from authapi.api.schemas.auth import LoginPayload, SignupPayload
from authapi.core.exceptions import DuplicateUser, InvalidCredentials, InvalidToken, MissingToken
from authapi.repositories.user_repo import UserStore, public_user
from authapi.services.session_store import RedisSessionStore, session_key
from authapi.services.token_service import TokenIssuer, TokenPair

_log = logging.getLogger("authapi.auth")


@dataclass(frozen=True)
class AuthResult:
    user: Dict[str, Any]
    tokens: TokenPair


class AuthService:
    def __init__(self, *, users: UserStore, sessions: RedisSessionStore, tokens: TokenIssuer) -> None:
        self.users = users
        self.sessions = sessions
        self.tokens = tokens

    def _start_session(self, user: Dict[str, Any], device_id: Optional[str]) -> AuthResult:
        user_id = str(user["_id"])
        pair = self.tokens.issue(user_id)
        # Misma device: el token anterior queda reemplazado
        self.sessions.put(session_key(user_id, device_id), pair.refresh_token)
        return AuthResult(user=public_user(user), tokens=pair)

    def signup(self, payload: SignupPayload, device_id: Optional[str] = None) -> AuthResult:
        if self.users.find_user_by_email(payload.email):
            raise DuplicateUser()
        user = self.users.create_user(name=payload.name, email=payload.email, password=payload.password)
        _log.info("signup user_id=%s device=%s", user["_id"], bool(device_id))
        return self._start_session(user, device_id)

    def login(self, payload: LoginPayload, device_id: Optional[str] = None) -> AuthResult:
        user = self.users.find_user_by_email(payload.email)
        if not user or not self.users.verify_password(user, payload.password):
            raise InvalidCredentials()
        _log.info("login user_id=%s device=%s", user["_id"], bool(device_id))
        return self._start_session(user, device_id)

    def logout(self, refresh_token: Optional[str]) -> Optional[str]:
        """
        Invalida todas las sesiones del dueño del refresh token.

        Un token ausente, inválido o expirado no es error: no se puede atribuir
        a un usuario y no se toca el store. Devuelve el userId invalidado o None.
        """
        if not refresh_token:
            return None
        try:
            user_id = self.tokens.verify_refresh_token(refresh_token)
        except InvalidToken:
            _log.info("logout with unverifiable refresh token; sessions untouched")
            return None
        self.sessions.delete_all(user_id)
        _log.info("logout user_id=%s (all devices)", user_id)
        return user_id

    def refresh(self, refresh_token: Optional[str], device_id: Optional[str] = None) -> str:
        """
        Emite un access token nuevo si el refresh es válido y sigue vigente en el store.

        El refresh token no se rota: se devuelve solo el access token.
        """
        if not refresh_token:
            raise MissingToken()
        user_id = self.tokens.verify_refresh_token(refresh_token)
        stored = self.sessions.get(session_key(user_id, device_id))
        if stored is None or not hmac.compare_digest(stored.encode("utf-8"), refresh_token.encode("utf-8")):
            # Revocado, reemplazado por otro login o de otra device
            _log.info("refresh rejected user_id=%s reason=%s", user_id, "missing" if stored is None else "mismatch")
            raise InvalidToken("refresh token not in session store")
        return self.tokens.create_access_token(user_id)
