"""
Безопасность: хеширование паролей и токены доступа.

Хеш пароля - base64(соль + ключ PBKDF2-HMAC-SHA256), 16 байт соли,
32 байта ключа, 100 000 итераций. Токен - JWT, подписанный HS256,
с полями sub / iat / exp.
"""
import base64
import secrets
from datetime import datetime, timedelta, timezone
from typing import NamedTuple, Optional

import jwt
from jwt.utils import base64url_encode
from passlib.crypto.digest import pbkdf2_hmac
from passlib.utils import consteq

from backend.errors import FatalFailure


# -----------------------------
# Хеширование паролей
# -----------------------------
class PasswordHasher:
    # Общие для hash и verify: изменение ломает проверку уже выданных хешей
    SALT_SIZE = 16
    HASH_SIZE = 32
    ITERATIONS = 100_000
    DIGEST = "sha256"

    def hash(self, password: str) -> str:
        try:
            salt = secrets.token_bytes(self.SALT_SIZE)
        except OSError as exc:
            raise FatalFailure("Источник случайных чисел недоступен") from exc
        key = self._derive(password, salt)
        return base64.b64encode(salt + key).decode("ascii")

    def verify(self, password: str, hashed_password: str) -> bool:
        """Проверяет пароль; испорченный хеш - это просто неудачная проверка."""
        try:
            decoded = base64.b64decode(hashed_password, validate=True)
        except (TypeError, ValueError):
            return False
        if len(decoded) != self.SALT_SIZE + self.HASH_SIZE:
            return False
        salt, stored_key = decoded[:self.SALT_SIZE], decoded[self.SALT_SIZE:]
        # Сравнение за постоянное время
        return consteq(self._derive(password, salt), stored_key)

    def _derive(self, password: str, salt: bytes) -> bytes:
        return pbkdf2_hmac(self.DIGEST, password.encode("utf-8"), salt, self.ITERATIONS, self.HASH_SIZE)


# -----------------------------
# JWT
# -----------------------------
class IssuedToken(NamedTuple):
    token: str
    expires_at: datetime


class TokenService:
    """Выдаёт и проверяет токены доступа.

    Секрет передаётся при создании и дальше не меняется. Проверка не
    различает причины отказа: подпись, срок и формат дают один и тот же None.
    """

    def __init__(self, secret_key: str, expires_delta: timedelta, algorithm: str = "HS256"):
        if not secret_key:
            raise FatalFailure("SECRET_KEY не задан")
        if expires_delta < timedelta(seconds=1):
            raise FatalFailure("Срок жизни токена должен быть не меньше секунды")
        self._secret_key = secret_key
        self.expires_delta = expires_delta
        self.algorithm = algorithm

    def __repr__(self):
        return f"TokenService(algorithm={self.algorithm!r}, expires_delta={self.expires_delta!r})"

    def issue(self, subject) -> IssuedToken:
        # exp в JWT хранится с точностью до секунды
        now = datetime.now(timezone.utc).replace(microsecond=0)
        expires_at = now + self.expires_delta
        payload = {"sub": str(subject), "iat": now, "exp": expires_at}
        token = jwt.encode(payload, self._secret_key, algorithm=self.algorithm)
        return IssuedToken(token, expires_at)

    def validate(self, token: str) -> Optional[str]:
        try:
            decoded = jwt.decode_complete(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.PyJWTError:
            return None
        # base64url допускает несколько записей одной подписи; принимаем только каноническую
        if base64url_encode(decoded["signature"]).decode("ascii") != token.rsplit(".", 1)[-1]:
            return None
        subject = decoded["payload"].get("sub")
        if not isinstance(subject, str) or not subject:
            return None
        return subject
