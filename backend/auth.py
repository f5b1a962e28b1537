"""
Регистрация и вход.

Порядок проверок: сначала дешёвые (уникальность имени), потом дорогие
(хеширование пароля).
"""
import logging
from datetime import datetime
from typing import NamedTuple, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.errors import AuthenticationFailure, ConflictFailure, storage_errors
from backend.models import User
from backend.security import PasswordHasher, TokenService

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Неверные имя пользователя или пароль"
USERNAME_TAKEN = "Пользователь уже существует"


class AuthSession(NamedTuple):
    token: str
    username: str
    expires_at: datetime


class AuthService:
    def __init__(self, hasher: PasswordHasher, tokens: TokenService):
        self.hasher = hasher
        self.tokens = tokens
        # Хеш-заглушка: вход под несуществующим именем тратит столько же времени
        self._dummy_digest = hasher.hash(" ")

    def register(self, db: Session, username: str, password: str, email: Optional[str] = None) -> AuthSession:
        if self._username_taken(db, username):
            logger.info("Регистрация отклонена: имя %r занято", username)
            raise ConflictFailure(USERNAME_TAKEN)

        user = User(username=username, email=email, hashed_password=self.hasher.hash(password))
        with storage_errors(db):
            try:
                db.add(user)
                db.commit()
            except IntegrityError:
                # Параллельная регистрация успела раньше: решает ограничение UNIQUE в БД
                db.rollback()
                logger.info("Регистрация отклонена ограничением БД: имя %r занято", username)
                raise ConflictFailure(USERNAME_TAKEN) from None
            db.refresh(user)

        logger.info("Зарегистрирован пользователь id=%s", user.id)
        return self._open_session(user)

    def login(self, db: Session, username: str, password: str) -> AuthSession:
        with storage_errors(db):
            user = db.query(User).filter(User.username == username).first()
        if user is None:
            self.hasher.verify(password, self._dummy_digest)
            logger.info("Неудачный вход: %r", username)
            raise AuthenticationFailure(INVALID_CREDENTIALS)
        if not self.hasher.verify(password, user.hashed_password):
            logger.info("Неудачный вход: %r", username)
            raise AuthenticationFailure(INVALID_CREDENTIALS)
        return self._open_session(user)

    def _username_taken(self, db: Session, username: str) -> bool:
        with storage_errors(db):
            return db.query(User.id).filter(User.username == username).first() is not None

    def _open_session(self, user: User) -> AuthSession:
        issued = self.tokens.issue(user.id)
        return AuthSession(issued.token, user.username, issued.expires_at)
