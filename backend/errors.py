"""
Ошибки сервиса.

Каждая ошибка знает свой HTTP-статус и текст для клиента; обработчик
в main.py превращает их в ответ вида {"detail": ...}.
"""
import logging
from contextlib import contextmanager

from fastapi import status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Внутренняя ошибка сервера"
    headers = None

    def __init__(self, detail=None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class ValidationFailure(ServiceError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    detail = "Некорректные данные"


class ConflictFailure(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Пользователь уже существует"


class AuthenticationFailure(ServiceError):
    # Причина никогда не уточняется: неизвестный пользователь, неверный пароль,
    # просроченный или подделанный токен выглядят для клиента одинаково
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Неверные имя пользователя или пароль"
    headers = {"WWW-Authenticate": "Bearer"}


class NotFoundFailure(ServiceError):
    # Чужая задача и несуществующая задача неразличимы
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Задача не найдена"


class TransientStorageFailure(ServiceError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "Хранилище временно недоступно"


class FatalFailure(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Сервис не может продолжать работу"


@contextmanager
def storage_errors(db: Session):
    """Превращает ошибки SQLAlchemy в TransientStorageFailure.

    IntegrityError, которую вызывающий код ловит сам внутри блока,
    сюда не доходит. Повторных попыток нет: ошибка уходит клиенту.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Ошибка хранилища")
        raise TransientStorageFailure() from exc
