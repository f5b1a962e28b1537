"""
Задачи пользователя.

Все запросы идут через owned_tasks(): условие owner_id == текущий
пользователь входит в сам SQL-запрос, чужие записи не загружаются вообще.
"""
import logging

from sqlalchemy import asc, desc
from sqlalchemy.orm import Query, Session

from backend.errors import NotFoundFailure, ValidationFailure, storage_errors
from backend.models import Task, utcnow

logger = logging.getLogger(__name__)

# Приоритет по убыванию, срок по возрастанию (без срока - в конце),
# новые раньше старых, id - последний разрыв ничьей
TASK_ORDER = (
    desc(Task.priority),
    Task.due_date.is_(None),
    asc(Task.due_date),
    desc(Task.created_at),
    asc(Task.id),
)


def owned_tasks(db: Session, owner_id: int) -> Query:
    return db.query(Task).filter(Task.owner_id == owner_id)


def list_tasks(db: Session, owner_id: int):
    with storage_errors(db):
        return owned_tasks(db, owner_id).order_by(*TASK_ORDER).all()


def get_task(db: Session, owner_id: int, task_id: int) -> Task:
    with storage_errors(db):
        task = owned_tasks(db, owner_id).filter(Task.id == task_id).first()
    if task is None:
        raise NotFoundFailure()
    return task


def create_task(db: Session, owner_id: int, title: str, description=None, priority: int = 1, due_date=None) -> Task:
    _check_title(title)
    task = Task(
        title=title,
        description=description,
        priority=priority,
        due_date=due_date,
        owner_id=owner_id,
    )
    with storage_errors(db):
        db.add(task)
        db.commit()
        db.refresh(task)
    logger.debug("Создана задача id=%s владельца %s", task.id, owner_id)
    return task


def update_task(db: Session, owner_id: int, task_id: int, changes: dict) -> Task:
    """Частичное обновление: меняются только переданные поля.

    is_completed управляет completed_at: True ставит отметку времени
    (если задача ещё не была выполнена), False её сбрасывает.
    """
    task = get_task(db, owner_id, task_id)
    changes = dict(changes)
    if "title" in changes:
        _check_title(changes["title"])
    completed = changes.pop("is_completed", None)

    for field, value in changes.items():
        setattr(task, field, value)
    if completed is not None:
        if completed and not task.is_completed:
            task.completed_at = utcnow()
        elif not completed:
            task.completed_at = None
        task.is_completed = completed

    with storage_errors(db):
        db.commit()
        db.refresh(task)
    return task


def delete_task(db: Session, owner_id: int, task_id: int):
    task = get_task(db, owner_id, task_id)
    with storage_errors(db):
        db.delete(task)
        db.commit()
    logger.debug("Удалена задача id=%s владельца %s", task_id, owner_id)


def _check_title(title):
    if not title or not title.strip():
        raise ValidationFailure("Название задачи не может быть пустым")
