from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Text, event
from sqlalchemy.orm import relationship

from backend.database import Base


def utcnow():
    # В БД храним наивное время в UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


# -----------------------------
# Модели БД
# -----------------------------
class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    # UNIQUE на уровне БД - окончательная проверка уникальности имени
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String, nullable=True)
    hashed_password = Column(String, nullable=False)
    tasks = relationship("Task", back_populates="owner", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User id={self.id} username={self.username!r}>"


class Task(Base):
    __tablename__ = "tasks"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    is_completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime, nullable=True)
    priority = Column(Integer, nullable=False, default=1)  # 1-5, 5 - наивысший
    created_at = Column(DateTime, nullable=False, default=utcnow)
    due_date = Column(Date, nullable=True)  # только дата, без времени и часового пояса
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    owner = relationship("User", back_populates="tasks")

    def __repr__(self):
        return f"<Task id={self.id} owner_id={self.owner_id} priority={self.priority}>"


@event.listens_for(Task, "init", propagate=True)
def _task_init(target, args, kwargs):
    # Значения по умолчанию доступны ещё до flush
    if "priority" not in kwargs:
        target.priority = 1
    if "is_completed" not in kwargs:
        target.is_completed = False
