import logging
from datetime import timedelta
from typing import List

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from backend import models, todos  # noqa: F401  (регистрация таблиц)
from backend.auth import AuthService
from backend.config import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, SECRET_KEY, configure_logging
from backend.database import Base, engine, get_db
from backend.errors import AuthenticationFailure, ServiceError
from backend.schemas import AuthResponse, TaskCreate, TaskOut, TaskUpdate, UserCreate, UserLogin
from backend.security import PasswordHasher, TokenService

configure_logging()
logger = logging.getLogger(__name__)

# -----------------------------
# Безопасность и JWT
# -----------------------------
password_hasher = PasswordHasher()
token_service = TokenService(SECRET_KEY, timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES), ALGORITHM)
auth_service = AuthService(password_hasher, token_service)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")

INVALID_TOKEN = "Неверный токен"


# -----------------------------
# Зависимости
# -----------------------------
def get_current_user_id(token: str = Depends(oauth2_scheme)) -> int:
    subject = token_service.validate(token)
    if subject is None or not subject.isdecimal():
        raise AuthenticationFailure(INVALID_TOKEN)
    return int(subject)


# -----------------------------
# Инициализация приложения
# -----------------------------
app = FastAPI(title="Todo API")


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)


@app.on_event("startup")
def startup():
    # Автоматическая инициализация таблиц
    Base.metadata.create_all(bind=engine)
    logger.info("Таблицы %s готовы", ", ".join(sorted(Base.metadata.tables)))


# -----------------------------
# Эндпоинты аутентификации
# -----------------------------
# Обработчики объявлены через def: FastAPI выполняет их в пуле потоков,
# поэтому медленное хеширование пароля не блокирует event loop.
@app.post("/auth/register", response_model=AuthResponse)
def register(user: UserCreate, db: Session = Depends(get_db)):
    session = auth_service.register(db, user.username, user.password, user.email)
    return AuthResponse(token=session.token, username=session.username, expires_at=session.expires_at)


@app.post("/auth/login", response_model=AuthResponse)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    session = auth_service.login(db, credentials.username, credentials.password)
    return AuthResponse(token=session.token, username=session.username, expires_at=session.expires_at)


# -----------------------------
# CRUD для задач
# -----------------------------
@app.get("/todos", response_model=List[TaskOut])
def get_todos(db: Session = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    return todos.list_tasks(db, user_id)


@app.get("/todos/{task_id}", response_model=TaskOut)
def get_todo(task_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    return todos.get_task(db, user_id, task_id)


@app.post("/todos", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def create_todo(
    task: TaskCreate,
    response: Response,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    db_task = todos.create_task(
        db,
        user_id,
        title=task.title,
        description=task.description,
        priority=task.priority,
        due_date=task.due_date,
    )
    response.headers["Location"] = f"/todos/{db_task.id}"
    return db_task


@app.put("/todos/{task_id}", response_model=TaskOut)
def update_todo(
    task_id: int,
    task_update: TaskUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    # null в теле означает "не менять"
    changes = task_update.model_dump(exclude_unset=True, exclude_none=True)
    return todos.update_task(db, user_id, task_id, changes)


@app.delete("/todos/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_todo(task_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    todos.delete_task(db, user_id, task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
