import os

# Конфигурация должна быть задана до импорта приложения
os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789-abcdefghijklmnop")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend.database import Base, get_db
from backend.main import app
from backend.models import User

# Тестовая БД в памяти: одно соединение на все сессии
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# 💡 Чистые таблицы для каждого теста
@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


# 💡 Подменяем зависимость get_db
@pytest.fixture(autouse=True)
def override_get_db():
    def get_test_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()
    app.dependency_overrides[get_db] = get_test_db
    yield
    app.dependency_overrides.clear()


@pytest.fixture()
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# 💡 HTTP-клиент с ASGITransport
@pytest.fixture()
async def aclient():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture()
def auth_headers(aclient):
    """Регистрирует пользователя и возвращает заголовки с его токеном."""
    async def _auth_headers(username="alice", password="pass123"):
        resp = await aclient.post("/auth/register", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['token']}"}
    return _auth_headers


@pytest.fixture()
def make_user(db_session):
    """Создаёт пользователя напрямую в БД (без хеширования)."""
    def _make_user(username="owner"):
        user = User(username=username, hashed_password="not-a-real-digest")
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make_user
