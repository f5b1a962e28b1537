from unittest import mock

import pytest

from backend import database
from backend.config import DATABASE_URL


@pytest.mark.parametrize(
    "url, expected",
    [
        ("sqlite://", {"connect_args": {"check_same_thread": False}}),
        ("sqlite:///./todos.db", {"connect_args": {"check_same_thread": False}}),
        ("postgresql+psycopg2://u:p@localhost:5432/todos", {}),
    ],
)
def test_engine_options(url, expected):
    assert database.engine_options(url) == expected


def test_engine_uses_configured_url():
    assert database.engine.url.render_as_string(hide_password=False) == DATABASE_URL


def test_get_db_closes_session_after_request(monkeypatch):
    session = mock.MagicMock()
    monkeypatch.setattr(database, "SessionLocal", lambda: session)

    gen = database.get_db()
    assert next(gen) is session
    session.close.assert_not_called()

    gen.close()
    session.close.assert_called_once()


def test_get_db_closes_session_when_handler_fails(monkeypatch):
    session = mock.MagicMock()
    monkeypatch.setattr(database, "SessionLocal", lambda: session)

    gen = database.get_db()
    next(gen)
    with pytest.raises(RuntimeError):
        gen.throw(RuntimeError("handler failed"))
    session.close.assert_called_once()
