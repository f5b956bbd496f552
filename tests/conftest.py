import pytest

from shiptivity_api.app.core.config import settings
from shiptivity_api.app.core.db import get_cursor, init_db


@pytest.fixture
def database(monkeypatch, tmp_path):
    path = tmp_path / "clients.db"
    monkeypatch.setattr(settings, "database_url", str(path))
    init_db()
    return path


@pytest.fixture
def add_clients(database):
    """Insert ``(name, status, priority)`` rows and return ``{name: id}``."""

    def _add(*rows):
        ids = {}
        with get_cursor() as cursor:
            for name, status, priority in rows:
                cursor.execute(
                    "INSERT INTO clients (name, status, priority) VALUES (?, ?, ?)",
                    (name, status, priority),
                )
                ids[name] = cursor.lastrowid
        return ids

    return _add


@pytest.fixture
def board(add_clients):
    """Backlog A1 B2 C3, in-progress D1 E2, complete F1."""
    return add_clients(
        ("A", "backlog", 1),
        ("B", "backlog", 2),
        ("C", "backlog", 3),
        ("D", "in-progress", 1),
        ("E", "in-progress", 2),
        ("F", "complete", 1),
    )
