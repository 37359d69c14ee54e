"""Shared fixtures for the signup form tests."""

import pytest

from signup_form import database


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    """Point the dev availability service at a throwaway database."""
    path = str(tmp_path / "users.db")
    monkeypatch.setattr(database, "DATABASE_PATH", path)
    database.init_db()
    return path
