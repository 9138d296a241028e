import pytest
from sqlalchemy import text
from sqlalchemy.exc import ArgumentError

from minibank.db import new_engine


def test_new_without_database_url(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    with pytest.raises(RuntimeError, match="^DATABASE_URL not set$"):
        new_engine()


def test_new_with_empty_database_url(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "")
    with pytest.raises(RuntimeError, match="DATABASE_URL not set"):
        new_engine()


def test_new_invalid_dsn(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "invalid-dsn")
    with pytest.raises(ArgumentError):
        new_engine()


def test_new_success(monkeypatch, tmp_path):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'app.db'}")
    engine = new_engine()
    try:
        assert engine.pool.size() == 5
        with engine.connect() as conn:
            assert conn.execute(text("SELECT 1")).scalar() == 1
    finally:
        engine.dispose()