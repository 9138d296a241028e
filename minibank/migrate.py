"""Apply every SQL file in the migrations directory, in name order."""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class MigrationError(Exception):
    """A migration could not be read or executed."""


def migrate(engine: Engine, migrations_dir: str | os.PathLike[str] = "migrations") -> None:
    """Run every entry of ``migrations_dir`` sorted by name."""
    directory = Path(migrations_dir)
    try:
        entries = sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError as exc:
        raise MigrationError(f"reading migrations directory: {exc}") from exc

    for entry in entries:
        try:
            run_migration(engine, entry)
        except MigrationError as exc:
            raise MigrationError(f"running migration {entry.name}: {exc}") from exc


def run_migration(engine: Engine, path: str | os.PathLike[str]) -> None:
    """Execute the SQL held in one file."""
    try:
        sql = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise MigrationError(f"reading file: {exc}") from exc
    try:
        with engine.begin() as conn:
            conn.exec_driver_sql(sql)
    except SQLAlchemyError as exc:
        raise MigrationError(f"executing migration: {exc}") from exc


def main(argv: list[str] | None = None) -> None:
    """Migrate the database named by DATABASE_URL."""
    argparse.ArgumentParser(description="Apply database migrations.").parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    try:
        engine = create_engine(os.environ.get("DATABASE_URL", ""))
    except SQLAlchemyError as exc:
        raise SystemExit(f"failed to open database: {exc}") from exc
    try:
        migrate(engine)
    except MigrationError as exc:
        raise SystemExit(f"failed to migrate: {exc}") from exc
    finally:
        engine.dispose()