"""Load fixture SQL files into the database."""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class SeedError(Exception):
    """A seed file could not be read or executed."""


def run_all(engine: Engine, directory: str | os.PathLike[str]) -> None:
    """Run every ``*.sql`` file in ``directory`` in lexical order."""
    folder = Path(directory)
    try:
        entries = sorted(folder.iterdir(), key=lambda p: p.name)
    except OSError as exc:
        raise SeedError(f"read dir {folder}: {exc}") from exc
    for entry in entries:
        if entry.is_dir() or entry.suffix != ".sql":
            continue
        run_file(engine, entry)


def run_file(engine: Engine, path: str | os.PathLike[str]) -> None:
    """Execute one seed file inside a single transaction; empty files are skipped."""
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise SeedError(f"read {path}: {exc}") from exc
    if not data:
        logger.info("skip empty file %s", path)
        return
    try:
        with engine.begin() as conn:
            conn.exec_driver_sql(data.decode("utf-8"))
    except SQLAlchemyError as exc:
        raise SeedError(f"exec {path}: {exc}") from exc


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Load seed SQL files.")
    parser.add_argument(
        "--dir", "-dir", default="fixtures", help="directory containing seed SQL files"
    )
    parser.add_argument(
        "--file", "-file", default="seed.sql", help="single seed file (ignored if --all is set)"
    )
    parser.add_argument(
        "--all",
        "-all",
        action="store_true",
        help="run every *.sql file in --dir in lexical order",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Seed the database named by DATABASE_URL."""
    args = _parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    dsn = os.environ.get("DATABASE_URL", "")
    if not dsn:
        raise SystemExit("DATABASE_URL env var not set")
    try:
        engine = create_engine(dsn)
    except SQLAlchemyError as exc:
        raise SystemExit(f"open db: {exc}") from exc

    try:
        if args.all:
            run_all(engine, args.dir)
        else:
            run_file(engine, Path(args.dir) / args.file)
    except SeedError as exc:
        raise SystemExit(f"seed: {exc}") from exc
    finally:
        engine.dispose()
    logger.info("seed completed")