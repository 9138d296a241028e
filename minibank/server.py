"""Command that serves the HTTP API."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from socketserver import ThreadingMixIn
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from flask import Flask
from sqlalchemy.exc import SQLAlchemyError

from .api import create_app
from .db import new_engine
from .repo import Repo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServerSettings:
    """Where and how the API is served."""

    handler: Flask
    host: str = ""
    port: int = 8080
    read_timeout: float = 10.0
    write_timeout: float = 10.0
    idle_timeout: float = 60.0


def new_http_server(app: Flask) -> ServerSettings:
    """Return the settings used to serve ``app`` on port 8080."""
    return ServerSettings(handler=app)


class _ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    daemon_threads = True


def _serve(settings: ServerSettings) -> None:
    class _Handler(WSGIRequestHandler):
        # One socket timeout bounds both reading the request and writing the
        # reply; connections close after each response, so none sit idle.
        timeout = max(settings.read_timeout, settings.write_timeout)

    try:
        server = make_server(
            settings.host,
            settings.port,
            settings.handler,
            server_class=_ThreadingWSGIServer,
            handler_class=_Handler,
        )
    except OSError as exc:
        raise SystemExit(f"server error: {exc}") from exc

    logger.info("listening on http://localhost:%d", settings.port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()


def main(argv: list[str] | None = None) -> None:
    """Connect to DATABASE_URL and serve the API."""
    argparse.ArgumentParser(description="Serve the banking API.").parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    try:
        engine = new_engine()
    except (RuntimeError, SQLAlchemyError) as exc:
        raise SystemExit(f"db: {exc}") from exc
    try:
        _serve(new_http_server(create_app(Repo(engine))))
    finally:
        engine.dispose()