"""Routing of the HTTP API onto the handlers."""

from __future__ import annotations

from flask import Flask

from .handlers import AccountHandler, CompanyHandler, TransferHandler
from .repo import Repo


def create_app(repo: Repo) -> Flask:
    """Build the WSGI application serving companies, accounts and transfers."""
    app = Flask(__name__)
    app.url_map.strict_slashes = False

    account = AccountHandler(repo)
    company = CompanyHandler(repo)
    transfer = TransferHandler(repo)

    app.add_url_rule("/companies", "create_company", company.create, methods=["POST"])
    app.add_url_rule("/companies", "list_companies", company.list, methods=["GET"])
    app.add_url_rule(
        "/companies/<int:company_id>", "get_company", company.get_by_id, methods=["GET"]
    )

    app.add_url_rule(
        "/companies/<int:company_id>/accounts",
        "create_account",
        account.create,
        methods=["POST"],
    )
    app.add_url_rule(
        "/companies/<int:company_id>/accounts",
        "list_accounts",
        account.list_by_company,
        methods=["GET"],
    )
    app.add_url_rule(
        "/companies/<int:company_id>/accounts/<int:account_id>",
        "get_account",
        account.get_by_id,
        methods=["GET"],
    )

    app.add_url_rule("/transfer", "transfer_batch", transfer.batch, methods=["POST"])
    return app