"""HTTP handlers for companies, accounts and batch transfers."""

from __future__ import annotations

import csv
import io
import json
import math
import re
from typing import Any

from flask import Response, request
from sqlalchemy.exc import SQLAlchemyError

from .repo import BatchError, Repo, TransferInput

FILE_UPLOAD_FIELD = "file"

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_INT_PATTERN = re.compile(r"[+-]?[0-9]+")


# request decoding


def _json_kind(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, list):
        return "array"
    return "object"


def _decode_object(raw: bytes) -> dict[str, Any]:
    """Decode the first JSON value of a body, which must be an object or null."""
    text = raw.decode("utf-8").lstrip(" \t\r\n")
    if not text:
        raise ValueError("EOF")
    value, _ = json.JSONDecoder().raw_decode(text)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"json: cannot unmarshal {_json_kind(value)} into request object")
    return value


def _field(payload: dict[str, Any], key: str) -> Any:
    """Look a key up exactly, falling back to a case-insensitive match."""
    if key in payload:
        return payload[key]
    folded = key.casefold()
    return next((v for k, v in payload.items() if k.casefold() == folded), None)


def _float_field(payload: dict[str, Any], key: str) -> float:
    value = _field(payload, key)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"json: cannot unmarshal {_json_kind(value)} into field {key}")
    return float(value)


def _str_field(payload: dict[str, Any], key: str) -> str:
    value = _field(payload, key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"json: cannot unmarshal {_json_kind(value)} into field {key}")
    return value


def _parse_int(text: str) -> int:
    if not _INT_PATTERN.fullmatch(text):
        raise ValueError(f'invalid integer "{text}"')
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f'integer "{text}" out of range')
    return value


def _parse_float(text: str) -> float:
    if not text or text != text.strip() or "_" in text:
        raise ValueError(f'invalid number "{text}"')
    try:
        value = float(text)
    except ValueError:
        raise ValueError(f'invalid number "{text}"') from None
    if math.isinf(value) and text.lstrip("+-").lower() not in ("inf", "infinity"):
        raise ValueError(f'number "{text}" out of range')
    return value


def _parse_id(value: int | str) -> int:
    if isinstance(value, int):
        if not _INT64_MIN <= value <= _INT64_MAX:
            raise ValueError(f"id {value} out of range")
        return value
    return _parse_int(value)


def _lenient_id(value: int | str) -> int:
    try:
        return _parse_id(value)
    except ValueError:
        return 0


def parse_transfer_csv(text: str) -> list[TransferInput]:
    """Parse ``source,target,amount`` records; blank lines are skipped.

    Raises ValueError naming the offending record on malformed input.
    """
    reader = csv.reader(io.StringIO(text), strict=True)
    transfers: list[TransferInput] = []
    line = 1
    while True:
        try:
            record = next(reader)
        except StopIteration:
            break
        except csv.Error as exc:
            raise ValueError(f"bad CSV on line {line}: {exc}") from exc
        if not record:
            continue
        if len(record) != 3:
            raise ValueError(
                f"bad CSV on line {line}: record on line {reader.line_num}: "
                "wrong number of fields"
            )
        source, target, amount = record
        try:
            transfer = TransferInput(
                source=_parse_int(source),
                target=_parse_int(target),
                amount=_parse_float(amount),
            )
        except ValueError as exc:
            raise ValueError(f"parse error on line {line}: {exc}") from exc
        transfers.append(transfer)
        line += 1
    return transfers


# responses


def _plain(value: Any) -> Any:
    """Prepare a value for JSON, writing integral floats without a fraction."""
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    if isinstance(value, float) and math.isfinite(value) and value.is_integer() and abs(value) < 1e21:
        return int(value)
    return value


def _json_response(payload: Any, status: int) -> Response:
    body = json.dumps(_plain(payload), ensure_ascii=False, separators=(",", ":"))
    body = (
        body.replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )
    return Response(body + "\n", status=status, mimetype="application/json")


def _error(message: str, status: int) -> Response:
    response = Response(message + "\n", status=status, content_type="text/plain; charset=utf-8")
    response.headers["X-Content-Type-Options"] = "nosniff"
    return response


# handlers


class AccountHandler:
    """Endpoints under ``/companies/{id}/accounts``."""

    def __init__(self, repo: Repo) -> None:
        self.repo = repo

    def create(self, company_id: int | str) -> Response:
        """POST /companies/{id}/accounts with ``{"initial_balance": 1000.0}``."""
        try:
            owner = _parse_id(company_id)
        except ValueError:
            return _error("bad company id", 400)
        try:
            balance = _float_field(_decode_object(request.get_data()), "initial_balance")
        except ValueError as exc:
            return _error(str(exc), 400)
        try:
            account = self.repo.create_account(owner, balance)
        except SQLAlchemyError as exc:
            return _error(str(exc), 500)
        return _json_response(account.to_dict(), 200)

    def list_by_company(self, company_id: int | str) -> Response:
        """GET /companies/{id}/accounts."""
        try:
            accounts = self.repo.list_accounts_by_company(_lenient_id(company_id))
        except SQLAlchemyError as exc:
            return _error(str(exc), 500)
        return _json_response([a.to_dict() for a in accounts], 200)

    def get_by_id(self, company_id: int | str, account_id: int | str) -> Response:
        """GET /companies/{id}/accounts/{id}; the account is looked up by its id alone."""
        try:
            account = self.repo.get_account_by_id(_lenient_id(account_id))
        except SQLAlchemyError as exc:
            return _error(str(exc), 500)
        return _json_response(account.to_dict(), 200)


class CompanyHandler:
    """Endpoints under ``/companies``."""

    def __init__(self, repo: Repo) -> None:
        self.repo = repo

    def create(self) -> Response:
        """POST /companies with ``{"company_name": "..."}``."""
        try:
            name = _str_field(_decode_object(request.get_data()), "company_name")
        except ValueError as exc:
            return _error(str(exc), 400)
        try:
            company = self.repo.create_company(name)
        except SQLAlchemyError as exc:
            return _error(str(exc), 500)
        return _json_response(company.to_dict(), 201)

    def list(self) -> Response:
        """GET /companies."""
        try:
            companies = self.repo.list_companies()
        except SQLAlchemyError as exc:
            return _error(str(exc), 500)
        return _json_response([c.to_dict() for c in companies], 200)

    def get_by_id(self, company_id: int | str) -> Response:
        """GET /companies/{id}."""
        try:
            company = self.repo.get_company_by_id(_lenient_id(company_id))
        except SQLAlchemyError as exc:
            return _error(str(exc), 500)
        return _json_response(company.to_dict(), 200)


class TransferHandler:
    """The ``/transfer`` batch endpoint."""

    def __init__(self, repo: Repo) -> None:
        self.repo = repo

    def batch(self) -> Response:
        """POST /transfer with CSV as a multipart ``file`` part or a text/csv body.

        Replies 204 when every row was processed, 400 for bad input, 415 for an
        unsupported content type and 500 with the failing row otherwise.
        """
        content_type = request.headers.get("Content-Type", "")
        if content_type.startswith("multipart/form-data"):
            upload = request.files.get(FILE_UPLOAD_FIELD)
            if upload is None:
                return _error(f"missing file: no part named {FILE_UPLOAD_FIELD!r}", 400)
            text = upload.read().decode("utf-8", errors="replace")
        elif content_type in ("text/csv", "text/plain"):
            text = request.get_data().decode("utf-8", errors="replace")
        else:
            return _error("expect multipart/form-data or text/csv", 415)

        try:
            transfers = parse_transfer_csv(text)
        except ValueError as exc:
            return _error(str(exc), 400)

        try:
            self.repo.batch_transfer(transfers)
        except BatchError as exc:
            return _json_response({"error": str(exc.error), "row": exc.row + 1}, 500)
        return Response(status=204)