"""Database access for companies, accounts and transfers."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import sqlalchemy as sa
from sqlalchemy.engine import Connection, Engine, Row
from sqlalchemy.exc import SQLAlchemyError

from .model import Account, Company

_metadata = sa.MetaData()

_company = sa.Table(
    "company",
    _metadata,
    sa.Column("company_id", sa.BigInteger, primary_key=True),
    sa.Column("company_name", sa.Text, nullable=False),
)

_account = sa.Table(
    "account",
    _metadata,
    sa.Column("account_id", sa.BigInteger, primary_key=True),
    sa.Column("company_id", sa.BigInteger, nullable=False),
    sa.Column("account_number", sa.BigInteger, nullable=False),
    sa.Column("account_balance", sa.Float, nullable=False),
)

_transaction = sa.Table(
    "transaction",
    _metadata,
    sa.Column("tx_id", sa.BigInteger, primary_key=True),
    sa.Column("source_account_id", sa.BigInteger),
    sa.Column("target_account_id", sa.BigInteger),
    sa.Column("transfer_amount", sa.Float, nullable=False),
    sa.Column("error", sa.Text),
    sa.Column("created_at", sa.Text),
)

_ACCOUNT_COLUMNS = (
    _account.c.account_id,
    _account.c.company_id,
    _account.c.account_number,
    _account.c.account_balance,
)


class InsufficientBalance(Exception):
    """The source account does not hold enough money."""

    def __init__(self, message: str = "insufficient balance") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class TransferInput:
    """One requested transfer between two account numbers."""

    source: int
    target: int
    amount: float


class BatchError(Exception):
    """A transfer in a batch failed for an unexpected reason."""

    def __init__(self, row: int, error: Exception) -> None:
        super().__init__(f"row {row}: {error}")
        self.row = row
        self.error = error


def _account_from_row(row: Row) -> Account:
    return Account(
        id=row.account_id,
        company_id=row.company_id,
        number=str(row.account_number),
        balance=float(row.account_balance),
    )


def _company_from_row(row: Row) -> Company:
    return Company(id=row.company_id, name=row.company_name)


class Repo:
    """Repository bound to a SQLAlchemy engine."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    # accounts

    def create_account(self, company_id: int, balance: float) -> Account:
        """Open an account for a company with an initial balance."""
        stmt = (
            sa.insert(_account)
            .values(company_id=company_id, account_balance=balance)
            .returning(*_ACCOUNT_COLUMNS)
        )
        with self._engine.begin() as conn:
            return _account_from_row(conn.execute(stmt).one())

    def list_accounts_by_company(self, company_id: int) -> list[Account]:
        """Return every account owned by a company."""
        stmt = sa.select(*_ACCOUNT_COLUMNS).where(_account.c.company_id == company_id)
        with self._engine.connect() as conn:
            return [_account_from_row(row) for row in conn.execute(stmt)]

    def get_account_by_id(self, account_id: int) -> Account:
        """Return one account; raises NoResultFound if it does not exist."""
        stmt = sa.select(*_ACCOUNT_COLUMNS).where(_account.c.account_id == account_id)
        with self._engine.connect() as conn:
            return _account_from_row(conn.execute(stmt).one())

    # companies

    def create_company(self, name: str) -> Company:
        """Create a company."""
        stmt = (
            sa.insert(_company)
            .values(company_name=name)
            .returning(_company.c.company_id, _company.c.company_name)
        )
        with self._engine.begin() as conn:
            return _company_from_row(conn.execute(stmt).one())

    def list_companies(self) -> list[Company]:
        """Return every company."""
        stmt = sa.select(_company.c.company_id, _company.c.company_name)
        with self._engine.connect() as conn:
            return [_company_from_row(row) for row in conn.execute(stmt)]

    def get_company_by_id(self, company_id: int) -> Company:
        """Return one company; raises NoResultFound if it does not exist."""
        stmt = sa.select(_company.c.company_id, _company.c.company_name).where(
            _company.c.company_id == company_id
        )
        with self._engine.connect() as conn:
            return _company_from_row(conn.execute(stmt).one())

    # transfers

    def batch_transfer(self, txns: Iterable[TransferInput]) -> None:
        """Run transfers in order; raise BatchError at the first unexpected failure."""
        for row, txn in enumerate(txns):
            try:
                self.transfer(txn.source, txn.target, txn.amount)
            except InsufficientBalance:
                continue
            except SQLAlchemyError as exc:
                raise BatchError(row, exc) from exc

    def transfer(self, src_num: int, dst_num: int, amount: float) -> None:
        """Move money between two account numbers in one serializable transaction.

        Declined transfers (unknown account, insufficient balance) are recorded
        with an error message and committed rather than raised.
        """
        with self._engine.connect() as conn:
            conn.execution_options(isolation_level="SERIALIZABLE")
            with conn.begin():
                self._transfer(conn, src_num, dst_num, amount)

    def _transfer(self, conn: Connection, src_num: int, dst_num: int, amount: float) -> None:
        source = conn.execute(
            sa.select(_account.c.account_id, _account.c.account_balance)
            .where(_account.c.account_number == src_num)
            .with_for_update()
        ).first()
        if source is None:
            self._insert_tx(
                conn, None, None, amount, f"tx declined, source account not found: {src_num}"
            )
            return

        target_id = conn.execute(
            sa.select(_account.c.account_id).where(_account.c.account_number == dst_num)
        ).scalar()
        if target_id is None:
            self._insert_tx(
                conn, None, None, amount, f"tx declined, target account not found: {dst_num}"
            )
            return

        src_id = source.account_id
        if float(source.account_balance) < amount:
            self._insert_tx(conn, src_id, target_id, amount, "tx declined, insufficient balance")
            return

        conn.execute(
            sa.update(_account)
            .where(_account.c.account_id == src_id)
            .values(account_balance=_account.c.account_balance - amount)
        )
        conn.execute(
            sa.update(_account)
            .where(_account.c.account_id == target_id)
            .values(account_balance=_account.c.account_balance + amount)
        )
        self._insert_tx(conn, src_id, target_id, amount, None)

    @staticmethod
    def _insert_tx(
        conn: Connection,
        src_id: int | None,
        dst_id: int | None,
        amount: float,
        error: str | None,
    ) -> None:
        conn.execute(
            sa.insert(_transaction).values(
                source_account_id=src_id,
                target_account_id=dst_id,
                transfer_amount=amount,
                error=error,
            )
        )