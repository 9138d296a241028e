"""Data records exchanged between the repository and the HTTP layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Company:
    """A company that owns accounts."""

    id: int
    name: str

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation."""
        return {"company_id": self.id, "company_name": self.name}


@dataclass(frozen=True)
class Account:
    """A bank account belonging to a company."""

    id: int
    company_id: int
    number: str
    balance: float

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation."""
        return {
            "account_id": self.id,
            "company_id": self.company_id,
            "account_number": self.number,
            "account_balance": self.balance,
        }


@dataclass(frozen=True)
class Transaction:
    """A recorded transfer attempt; ``error`` is set when it was declined."""

    id: int
    source: int
    target: int
    amount: float
    error: str | None = None
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation, leaving out an unset error."""
        data: dict[str, Any] = {
            "tx_id": self.id,
            "source_account_id": self.source,
            "target_account_id": self.target,
            "transfer_amount": self.amount,
        }
        if self.error is not None:
            data["error"] = self.error
        data["created_at"] = self.created_at
        return data