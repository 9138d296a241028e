"""Companies, accounts and batch transfers behind a JSON HTTP API."""

__version__ = "0.1.0"

__all__ = ["__version__"]