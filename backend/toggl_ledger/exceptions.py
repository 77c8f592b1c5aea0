"""
Errors raised by the local ledger store.
"""


class LedgerError(Exception):
    """Base class for ledger store errors."""


class RecordNotFound(LedgerError):
    """A row looked up by primary key does not exist."""

    def __init__(self, model: str, key):
        self.model = model
        self.key = key
        super().__init__(f"{model} not found: {key}")


class RecordConflict(LedgerError):
    """A write would break a uniqueness or referential constraint."""
