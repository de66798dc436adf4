"""
Storage Services Package

Provides the abstract ledger storage interface and an in-memory
implementation. Persistent backends implement the same interface.
"""

from finance_core.services.storage.interface import (
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)
from finance_core.services.storage.memory import InMemoryLedgerStorage

__all__ = [
    # Interface
    "LedgerStorageInterface",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryLedgerStorage",
]
