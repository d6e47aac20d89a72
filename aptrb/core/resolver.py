"""Rollback target selection.

A transaction is selected either by exact name or, with no name, as the
most recently logged one. Names are not unique: the latest match wins.
"""

import logging
from pathlib import Path
from typing import Optional

from .record import RollbackEvent, TransactionRecord
from .store import TransactionStore

logger = logging.getLogger(__name__)


class TransactionNotFoundError(LookupError):
    """Raised when no logged transaction matches a selector."""

    def __init__(self, name: Optional[str], path: Path):
        self.name = name
        self.path = path
        if name is None:
            msg = f"No transaction recorded in {path}"
        else:
            msg = f"No transaction named '{name}' in {path}"
        super().__init__(msg)


def resolve(name: Optional[str], path: Path) -> TransactionRecord:
    """Find the transaction to roll back.

    Args:
        name: Exact transaction name, or None for the latest transaction
        path: Transaction log path

    Returns:
        Matching TransactionRecord

    Raises:
        TransactionNotFoundError: if nothing matches or the log is empty
        StoreError: if the log cannot be read
    """
    records = TransactionStore(path).read_transactions()
    logger.debug(f"Loaded {len(records)} transaction(s) from {path}")

    for record in reversed(records):
        if name is None or record.name == name:
            return record

    raise TransactionNotFoundError(name, path)


def find_rollback(record: TransactionRecord, path: Path) -> Optional[RollbackEvent]:
    """Return the latest rollback event that reversed record, if any."""
    for event in reversed(TransactionStore(path).read_rollbacks()):
        if event.reverses == record.stamp:
            return event
    return None


def is_reversed(record: TransactionRecord, path: Path) -> bool:
    """Check if record was already rolled back."""
    return find_rollback(record, path) is not None
