"""Append-only transaction log.

Entries are written to a TOML file, one [[transaction]] or [[rollback]]
table per append, oldest first. Existing content is never rewritten.

The file is opened for each append and closed right after. There is no
locking: two aptrb processes appending at the same time is unsupported.
"""

import logging
from pathlib import Path
from typing import List

from .record import (
    ROLLBACK_KEY,
    TRANSACTION_KEY,
    RecordFormatError,
    RollbackEvent,
    TransactionRecord,
    loads_log,
    serialize,
    serialize_rollback,
)

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the transaction log cannot be read or written."""

    def __init__(self, path: Path, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")


class TransactionStore:
    """Transaction log at a given path."""

    def __init__(self, path: Path, create_parents: bool = False):
        """Initialize store.

        Args:
            path: Log file path
            create_parents: Create missing parent directories on append
                (used for the default per-user location)
        """
        self.path = Path(path)
        self.create_parents = create_parents

    def _append_bytes(self, data: bytes):
        try:
            if self.create_parents:
                self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'ab') as f:
                # Blank line between entries, also repairs a missing final newline
                if f.tell() > 0:
                    f.write(b'\n')
                f.write(data)
                f.flush()
        except OSError as e:
            raise StoreError(self.path, f"cannot append: {e.strerror or e}") from e

    def append(self, record: TransactionRecord):
        """Append a transaction record.

        Raises:
            StoreError: if the file cannot be opened or written
        """
        try:
            data = serialize(record)
        except (TypeError, ValueError) as e:
            raise StoreError(self.path, f"cannot serialize record: {e}") from e
        self._append_bytes(data)
        logger.info(f"Recorded transaction {record.label} in {self.path}")

    def append_rollback(self, event: RollbackEvent):
        """Append a rollback event.

        Raises:
            StoreError: if the file cannot be opened or written
        """
        try:
            data = serialize_rollback(event)
        except (TypeError, ValueError) as e:
            raise StoreError(self.path, f"cannot serialize rollback: {e}") from e
        self._append_bytes(data)
        logger.info(f"Recorded rollback of {event.reverses} in {self.path}")

    def _load(self) -> dict:
        if not self.path.exists():
            logger.debug(f"No transaction log at {self.path}")
            return {TRANSACTION_KEY: [], ROLLBACK_KEY: []}
        try:
            data = self.path.read_bytes()
        except OSError as e:
            raise StoreError(self.path, f"cannot read: {e.strerror or e}") from e
        try:
            return loads_log(data)
        except RecordFormatError as e:
            raise StoreError(self.path, str(e)) from e

    def read_transactions(self) -> List[TransactionRecord]:
        """All transaction records, oldest first.

        Returns an empty list when the log does not exist yet.
        """
        return self._load()[TRANSACTION_KEY]

    def read_rollbacks(self) -> List[RollbackEvent]:
        """All rollback events, oldest first."""
        return self._load()[ROLLBACK_KEY]
