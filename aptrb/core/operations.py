"""
Transaction lifecycle for aptrb.

This module ties the pieces together without any user interaction:
- build the package manager command
- run it
- log the transaction only once the run is known to have succeeded

The CLI handles prompts and display. This module raises on every failure
and leaves the reporting to its caller.

Error taxonomy:
- EmptyPackageListError: invalid input, nothing was run
- SpawnError: package manager could not start, nothing changed
- ExecutionError: package manager failed, nothing was logged
- PersistenceError: package manager succeeded but the log write failed
- TransactionNotFoundError / AlreadyReversedError: nothing to roll back
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from .command import DEFAULT_PROGRAM, CommandDescriptor, Intent, build
from .executor import ExecutionError, ExecutionResult, execute
from .record import RollbackEvent, TransactionRecord
from .resolver import find_rollback, resolve
from .store import StoreError, TransactionStore

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Raised when packages changed on the system but could not be logged.

    The system and the log now disagree: a transaction that is not in
    the log cannot be rolled back later.
    """

    def __init__(self, entry, cause: StoreError):
        self.entry = entry  # TransactionRecord or RollbackEvent
        self.cause = cause
        super().__init__(f"Packages were changed but not recorded: {cause}")


class AlreadyReversedError(Exception):
    """Raised when the selected transaction was already rolled back."""

    def __init__(self, record: TransactionRecord, event: RollbackEvent):
        self.record = record
        self.event = event
        super().__init__(
            f"Transaction {record.label} was already rolled back at {event.stamp}"
        )


class TransactionOperations:
    """Install and roll back packages as logged transactions."""

    def __init__(self, log_path: Path, program: str = DEFAULT_PROGRAM,
                 timeout: float = None,
                 executor: Callable[..., ExecutionResult] = execute,
                 create_parents: bool = False):
        """Initialize operations.

        Args:
            log_path: Transaction log file
            program: Package manager executable
            timeout: Seconds before a package manager run is killed (None: no limit)
            executor: Function running a CommandDescriptor (replaced in tests)
            create_parents: Create the log directory on first write
        """
        self.log_path = Path(log_path)
        self.program = program
        self.timeout = timeout
        self.executor = executor
        self.store = TransactionStore(self.log_path, create_parents=create_parents)

    def _run(self, command: CommandDescriptor):
        """Run command, raise ExecutionError unless it succeeded."""
        logger.info(f"Executing: {command}")
        result = self.executor(command, timeout=self.timeout)
        if not result.success:
            raise ExecutionError(command, result)

    # =========================================================================
    # Install
    # =========================================================================

    def start_transaction(self, packages: Sequence[str],
                          name: str = None) -> TransactionRecord:
        """Install packages and log them as one transaction.

        Args:
            packages: Package names, in install order
            name: Optional transaction name, used to select it for rollback

        Returns:
            The logged TransactionRecord

        Raises:
            EmptyPackageListError, SpawnError, ExecutionError, PersistenceError
        """
        command = build(Intent.INSTALL, packages, program=self.program)
        self._run(command)

        record = TransactionRecord.new(packages, name=name)
        try:
            self.store.append(record)
        except StoreError as e:
            logger.critical(f"Installed {' '.join(record.packages)} but could not record it: {e}")
            raise PersistenceError(record, e) from e
        return record

    # =========================================================================
    # Rollback
    # =========================================================================

    def plan_rollback(self, name: str = None, force: bool = False) -> TransactionRecord:
        """Select the transaction a rollback would reverse.

        Args:
            name: Exact transaction name, None for the latest transaction
            force: Allow selecting a transaction that was already rolled back

        Raises:
            TransactionNotFoundError, AlreadyReversedError, StoreError
        """
        record = resolve(name, self.log_path)
        event = find_rollback(record, self.log_path)
        if event is not None:
            if not force:
                raise AlreadyReversedError(record, event)
            logger.warning(f"Transaction {record.label} already rolled back, forcing")
        return record

    def rollback(self, name: str = None, force: bool = False,
                 record: TransactionRecord = None) -> RollbackEvent:
        """Purge the packages of a logged transaction.

        Args:
            name: Exact transaction name, None for the latest transaction
            force: Roll back even if already rolled back
            record: Transaction from plan_rollback() (skips resolution)

        Returns:
            The logged RollbackEvent

        Raises:
            TransactionNotFoundError, AlreadyReversedError, SpawnError,
            ExecutionError, PersistenceError
        """
        if record is None:
            record = self.plan_rollback(name, force=force)

        command = build(Intent.ROLLBACK, record.packages, program=self.program)
        self._run(command)

        event = RollbackEvent.for_record(record)
        try:
            self.store.append_rollback(event)
        except StoreError as e:
            logger.critical(f"Rolled back {record.label} but could not record it: {e}")
            raise PersistenceError(event, e) from e
        return event

    # =========================================================================
    # History
    # =========================================================================

    def history(self, limit: int = None) -> List[Tuple[TransactionRecord, Optional[RollbackEvent]]]:
        """List logged transactions, newest first.

        Args:
            limit: Maximum number of entries (default: all)

        Returns:
            List of (record, rollback event or None)

        Raises:
            ValueError: if limit is less than 1
        """
        if limit is not None and limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")

        records = self.store.read_transactions()
        rollbacks = {}
        for event in self.store.read_rollbacks():
            rollbacks[event.reverses] = event  # latest wins

        entries = [(r, rollbacks.get(r.stamp)) for r in reversed(records)]
        if limit is not None:
            entries = entries[:limit]
        return entries
