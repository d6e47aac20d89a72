"""Core modules for aptrb"""

from .command import Intent, CommandDescriptor, build
from .record import TransactionRecord, RollbackEvent
from .store import TransactionStore
from .resolver import resolve
from .operations import TransactionOperations

__all__ = [
    'Intent',
    'CommandDescriptor',
    'build',
    'TransactionRecord',
    'RollbackEvent',
    'TransactionStore',
    'resolve',
    'TransactionOperations',
]
