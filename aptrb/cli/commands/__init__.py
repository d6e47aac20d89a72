"""CLI command modules."""

from .install import (
    cmd_install,
)
from .history import (
    cmd_history,
    cmd_rollback,
)

__all__ = [
    'cmd_install',
    'cmd_history',
    'cmd_rollback',
]
