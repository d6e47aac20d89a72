"""Package manager command construction.

Commands are built as plain data and run later by the executor, so
building never touches the system.

Layout of a built command:
    <program> <subcommand> -y <package> [<package> ...]
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Tuple

# apt-get front end by default, overridable from the config file
DEFAULT_PROGRAM = "apt-get"

INSTALL_VERB = "install"
PURGE_VERB = "purge"

# Always first, so the package manager never waits for a confirmation
NONINTERACTIVE_FLAG = "-y"


class Intent(Enum):
    """What a command is meant to do."""
    INSTALL = "install"     # New transaction
    ROLLBACK = "rollback"   # Reverse a logged transaction

    @property
    def verb(self) -> str:
        if self is Intent.INSTALL:
            return INSTALL_VERB
        return PURGE_VERB


class EmptyPackageListError(ValueError):
    """Raised when a command or record is requested without packages."""

    def __init__(self, intent: Intent = None):
        self.intent = intent
        what = intent.value if intent else "transaction"
        super().__init__(f"No packages given for {what}")


@dataclass(frozen=True)
class CommandDescriptor:
    """A package manager invocation, not yet executed."""
    program: str                # apt-get
    subcommand: str             # install / purge
    arguments: Tuple[str, ...]  # ('-y', 'pkg1', 'pkg2')

    @property
    def packages(self) -> List[str]:
        """Package names, without the leading flag."""
        return list(self.arguments[1:])

    def argv(self) -> List[str]:
        """Full argument vector for subprocess."""
        return [self.program, self.subcommand, *self.arguments]

    def __str__(self) -> str:
        return ' '.join(self.argv())


def build(intent: Intent, packages: Sequence[str],
          program: str = DEFAULT_PROGRAM) -> CommandDescriptor:
    """Build the command for an install or a rollback.

    Args:
        intent: Intent.INSTALL or Intent.ROLLBACK
        packages: Package names, kept in the given order (duplicates too)
        program: Package manager executable

    Returns:
        CommandDescriptor ready for execute()

    Raises:
        EmptyPackageListError: if packages is empty
    """
    if not packages:
        raise EmptyPackageListError(intent)

    return CommandDescriptor(
        program=program,
        subcommand=intent.verb,
        arguments=(NONINTERACTIVE_FLAG, *packages),
    )
