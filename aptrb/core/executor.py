"""Package manager execution.

Runs a CommandDescriptor as a child process and classifies the outcome:
- could not start: SpawnError is raised, nothing on the system changed
- ran and failed: ExecutionResult(success=False) with captured stderr
- ran and succeeded: ExecutionResult(success=True)

Standard output is left attached to the terminal so the package
manager's progress stays visible. Nothing is retried.
"""

import logging
import os
import subprocess
from dataclasses import dataclass

from .command import CommandDescriptor

logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    """Result of running a package manager command."""
    success: bool
    returncode: int = 0
    stderr: str = ""
    timed_out: bool = False


class SpawnError(RuntimeError):
    """Raised when the package manager could not be started at all."""

    def __init__(self, command: CommandDescriptor, cause: OSError):
        self.command = command
        self.cause = cause
        super().__init__(f"Cannot run {command.program}: {cause.strerror or cause}")


class ExecutionError(RuntimeError):
    """Raised by callers when a command ran but reported failure."""

    def __init__(self, command: CommandDescriptor, result: ExecutionResult):
        self.command = command
        self.result = result
        if result.timed_out:
            msg = f"{command.program} {command.subcommand} timed out"
        else:
            msg = f"{command.program} {command.subcommand} failed (exit code {result.returncode})"
        super().__init__(msg)


def check_root() -> bool:
    """Check if running as root."""
    return os.geteuid() == 0


def execute(command: CommandDescriptor, timeout: float = None) -> ExecutionResult:
    """Run a command and wait for it to finish.

    Args:
        command: Command to run
        timeout: Seconds before the child is killed (default: wait forever)

    Returns:
        ExecutionResult with exit status and captured stderr

    Raises:
        SpawnError: if the program cannot be started
    """
    logger.debug(f"Running: {command}")
    try:
        result = subprocess.run(
            command.argv(),
            stderr=subprocess.PIPE,
            text=True,
            errors='replace',
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        stderr = e.stderr or ""
        if isinstance(stderr, bytes):
            stderr = stderr.decode(errors='replace')
        logger.error(f"{command.program} timed out after {timeout}s")
        return ExecutionResult(success=False, returncode=-1,
                               stderr=stderr, timed_out=True)
    except OSError as e:
        logger.error(f"Cannot start {command.program}: {e}")
        raise SpawnError(command, e) from e

    if result.returncode != 0:
        logger.error(f"{command.program} returned {result.returncode}: {result.stderr.strip()}")
        return ExecutionResult(success=False, returncode=result.returncode,
                               stderr=result.stderr)

    return ExecutionResult(success=True)
