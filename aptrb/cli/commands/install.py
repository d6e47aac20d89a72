"""Package installation command."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...core.operations import TransactionOperations


def print_execution_error(e) -> None:
    """Show a failed package manager run with its stderr."""
    from .. import colors

    print(colors.error(f"\nError: {e}"))
    result = getattr(e, 'result', None)
    if result is not None and result.stderr:
        for line in result.stderr.strip().splitlines()[-10:]:
            print(f"  {colors.dim(line)}")


def print_persistence_error(e) -> None:
    """Show a log write failure after the system was changed."""
    from .. import colors

    print(colors.error(f"\nCRITICAL: {e}"))
    entry = e.entry
    print(colors.error(f"  Packages: {' '.join(entry.packages)}"))
    print(colors.warning("  The transaction log does not reflect the system state."))


def warn_if_not_root(ops: 'TransactionOperations') -> None:
    from ...core.command import DEFAULT_PROGRAM
    from ...core.executor import check_root
    from .. import colors

    if ops.program == DEFAULT_PROGRAM and not check_root():
        print(colors.warning(f"Warning: not running as root, {ops.program} will probably fail"))


def cmd_install(args, ops: 'TransactionOperations') -> int:
    """Handle install command."""
    from ...core.command import EmptyPackageListError
    from ...core.executor import ExecutionError, SpawnError
    from ...core.operations import PersistenceError
    from .. import colors

    packages = args.packages
    name = getattr(args, 'name', None)

    title = f"Transaction '{name}'" if name else "New transaction"
    print(f"\n{colors.bold(title)} ({len(packages)} package(s))")
    for pkg in packages:
        print(f"  {colors.pkg_install('+')} {pkg}")
    print()

    warn_if_not_root(ops)

    try:
        record = ops.start_transaction(packages, name=name)
    except EmptyPackageListError as e:
        print(colors.error(f"Error: {e}"))
        return 1
    except SpawnError as e:
        print(colors.error(f"\nError: {e}"))
        print(colors.dim("  Nothing was installed, nothing was recorded"))
        return 1
    except ExecutionError as e:
        print_execution_error(e)
        print(colors.dim("  Transaction not recorded"))
        return 1
    except PersistenceError as e:
        print_persistence_error(e)
        return 2

    print(colors.success(f"\nTransaction {record.label} recorded"))
    print(colors.dim(f"  Log: {ops.log_path}"))
    return 0
