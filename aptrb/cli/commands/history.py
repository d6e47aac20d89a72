"""Transaction history and rollback commands."""

import json
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...core.operations import TransactionOperations


def cmd_history(args, ops: 'TransactionOperations') -> int:
    """Handle history command."""
    from ...core.store import StoreError
    from .. import colors

    try:
        history = ops.history(limit=args.count)
    except StoreError as e:
        print(colors.error(f"Error: {e}"))
        return 1

    if getattr(args, 'json', False):
        entries = []
        for record, event in history:
            d = record.to_dict()
            d['rolled_back'] = event.stamp if event else None
            entries.append(d)
        print(json.dumps(entries, indent=2))
        return 0

    if not history:
        print(colors.info("No transaction history"))
        return 0

    print(f"\n{colors.bold('Date               ')} | {colors.bold('Name          ')} | {colors.bold('Status     ')} | {colors.bold('Packages')}")
    print("-" * 78)

    for record, event in history:
        date_str = record.timestamp.strftime('%Y-%m-%d %H:%M:%S')
        name = record.name or '-'
        if len(name) > 14:
            name = name[:11] + '...'

        packages = ' '.join(record.packages)
        if len(packages) > 30 and not getattr(args, 'show_all', False):
            packages = packages[:27] + '...'

        if event:
            status = colors.dim(f"{'rolled back':11}")
        else:
            status = colors.success(f"{'installed':11}")

        print(f"{date_str:19} | {name:14} | {status} | {packages}")

    print()
    return 0


def cmd_rollback(args, ops: 'TransactionOperations') -> int:
    """Handle rollback command - purge the packages of one transaction.

    Usage:
    - rollback       : roll back the latest transaction
    - rollback NAME  : roll back the latest transaction named NAME
    """
    from ...core.executor import ExecutionError, SpawnError
    from ...core.operations import AlreadyReversedError, PersistenceError
    from ...core.resolver import TransactionNotFoundError
    from ...core.store import StoreError
    from .. import colors
    from .install import print_execution_error, print_persistence_error, warn_if_not_root

    name = getattr(args, 'name', None)

    try:
        record = ops.plan_rollback(name, force=args.force)
    except TransactionNotFoundError as e:
        print(colors.error(f"Error: {e}"))
        return 1
    except AlreadyReversedError as e:
        print(colors.error(f"Error: {e}"))
        print(colors.dim("  Use --force to roll it back again"))
        return 1
    except StoreError as e:
        print(colors.error(f"Error: {e}"))
        return 1

    print(f"\n{colors.bold(f'Rollback transaction {record.label}')} ({record.stamp})")
    print(f"\n{colors.warning(f'Packages to purge ({len(record.packages)}):')}")
    for pkg in record.packages:
        print(f"  {colors.pkg_remove('-')} {pkg}")

    if not args.auto:
        try:
            answer = input("\nProceed? [y/N] ")
            if answer.lower() not in ('y', 'yes'):
                print("Aborted")
                return 1
        except EOFError:
            print("\nAborted")
            return 1

    warn_if_not_root(ops)

    try:
        ops.rollback(record=record)
    except SpawnError as e:
        print(colors.error(f"\nError: {e}"))
        print(colors.dim("  Nothing was removed"))
        return 1
    except ExecutionError as e:
        print_execution_error(e)
        return 1
    except PersistenceError as e:
        print_persistence_error(e)
        return 2

    print(colors.success(f"\nRollback of {record.label} complete"))
    return 0
