"""
Main CLI entry point for aptrb

Commands with short aliases:
- aptrb install / aptrb i   (install packages as a new transaction)
- aptrb rollback / aptrb r  (purge the packages of a transaction)
- aptrb history / aptrb h   (list logged transactions)
"""

import argparse
import logging
import sys

from .. import __version__
from ..core.config import load_config, resolve_log_path
from ..core.executor import execute
from ..core.operations import TransactionOperations
from .commands import cmd_history, cmd_install, cmd_rollback


class AliasedSubParsersAction(argparse._SubParsersAction):
    """Custom action to support command aliases in argparse."""

    def add_parser(self, name, **kwargs):
        aliases = kwargs.pop('aliases', [])
        parser = super().add_parser(name, **kwargs)

        for alias in aliases:
            self._name_parser_map[alias] = parser

        return parser


def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'")
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {n}")
    return n


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with all commands and aliases."""

    parser = argparse.ArgumentParser(
        prog='aptrb',
        description='Install packages with apt as transactions that can be rolled back',
        epilog='Use "aptrb <command> --help" for command-specific help.'
    )

    parser.add_argument(
        '--version', '-V',
        action='version',
        version=f'aptrb {__version__}'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Verbose output'
    )

    parser.add_argument(
        '--nocolor',
        action='store_true',
        help='Disable colored output'
    )

    parser.add_argument(
        '--config',
        metavar='PATH',
        help='Config file (default: ~/.config/aptrb/aptrb.conf)'
    )

    # Parent parser for the log file option (inherited by subparsers)
    file_parent = argparse.ArgumentParser(add_help=False)
    file_parent.add_argument(
        '--file', '-f',
        metavar='PATH',
        help='Transaction log to use (default: ~/.local/share/aptrb/transactions.toml)'
    )

    parser.register('action', 'parsers', AliasedSubParsersAction)

    subparsers = parser.add_subparsers(
        dest='command',
        title='commands',
        metavar='<command>'
    )

    # =========================================================================
    # install / i
    # =========================================================================
    install_parser = subparsers.add_parser(
        'install', aliases=['i'],
        help='Install packages as a new transaction',
        parents=[file_parent]
    )
    install_parser.add_argument(
        'packages', nargs='+',
        help='The packages that should be installed and rolled back later'
    )
    install_parser.add_argument(
        '--name', '-n',
        help='Name of the transaction, to select it for rollback'
    )

    # =========================================================================
    # rollback / r
    # =========================================================================
    rollback_parser = subparsers.add_parser(
        'rollback', aliases=['r'],
        help='Purge the packages of a transaction (default: latest)',
        parents=[file_parent]
    )
    rollback_parser.add_argument(
        'name', nargs='?',
        help='Exact name of the transaction to roll back'
    )
    rollback_parser.add_argument(
        '--auto', '-y',
        action='store_true',
        help='No confirmation'
    )
    rollback_parser.add_argument(
        '--force',
        action='store_true',
        help='Roll back even if the transaction was already rolled back'
    )

    # =========================================================================
    # history / h
    # =========================================================================
    history_parser = subparsers.add_parser(
        'history', aliases=['h'],
        help='List logged transactions',
        parents=[file_parent]
    )
    history_parser.add_argument(
        '--count', '-n',
        type=positive_int, default=20,
        help='Number of transactions to show (default: 20)'
    )
    history_parser.add_argument(
        '--json',
        action='store_true',
        help='JSON output for scripting'
    )
    history_parser.add_argument(
        '--show-all',
        action='store_true',
        help='Show package lists without truncation'
    )

    return parser


def create_operations(args, settings: dict) -> TransactionOperations:
    """Build TransactionOperations from config and command line."""
    override = getattr(args, 'file', None)
    log_path = resolve_log_path(settings, override)
    return TransactionOperations(
        log_path,
        program=settings['program'],
        timeout=settings['timeout'],
        executor=execute,
        # Only the built-in location gets its directory created
        create_parents=settings['default_log'] and not override,
    )


# =============================================================================
# Main entry point
# =============================================================================

def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )

    from . import colors
    colors.init(nocolor=args.nocolor)

    if not args.command:
        parser.print_help()
        return 1

    settings = load_config(args.config)
    ops = create_operations(args, settings)
    logging.getLogger(__name__).debug(f"Transaction log: {ops.log_path}")

    try:
        if args.command in ('install', 'i'):
            return cmd_install(args, ops)

        elif args.command in ('rollback', 'r'):
            return cmd_rollback(args, ops)

        elif args.command in ('history', 'h'):
            return cmd_history(args, ops)

        else:
            print(f"Command '{args.command}' not yet implemented")
            return 1

    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130


if __name__ == '__main__':
    sys.exit(main())
