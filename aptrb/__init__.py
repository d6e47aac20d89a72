"""
aptrb - Reversible package installs for apt

Wraps the system package manager so that every install is recorded
as a transaction:
- Append-only TOML transaction log
- Rollback of a whole transaction by name or latest
- Plain argparse CLI with short aliases
"""

__version__ = "0.1.0"
__author__ = "aptrb contributors"
