"""Transaction log entries and their TOML form.

A serialized entry is a single TOML array-of-tables item:

    [[transaction]]
    packages = ["htop", "iotop"]
    name = "tools"
    timestamp = "2026-10-19T10:00:00.000001"

Rollback events use a [[rollback]] header instead. Since every entry
starts with its own header, appending entries one after another always
leaves a valid TOML document.
"""

import tomllib
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence, Tuple

import tomli_w

from .command import EmptyPackageListError
from .timestamp import format_timestamp, now, parse_timestamp

TRANSACTION_KEY = "transaction"
ROLLBACK_KEY = "rollback"


class RecordFormatError(ValueError):
    """Raised when serialized data is not a valid log entry."""


@dataclass(frozen=True)
class TransactionRecord:
    """One logged install: packages, optional name, timestamp."""
    packages: Tuple[str, ...]
    timestamp: datetime
    name: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'packages', tuple(self.packages))

    @classmethod
    def new(cls, packages: Sequence[str], name: str = None) -> 'TransactionRecord':
        """Create a record stamped with the current time.

        Raises:
            EmptyPackageListError: if packages is empty
        """
        if not packages:
            raise EmptyPackageListError()
        return cls(
            packages=tuple(packages),
            timestamp=parse_timestamp(now()),
            name=name,
        )

    @property
    def stamp(self) -> str:
        """Formatted timestamp, also the record's identity in the log."""
        return format_timestamp(self.timestamp)

    @property
    def label(self) -> str:
        """Human label: the name if any, else the timestamp."""
        return self.name if self.name is not None else self.stamp

    def to_dict(self) -> dict:
        # TOML has no null, an absent name is an absent key
        d = {'packages': list(self.packages)}
        if self.name is not None:
            d['name'] = self.name
        d['timestamp'] = self.stamp
        return d

    @classmethod
    def from_dict(cls, d: dict) -> 'TransactionRecord':
        return cls(
            packages=_packages_field(d),
            timestamp=_timestamp_field(d, 'timestamp'),
            name=_name_field(d),
        )


@dataclass(frozen=True)
class RollbackEvent:
    """A completed rollback of a logged transaction."""
    reverses: str               # stamp of the reversed TransactionRecord
    timestamp: datetime
    packages: Tuple[str, ...] = ()
    name: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'packages', tuple(self.packages))

    @classmethod
    def for_record(cls, record: TransactionRecord) -> 'RollbackEvent':
        """Create the event for rolling back record, stamped now."""
        return cls(
            reverses=record.stamp,
            timestamp=parse_timestamp(now()),
            packages=record.packages,
            name=record.name,
        )

    @property
    def stamp(self) -> str:
        return format_timestamp(self.timestamp)

    def to_dict(self) -> dict:
        d = {'reverses': self.reverses}
        if self.name is not None:
            d['name'] = self.name
        d['packages'] = list(self.packages)
        d['timestamp'] = self.stamp
        return d

    @classmethod
    def from_dict(cls, d: dict) -> 'RollbackEvent':
        # Validates the reference without changing its text
        _timestamp_field(d, 'reverses')
        return cls(
            reverses=d['reverses'],
            timestamp=_timestamp_field(d, 'timestamp'),
            packages=_packages_field(d),
            name=_name_field(d),
        )


def _packages_field(d: dict) -> Tuple[str, ...]:
    packages = d.get('packages')
    if not isinstance(packages, list) or not packages:
        raise RecordFormatError("'packages' must be a non-empty array")
    if not all(isinstance(p, str) for p in packages):
        raise RecordFormatError("'packages' must only contain strings")
    return tuple(packages)


def _name_field(d: dict) -> Optional[str]:
    name = d.get('name')
    if name is not None and not isinstance(name, str):
        raise RecordFormatError("'name' must be a string")
    return name


def _timestamp_field(d: dict, key: str) -> datetime:
    value = d.get(key)
    if not isinstance(value, str):
        raise RecordFormatError(f"'{key}' must be a timestamp string")
    try:
        return parse_timestamp(value)
    except ValueError as e:
        raise RecordFormatError(f"Invalid '{key}': {e}") from e


def _entry(key: str, d: dict) -> bytes:
    # Header written by hand: tomli_w may render a one-item array of
    # tables inline, and two inline 'transaction = [...]' keys would clash.
    return f"[[{key}]]\n{tomli_w.dumps(d)}".encode('utf-8')


def serialize(record: TransactionRecord) -> bytes:
    """Serialize a record as one [[transaction]] entry."""
    return _entry(TRANSACTION_KEY, record.to_dict())


def serialize_rollback(event: RollbackEvent) -> bytes:
    """Serialize a rollback event as one [[rollback]] entry."""
    return _entry(ROLLBACK_KEY, event.to_dict())


def loads_log(data: bytes) -> dict:
    """Parse a serialized log (any number of entries).

    Returns:
        Dict with 'transaction' and 'rollback' lists, in append order

    Raises:
        RecordFormatError: on invalid TOML or malformed entries
    """
    try:
        doc = tomllib.loads(data.decode('utf-8'))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        raise RecordFormatError(f"Invalid transaction log: {e}") from e

    unknown = set(doc) - {TRANSACTION_KEY, ROLLBACK_KEY}
    if unknown:
        raise RecordFormatError(f"Unknown entries: {', '.join(sorted(unknown))}")

    entries = {}
    for key, parse in ((TRANSACTION_KEY, TransactionRecord.from_dict),
                       (ROLLBACK_KEY, RollbackEvent.from_dict)):
        items = doc.get(key, [])
        if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
            raise RecordFormatError(f"'{key}' entries must be [[{key}]] tables")
        entries[key] = [parse(i) for i in items]
    return entries


def deserialize(data: bytes) -> TransactionRecord:
    """Inverse of serialize().

    Raises:
        RecordFormatError: unless data holds exactly one transaction
    """
    entries = loads_log(data)
    records = entries[TRANSACTION_KEY]
    if len(records) != 1 or entries[ROLLBACK_KEY]:
        raise RecordFormatError(
            f"Expected exactly one transaction, found {len(records)}"
        )
    return records[0]
