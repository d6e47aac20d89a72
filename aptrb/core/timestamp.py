"""Timestamps for transaction records.

All timestamps are local wall-clock time with microsecond precision,
written as YYYY-MM-DDTHH:MM:SS.ffffff. The fractional part is always
six digits so records sort and compare as plain strings.
"""

from datetime import datetime

TIMESTAMP_FORMAT = '%Y-%m-%dT%H:%M:%S.%f'


def format_timestamp(dt: datetime) -> str:
    """Format a datetime in the transaction log layout."""
    return dt.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(text: str) -> datetime:
    """Parse a timestamp written by format_timestamp().

    Raises:
        ValueError: if text is not in TIMESTAMP_FORMAT
    """
    return datetime.strptime(text, TIMESTAMP_FORMAT)


def now() -> str:
    """Return the current local time, formatted."""
    return format_timestamp(datetime.now())
