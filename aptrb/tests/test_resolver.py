"""Tests for rollback target selection"""

from datetime import datetime

import pytest

from aptrb.core.record import RollbackEvent, TransactionRecord
from aptrb.core.resolver import TransactionNotFoundError, find_rollback, is_reversed, resolve
from aptrb.core.store import StoreError, TransactionStore


def make_record(packages, name=None, minute=0):
    return TransactionRecord(
        packages=list(packages),
        timestamp=datetime(2024, 5, 6, 7, minute, 0, 123456),
        name=name,
    )


@pytest.fixture
def log_path(tmp_path):
    return tmp_path / 'transactions.toml'


@pytest.fixture
def populated(log_path):
    """Log with r1 (x) then r2 (y, z)."""
    store = TransactionStore(log_path)
    r1 = make_record(['x'], name='r1', minute=1)
    r2 = make_record(['y', 'z'], name='r2', minute=2)
    store.append(r1)
    store.append(r2)
    return r1, r2


class TestResolve:
    """Tests for resolve()."""

    def test_by_name(self, log_path, populated):
        r1, _ = populated
        record = resolve('r1', log_path)
        assert record == r1
        assert record.packages == ('x',)

    def test_latest(self, log_path, populated):
        _, r2 = populated
        assert resolve(None, log_path) == r2

    def test_missing_name(self, log_path, populated):
        with pytest.raises(TransactionNotFoundError) as exc:
            resolve('missing', log_path)
        assert exc.value.name == 'missing'
        assert 'missing' in str(exc.value)

    def test_exact_match_only(self, log_path, populated):
        for selector in ('r', 'R1', 'r1 ', ''):
            with pytest.raises(TransactionNotFoundError):
                resolve(selector, log_path)

    def test_duplicate_names_latest_wins(self, log_path, populated):
        again = make_record(['w'], name='r1', minute=3)
        TransactionStore(log_path).append(again)
        assert resolve('r1', log_path) == again

    def test_latest_may_be_unnamed(self, log_path, populated):
        unnamed = make_record(['q'], minute=4)
        TransactionStore(log_path).append(unnamed)
        assert resolve(None, log_path) == unnamed

    def test_missing_log(self, log_path):
        with pytest.raises(TransactionNotFoundError):
            resolve(None, log_path)

    def test_empty_log(self, log_path):
        log_path.write_text('')
        with pytest.raises(TransactionNotFoundError):
            resolve(None, log_path)

    def test_corrupt_log(self, log_path):
        log_path.write_text('not = [toml')
        with pytest.raises(StoreError):
            resolve(None, log_path)

    def test_not_found_is_lookup_error(self, log_path):
        with pytest.raises(LookupError):
            resolve('anything', log_path)


class TestReversed:
    """Tests for find_rollback() and is_reversed()."""

    def test_not_reversed(self, log_path, populated):
        r1, r2 = populated
        assert find_rollback(r1, log_path) is None
        assert not is_reversed(r2, log_path)

    def test_reversed(self, log_path, populated):
        r1, r2 = populated
        event = RollbackEvent.for_record(r2)
        TransactionStore(log_path).append_rollback(event)
        assert find_rollback(r2, log_path) == event
        assert is_reversed(r2, log_path)
        assert not is_reversed(r1, log_path)

    def test_resolve_ignores_rollback_status(self, log_path, populated):
        _, r2 = populated
        TransactionStore(log_path).append_rollback(RollbackEvent.for_record(r2))
        assert resolve(None, log_path) == r2
