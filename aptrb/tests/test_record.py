"""Tests for transaction records and their TOML form"""

import tomllib
from datetime import datetime

import pytest

from aptrb.core.command import EmptyPackageListError
from aptrb.core.record import (
    RecordFormatError,
    RollbackEvent,
    TransactionRecord,
    deserialize,
    loads_log,
    serialize,
    serialize_rollback,
)

STAMP = datetime(2024, 1, 2, 3, 4, 5, 123456)


@pytest.fixture
def record():
    return TransactionRecord(packages=['a', 'b'], timestamp=STAMP, name='demo')


class TestTransactionRecord:
    """Tests for TransactionRecord."""

    def test_new(self):
        before = datetime.now().replace(microsecond=0)
        record = TransactionRecord.new(['vim', 'git'], name='editors')
        assert record.packages == ('vim', 'git')
        assert record.name == 'editors'
        assert record.timestamp >= before

    def test_new_without_name(self):
        record = TransactionRecord.new(['vim'])
        assert record.name is None
        assert record.label == record.stamp

    def test_new_copies_packages(self):
        packages = ['vim']
        record = TransactionRecord.new(packages)
        packages.append('emacs')
        assert record.packages == ('vim',)

    def test_packages_are_immutable(self, record):
        assert isinstance(record.packages, tuple)
        same = TransactionRecord(packages=('a', 'b'), timestamp=STAMP, name='demo')
        assert record == same
        assert hash(record) == hash(same)
        assert len({record, same}) == 1

    def test_new_empty_rejected(self):
        with pytest.raises(EmptyPackageListError):
            TransactionRecord.new([])

    def test_label_uses_name(self, record):
        assert record.label == 'demo'

    def test_stamp(self, record):
        assert record.stamp == '2024-01-02T03:04:05.123456'

    def test_to_dict_omits_missing_name(self):
        record = TransactionRecord(packages=['x'], timestamp=STAMP)
        assert record.to_dict() == {'packages': ['x'], 'timestamp': '2024-01-02T03:04:05.123456'}


class TestSerialization:
    """Tests for serialize()/deserialize()."""

    def test_roundtrip(self, record):
        restored = deserialize(serialize(record))
        assert restored.packages == ('a', 'b')
        assert restored.name == 'demo'
        assert restored.timestamp == STAMP
        assert restored == record

    def test_roundtrip_without_name(self):
        record = TransactionRecord(packages=['x', 'x'], timestamp=STAMP)
        restored = deserialize(serialize(record))
        assert restored.name is None
        assert restored.packages == ('x', 'x')

    def test_serialized_is_toml_array_of_tables(self, record):
        data = serialize(record)
        assert data.startswith(b'[[transaction]]\n')
        doc = tomllib.loads(data.decode())
        assert doc['transaction'][0]['timestamp'] == '2024-01-02T03:04:05.123456'

    def test_name_with_quotes(self):
        record = TransactionRecord(packages=['x'], timestamp=STAMP, name='say "hi"\n')
        assert deserialize(serialize(record)).name == 'say "hi"\n'

    def test_concatenated_entries_parse(self, record):
        other = TransactionRecord(packages=['c'], timestamp=STAMP.replace(second=6))
        entries = loads_log(serialize(record) + b'\n' + serialize(other))
        assert entries['transaction'] == [record, other]
        assert entries['rollback'] == []

    def test_deserialize_rejects_two_records(self, record):
        with pytest.raises(RecordFormatError):
            deserialize(serialize(record) + serialize(record))

    def test_deserialize_rejects_empty(self):
        with pytest.raises(RecordFormatError):
            deserialize(b'')

    @pytest.mark.parametrize('data', [
        b'[[transaction]]\npackages = []\ntimestamp = "2024-01-02T03:04:05.123456"\n',
        b'[[transaction]]\npackages = [1]\ntimestamp = "2024-01-02T03:04:05.123456"\n',
        b'[[transaction]]\npackages = ["a"]\n',
        b'[[transaction]]\npackages = ["a"]\ntimestamp = "2024-01-02"\n',
        b'[[transaction]]\npackages = ["a"]\nname = 3\ntimestamp = "2024-01-02T03:04:05.123456"\n',
        b'transaction = "nope"\n',
        b'[[other]]\nx = 1\n',
        b'[[transaction\n',
    ])
    def test_deserialize_rejects_malformed(self, data):
        with pytest.raises(RecordFormatError):
            deserialize(data)


class TestRollbackEvent:
    """Tests for RollbackEvent."""

    def test_for_record(self, record):
        event = RollbackEvent.for_record(record)
        assert event.reverses == record.stamp
        assert event.packages == ('a', 'b')
        assert event.name == 'demo'

    def test_serialized_with_transactions(self, record):
        event = RollbackEvent(reverses=record.stamp, timestamp=STAMP.replace(hour=4),
                              packages=['a', 'b'], name='demo')
        data = serialize(record) + b'\n' + serialize_rollback(event)
        entries = loads_log(data)
        assert entries['transaction'] == [record]
        assert entries['rollback'] == [event]

    def test_invalid_reference_rejected(self):
        data = (b'[[rollback]]\nreverses = "latest"\npackages = ["a"]\n'
                b'timestamp = "2024-01-02T03:04:05.123456"\n')
        with pytest.raises(RecordFormatError):
            loads_log(data)
