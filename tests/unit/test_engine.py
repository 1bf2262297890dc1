"""
Unit tests untuk RefConsistencyEngine.
"""

import pytest

from globalrefdb.core.exceptions import GlobalRefDbLockError, GlobalRefDbSystemError
from globalrefdb.core.models import RefKey, ZERO_ID

REF = RefKey('p', 'refs/x')
CURRENT = '533d3ccf8a650fb26380faa732921a2c74924d5c'
PREVIOUS = '9f6f2963cf44505428c61b935ff1ca65372cf28c'


def test_ref_path_encoding():
    """RefKey path = /owner/ref"""
    assert REF.path == '/p/refs/x'
    assert RefKey('project', 'refs/changes/01/01/meta').path == '/project/refs/changes/01/01/meta'


def test_is_up_to_date_without_record(engine):
    """Tanpa record, local value dianggap up to date"""
    assert engine.is_up_to_date(REF, CURRENT)
    assert engine.is_up_to_date(REF, None)


def test_compare_and_put_on_absent_record(engine):
    assert engine.compare_and_put(REF, None, CURRENT) is True

    assert engine.get(REF) == CURRENT
    assert engine.is_up_to_date(REF, CURRENT)
    assert not engine.is_up_to_date(REF, PREVIOUS)


def test_compare_and_put_conflict(engine):
    """Stale expected value selalu raise, expected yang benar berhasil"""
    engine.compare_and_put(REF, None, CURRENT)

    with pytest.raises(GlobalRefDbSystemError):
        engine.compare_and_put(REF, None, PREVIOUS)

    assert engine.compare_and_put(REF, CURRENT, PREVIOUS)
    assert engine.get(REF) == PREVIOUS


def test_compare_and_put_same_value_is_idempotent(engine):
    engine.compare_and_put(REF, None, CURRENT)

    assert engine.compare_and_put(REF, CURRENT, CURRENT)
    assert engine.compare_and_put(REF, CURRENT, CURRENT)
    assert engine.get(REF) == CURRENT


def test_delete_is_stored_as_zero_id(engine):
    """Delete = ZERO_ID, record tetap ada"""
    engine.compare_and_put(REF, None, CURRENT)

    assert engine.compare_and_put(REF, CURRENT, ZERO_ID)

    assert engine.get(REF) == ZERO_ID
    assert engine.exists(REF)
    assert engine.get_record(REF).is_deleted
    assert engine.is_up_to_date(REF, None)
    assert not engine.is_up_to_date(REF, CURRENT)


def test_none_new_value_means_zero_id(engine):
    engine.compare_and_put(REF, None, CURRENT)
    engine.compare_and_put(REF, CURRENT, None)

    assert engine.get(REF) == ZERO_ID


def test_deleted_ref_can_be_recreated(engine):
    engine.compare_and_put(REF, None, CURRENT)
    engine.compare_and_put(REF, CURRENT, None)

    assert engine.compare_and_put(REF, None, PREVIOUS)
    assert engine.get(REF) == PREVIOUS


def test_scenario_wrong_expected_value(engine):
    assert engine.compare_and_put(REF, None, 'abc123')
    assert engine.is_up_to_date(REF, 'abc123')
    assert not engine.is_up_to_date(REF, 'def456')

    with pytest.raises(GlobalRefDbSystemError) as excinfo:
        engine.compare_and_put(REF, 'wrong', 'def456')

    message = str(excinfo.value)
    assert 'Conditional Check Failure when updating refPath /p/refs/x' in message
    assert 'wrong' in message
    assert 'def456' in message
    assert excinfo.value.path == '/p/refs/x'
    assert excinfo.value.expected == 'wrong'
    assert excinfo.value.new_value == 'def456'
    assert engine.get(REF) == 'abc123'


def test_compare_and_put_accepts_non_string_tokens(engine):
    assert engine.compare_and_put(REF, None, 42)
    assert engine.get(REF) == '42'
    assert engine.compare_and_put(REF, 42, 43)


def test_compare_and_put_store_failure(engine, store, collector):
    store.set_available(False)

    with pytest.raises(GlobalRefDbSystemError) as excinfo:
        engine.compare_and_put(REF, CURRENT, PREVIOUS)

    assert str(excinfo.value).startswith('Error updating refPath /p/refs/x')
    assert excinfo.value.__cause__ is not None
    assert collector.registry.get_sample_value(
        'globalrefdb_compare_and_put_total', {'outcome': 'error'}) == 1.0


def test_is_up_to_date_store_failure_is_lock_error(engine, store):
    """Staleness check yang gagal = lock-domain error"""
    store.set_available(False)

    with pytest.raises(GlobalRefDbLockError) as excinfo:
        engine.is_up_to_date(REF, CURRENT)

    assert excinfo.value.owner_id == 'p'
    assert excinfo.value.ref_name == 'refs/x'


def test_advisory_reads_swallow_errors(engine, store, collector):
    engine.compare_and_put(REF, None, CURRENT)
    store.set_available(False)

    assert engine.exists(REF) is False
    assert engine.get(REF) is None
    assert collector.registry.get_sample_value(
        'globalrefdb_advisory_read_errors_total', {'operation': 'exists'}) == 1.0
    assert collector.registry.get_sample_value(
        'globalrefdb_advisory_read_errors_total', {'operation': 'get'}) == 1.0


def test_missing_table_is_unavailable(store, collector):
    """Table yang belum di-provision: reads kosong, writes raise"""
    from globalrefdb.core.engine import RefConsistencyEngine

    engine = RefConsistencyEngine(store, 'notProvisioned', metrics=collector)

    assert engine.get(REF) is None
    assert engine.exists(REF) is False
    with pytest.raises(GlobalRefDbSystemError):
        engine.compare_and_put(REF, None, CURRENT)


def test_exists(engine):
    assert not engine.exists(REF)
    engine.compare_and_put(REF, None, CURRENT)
    assert engine.exists(REF)
    assert not engine.exists(RefKey('p', 'refs/not/in/db'))


def test_keys_are_independent(engine):
    other = RefKey('q', 'refs/x')
    engine.compare_and_put(REF, None, CURRENT)

    assert engine.get(other) is None
    assert engine.is_up_to_date(other, PREVIOUS)


def test_remove_keeps_records(engine):
    """remove(owner) belum didukung: records tetap ada"""
    engine.compare_and_put(REF, None, CURRENT)

    engine.remove('p')

    assert engine.get(REF) == CURRENT


def test_metrics_outcomes(engine, collector):
    engine.compare_and_put(REF, None, CURRENT)
    with pytest.raises(GlobalRefDbSystemError):
        engine.compare_and_put(REF, PREVIOUS, CURRENT)
    engine.is_up_to_date(REF, CURRENT)
    engine.is_up_to_date(REF, PREVIOUS)

    sample = collector.registry.get_sample_value
    assert sample('globalrefdb_compare_and_put_total', {'outcome': 'success'}) == 1.0
    assert sample('globalrefdb_compare_and_put_total', {'outcome': 'conflict'}) == 1.0
    assert sample('globalrefdb_is_up_to_date_total', {'result': 'up_to_date'}) == 1.0
    assert sample('globalrefdb_is_up_to_date_total', {'result': 'stale'}) == 1.0


if __name__ == "__main__":
    pytest.main([__file__, '-v'])
