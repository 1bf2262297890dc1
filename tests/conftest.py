"""Shared fixtures: in-memory store dan lock service."""

import pytest

from globalrefdb.core.engine import RefConsistencyEngine
from globalrefdb.core.lock_coordinator import RefLockCoordinator
from globalrefdb.core.models import locks_table_schema, refs_table_schema
from globalrefdb.refdb import GlobalRefDatabase
from globalrefdb.stores.memory import InMemoryLockService, InMemoryRecordStore
from globalrefdb.utils.metrics import MetricsCollector

REFS_TABLE = 'refsDb'
LOCKS_TABLE = 'lockTable'


@pytest.fixture
def collector():
    return MetricsCollector()


@pytest.fixture
def store():
    store = InMemoryRecordStore()
    store.create_table(refs_table_schema(REFS_TABLE))
    store.create_table(locks_table_schema(LOCKS_TABLE))
    return store


@pytest.fixture
def engine(store, collector):
    return RefConsistencyEngine(store, REFS_TABLE, metrics=collector)


@pytest.fixture
def lock_service():
    return InMemoryLockService(wait_timeout=0.3, lease_duration=5.0, retry_interval=0.01)


@pytest.fixture
def coordinator(lock_service, collector):
    return RefLockCoordinator(lock_service, metrics=collector)


@pytest.fixture
def refdb(engine, coordinator):
    return GlobalRefDatabase(engine, coordinator)
