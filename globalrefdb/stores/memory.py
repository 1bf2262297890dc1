"""
In-memory implementations of the shared store dan lock service.
Semantics sama dengan Redis backend; dipakai untuk tests dan development.
"""

import logging
import threading
from typing import Dict, Optional, Tuple

from ..core.exceptions import ConditionFailedError, StoreUnavailableError
from ..core.models import TableSchema
from .base import DistributedLockService, Lease, SharedRecordStore

logger = logging.getLogger(__name__)


class InMemoryRecordStore(SharedRecordStore):
    """
    Dict-backed SharedRecordStore.

    Tables harus dibuat dulu (create_table); akses ke table yang belum ada
    dianggap unavailable, sama seperti table yang belum di-provision.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._schemas: Dict[str, TableSchema] = {}
        self._tables: Dict[str, Dict[str, str]] = {}
        self.available = True

    def set_available(self, available: bool):
        """Simulate store outage"""
        self.available = available

    def _table(self, table: str) -> Dict[str, str]:
        if not self.available:
            raise StoreUnavailableError("Store is unavailable")
        if table not in self._tables:
            raise StoreUnavailableError(f"Table '{table}' not found")
        return self._tables[table]

    def read(self, table: str, key: str) -> Optional[str]:
        with self._lock:
            return self._table(table).get(key)

    def conditional_write(self, table: str, key: str, expected: str, new_value: str) -> None:
        with self._lock:
            items = self._table(table)
            current = items.get(key)
            if current is not None and current != expected:
                raise ConditionFailedError(table, key, expected)
            items[key] = new_value

    def table_exists(self, table: str) -> bool:
        if not self.available:
            raise StoreUnavailableError("Store is unavailable")
        with self._lock:
            return table in self._tables

    def create_table(self, schema: TableSchema) -> bool:
        if not self.available:
            raise StoreUnavailableError("Store is unavailable")
        with self._lock:
            if schema.name in self._tables:
                return False
            self._schemas[schema.name] = schema
            self._tables[schema.name] = {}
            logger.info(f"Created in-memory table {schema.name}")
            return True

    def schema(self, table: str) -> Optional[TableSchema]:
        return self._schemas.get(table)


class InMemoryLockService(DistributedLockService):
    """Lease table in memory: (lock_name, sort_key) -> (token, expires_at)"""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._lock = threading.Lock()
        self._leases: Dict[Tuple[str, str], Tuple[str, float]] = {}

    def _try_acquire(self, lock_name: str, sort_key: str, token: str) -> bool:
        now = self.clock()
        with self._lock:
            held = self._leases.get((lock_name, sort_key))
            if held is not None and held[1] > now:
                return False
            if held is not None:
                logger.warning(f"Lease on {lock_name} expired, taking over")
            self._leases[(lock_name, sort_key)] = (token, now + self.lease_duration)
            return True

    def _release(self, lease: Lease) -> bool:
        with self._lock:
            held = self._leases.get((lease.lock_name, lease.sort_key))
            if held is None or held[0] != lease.token:
                return False
            del self._leases[(lease.lock_name, lease.sort_key)]
            return True

    def is_held(self, lock_name: str, sort_key: str) -> bool:
        with self._lock:
            held = self._leases.get((lock_name, sort_key))
            return held is not None and held[1] > self.clock()
