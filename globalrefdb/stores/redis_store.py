"""
Redis backend untuk shared record store dan lock service.

Layout per namespace:
- {namespace}:tables               hash, table name -> schema JSON
- {namespace}:table:{table}        hash, record key -> value
- {namespace}:lock:{table}:{name}:{sort_key}   lease token, dengan PX expiry

Conditional writes dan lease acquisition jalan sebagai Lua scripts supaya
atomic per key. Semua keys dari satu operation harus berada di node yang sama
(single instance atau hash-tagged namespace untuk Redis Cluster).
"""

import json
import logging
from typing import Optional

import redis

from ..core.exceptions import (
    ConditionFailedError,
    LockServiceError,
    StoreUnavailableError,
)
from ..core.models import TableSchema
from .base import DistributedLockService, Lease, SharedRecordStore

logger = logging.getLogger(__name__)

_READ_SCRIPT = """
if redis.call('HEXISTS', KEYS[1], ARGV[1]) == 0 then
    return redis.error_reply('TABLE_NOT_FOUND ' .. ARGV[1])
end
return redis.call('HGET', KEYS[2], ARGV[2])
"""

_CONDITIONAL_WRITE_SCRIPT = """
if redis.call('HEXISTS', KEYS[1], ARGV[1]) == 0 then
    return redis.error_reply('TABLE_NOT_FOUND ' .. ARGV[1])
end
local current = redis.call('HGET', KEYS[2], ARGV[2])
if current and current ~= ARGV[3] then
    return 0
end
redis.call('HSET', KEYS[2], ARGV[2], ARGV[4])
return 1
"""

_ACQUIRE_SCRIPT = """
if redis.call('HEXISTS', KEYS[1], ARGV[1]) == 0 then
    return redis.error_reply('TABLE_NOT_FOUND ' .. ARGV[1])
end
if redis.call('SET', KEYS[2], ARGV[2], 'NX', 'PX', ARGV[3]) then
    return 1
end
return 0
"""

_RELEASE_SCRIPT = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
end
return 0
"""


def _decode(value):
    if isinstance(value, bytes):
        return value.decode()
    return value


class RedisKeys:
    """Key naming dalam satu namespace"""

    def __init__(self, namespace: str):
        self.namespace = namespace

    @property
    def registry(self) -> str:
        return f"{self.namespace}:tables"

    def table(self, table: str) -> str:
        return f"{self.namespace}:table:{table}"

    def lease(self, table: str, lock_name: str, sort_key: str) -> str:
        return f"{self.namespace}:lock:{table}:{lock_name}:{sort_key}"


class RedisRecordStore(SharedRecordStore):
    """SharedRecordStore di atas Redis hashes"""

    def __init__(self, client: redis.Redis, namespace: str = "globalrefdb"):
        self.client = client
        self.keys = RedisKeys(namespace)
        self._read = client.register_script(_READ_SCRIPT)
        self._conditional_write = client.register_script(_CONDITIONAL_WRITE_SCRIPT)

    def read(self, table: str, key: str) -> Optional[str]:
        try:
            value = self._read(
                keys=[self.keys.registry, self.keys.table(table)],
                args=[table, key]
            )
        except redis.exceptions.RedisError as e:
            raise StoreUnavailableError(f"Cannot read {table}[{key}]: {e}") from e
        return _decode(value)

    def conditional_write(self, table: str, key: str, expected: str, new_value: str) -> None:
        try:
            written = self._conditional_write(
                keys=[self.keys.registry, self.keys.table(table)],
                args=[table, key, expected, new_value]
            )
        except redis.exceptions.RedisError as e:
            raise StoreUnavailableError(f"Cannot write {table}[{key}]: {e}") from e

        if not written:
            raise ConditionFailedError(table, key, expected)

    def table_exists(self, table: str) -> bool:
        try:
            return bool(self.client.hexists(self.keys.registry, table))
        except redis.exceptions.RedisError as e:
            raise StoreUnavailableError(f"Cannot describe table {table}: {e}") from e

    def create_table(self, schema: TableSchema) -> bool:
        try:
            created = self.client.hsetnx(
                self.keys.registry, schema.name, json.dumps(schema.to_dict())
            )
        except redis.exceptions.RedisError as e:
            raise StoreUnavailableError(f"Cannot create table {schema.name}: {e}") from e
        return bool(created)


class RedisLockService(DistributedLockService):
    """
    DistributedLockService dengan Redis SET NX PX.

    Setiap lease punya random token; release hanya menghapus key jika token
    masih sama (compare-and-delete).
    """

    def __init__(self, client: redis.Redis, table: str,
                 namespace: str = "globalrefdb", **kwargs):
        super().__init__(**kwargs)
        self.client = client
        self.table = table
        self.keys = RedisKeys(namespace)
        self._acquire = client.register_script(_ACQUIRE_SCRIPT)
        self._release_script = client.register_script(_RELEASE_SCRIPT)

    def _try_acquire(self, lock_name: str, sort_key: str, token: str) -> bool:
        try:
            granted = self._acquire(
                keys=[self.keys.registry, self.keys.lease(self.table, lock_name, sort_key)],
                args=[self.table, token, int(self.lease_duration * 1000)]
            )
        except redis.exceptions.RedisError as e:
            raise LockServiceError(f"Cannot acquire lock '{lock_name}': {e}") from e
        return bool(granted)

    def _release(self, lease: Lease) -> bool:
        try:
            deleted = self._release_script(
                keys=[self.keys.lease(self.table, lease.lock_name, lease.sort_key)],
                args=[lease.token]
            )
        except redis.exceptions.RedisError as e:
            raise LockServiceError(f"Cannot release lock '{lease.lock_name}': {e}") from e
        return bool(deleted)
