"""
Global ref database.
Menggabungkan RefConsistencyEngine dan RefLockCoordinator menjadi satu
entry point, plus wiring ke Redis dari Config.
"""

import logging
import threading
from typing import Any, Optional

import redis

from .core.engine import RefConsistencyEngine
from .core.exceptions import GlobalRefDbSystemError
from .core.lock_coordinator import RefLockCoordinator
from .core.models import RefKey, to_token
from .stores.base import DistributedLockService, Lease, SharedRecordStore
from .stores.redis_store import RedisLockService, RedisRecordStore
from .utils.config import Config

logger = logging.getLogger(__name__)


class GlobalRefDatabase:
    """
    Global ref database untuk satu server.

    Flow untuk publish ref value baru:
    1. Acquire lease untuk ref path
    2. Re-validate local value terhadap shared record
    3. Compare-and-put
    4. Release lease (selalu, juga saat error)
    """

    def __init__(self, engine: RefConsistencyEngine, coordinator: RefLockCoordinator):
        self.engine = engine
        self.coordinator = coordinator

    def is_up_to_date(self, key: RefKey, local_value: Any) -> bool:
        return self.engine.is_up_to_date(key, local_value)

    def compare_and_put(self, key: RefKey, expected: Any, new_value: Any) -> bool:
        return self.engine.compare_and_put(key, expected, new_value)

    def exists(self, key: RefKey) -> bool:
        return self.engine.exists(key)

    def get(self, key: RefKey) -> Optional[str]:
        return self.engine.get(key)

    def remove(self, owner_id: str) -> None:
        self.engine.remove(owner_id)

    def lock_ref(self, owner_id: str, ref_name: str,
                 interrupt: Optional[threading.Event] = None) -> Lease:
        return self.coordinator.acquire(RefKey(owner_id, ref_name), interrupt=interrupt)

    def update_ref(self, key: RefKey, expected: Any, new_value: Any,
                   interrupt: Optional[threading.Event] = None) -> bool:
        """
        Publish new_value untuk key di bawah lease.

        Raises:
            GlobalRefDbLockError: lease tidak didapat atau staleness tidak bisa dicek
            GlobalRefDbSystemError: expected sudah stale, atau write conflict/error
        """
        with self.coordinator.acquire(key, interrupt=interrupt):
            if not self.engine.is_up_to_date(key, expected):
                current, new = to_token(expected), to_token(new_value)
                raise GlobalRefDbSystemError(
                    f"Ref {key.path} is out of sync. expected: {current} new: {new}",
                    key.path, current, new
                )
            return self.engine.compare_and_put(key, expected, new_value)


def create_redis_client(config: Config) -> redis.Redis:
    """Build Redis client dari config (URL override atau host/port/db)"""
    if config.REDIS_URL:
        return redis.Redis.from_url(config.REDIS_URL, decode_responses=True)
    return redis.Redis(
        host=config.REDIS_HOST,
        port=config.REDIS_PORT,
        db=config.REDIS_DB,
        decode_responses=True
    )


def create_stores(config: Config, client: redis.Redis):
    """
    Returns:
        Tuple (SharedRecordStore, DistributedLockService) untuk Redis
    """
    store = RedisRecordStore(client, namespace=config.STORE_NAMESPACE)
    lock_service = RedisLockService(
        client,
        table=config.LOCKS_TABLE_NAME,
        namespace=config.STORE_NAMESPACE,
        wait_timeout=config.LOCK_WAIT_TIMEOUT,
        lease_duration=config.LOCK_LEASE_DURATION,
        retry_interval=config.LOCK_RETRY_INTERVAL
    )
    return store, lock_service


def build_ref_database(config: Config, store: SharedRecordStore,
                       lock_service: DistributedLockService) -> GlobalRefDatabase:
    logger.info(f"Shared ref-db engine: {type(store).__name__}")
    engine = RefConsistencyEngine(store, config.REFS_DB_TABLE_NAME)
    coordinator = RefLockCoordinator(lock_service)
    return GlobalRefDatabase(engine, coordinator)
