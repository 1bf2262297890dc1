"""
Ref lock coordinator.
Mutual exclusion antar servers untuk satu ref path.
"""

import logging
import threading
from typing import Optional

from ..stores.base import DistributedLockService, Lease
from ..utils.metrics import MetricsCollector, measure_time, metrics as default_metrics
from .exceptions import (
    GlobalRefDbLockError,
    LockInterruptedError,
    LockNotGrantedError,
)
from .models import RefKey

logger = logging.getLogger(__name__)


class _CoordinatedLease(Lease):
    """Lease yang update leases_held gauge saat released"""

    def __init__(self, lease: Lease, key: RefKey, metrics: MetricsCollector):
        super().__init__(lease.service, lease.lock_name, lease.sort_key,
                         lease.token, lease.acquired_at)
        self.key = key
        self._metrics = metrics

    def release(self):
        was_held = not self.released
        try:
            super().release()
        except Exception as e:
            raise GlobalRefDbLockError(self.key.owner_id, self.key.ref_name,
                                       f"Cannot release lock for {self.key.path}: {e}") from e
        if was_held:
            self._metrics.leases_held.dec()


class RefLockCoordinator:
    """
    Acquire leases scoped ke ref path.

    Lock name dan sort key keduanya RefKey.path, jadi lease dan record untuk
    ref yang sama memakai encoded path yang sama di namespace yang berbeda.
    Release adalah tanggung jawab caller (pakai `with`); tidak ada timer.
    """

    def __init__(self, lock_service: DistributedLockService,
                 metrics: Optional[MetricsCollector] = None):
        self.lock_service = lock_service
        self.metrics = metrics or default_metrics

    def acquire(self, key: RefKey, interrupt: Optional[threading.Event] = None) -> Lease:
        """
        Block sampai lease untuk key granted.

        Args:
            key: Ref yang di-lock
            interrupt: Event yang, jika di-set, menghentikan wait

        Raises:
            GlobalRefDbLockError: lease denied, interrupted, atau lock service error
        """
        path = key.path
        timer = measure_time()
        try:
            with timer:
                lease = self.lock_service.acquire(path, path, interrupt=interrupt)
        except LockInterruptedError as e:
            self.metrics.record_lock_acquisition('interrupted', timer.elapsed)
            logger.error(f"Received interrupted signal when trying to acquire lock for {path}",
                         exc_info=True)
            raise GlobalRefDbLockError(key.owner_id, key.ref_name, str(e)) from e
        except LockNotGrantedError as e:
            self.metrics.record_lock_acquisition('denied', timer.elapsed)
            logger.error(f"Failed to acquire lock for {path}", exc_info=True)
            raise GlobalRefDbLockError(key.owner_id, key.ref_name, str(e)) from e
        except Exception as e:
            self.metrics.record_lock_acquisition('error', timer.elapsed)
            logger.error(f"Lock service error for {path}", exc_info=True)
            raise GlobalRefDbLockError(key.owner_id, key.ref_name, str(e)) from e

        self.metrics.record_lock_acquisition('acquired', timer.elapsed)
        logger.debug(f"Acquired lock for {path}")
        self.metrics.leases_held.inc()
        return _CoordinatedLease(lease, key, self.metrics)
