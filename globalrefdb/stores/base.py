"""
Abstract collaborators yang dipakai oleh core:
- SharedRecordStore: point reads dan conditional point writes
- DistributedLockService: exclusive named leases dengan bounded wait
"""

import logging
import threading
import time
import uuid
from abc import ABC, abstractmethod
from typing import Callable, Optional

from ..core.exceptions import LockInterruptedError, LockNotGrantedError
from ..core.models import TableSchema

logger = logging.getLogger(__name__)


class SharedRecordStore(ABC):
    """Key-value store dengan conditional writes, shared oleh semua servers."""

    @abstractmethod
    def read(self, table: str, key: str) -> Optional[str]:
        """
        Read value untuk key.

        Returns:
            Stored value, atau None jika key tidak ada

        Raises:
            StoreUnavailableError: store atau table tidak bisa diakses
        """

    @abstractmethod
    def conditional_write(self, table: str, key: str, expected: str, new_value: str) -> None:
        """
        Set new_value untuk key only if key absent OR stored value == expected.

        Raises:
            ConditionFailedError: precondition tidak terpenuhi
            StoreUnavailableError: store atau table tidak bisa diakses
        """

    @abstractmethod
    def table_exists(self, table: str) -> bool:
        """Check apakah table sudah ada dan usable"""

    @abstractmethod
    def create_table(self, schema: TableSchema) -> bool:
        """
        Create table jika belum ada.

        Returns:
            True jika table baru dibuat, False jika sudah ada
        """


class Lease:
    """
    Exclusive ownership of a named critical section.

    Dipakai sebagai context manager supaya release terjadi di semua exit path:

        with lock_service.acquire(name, sort_key):
            ...
    """

    def __init__(self, service: 'DistributedLockService', lock_name: str,
                 sort_key: str, token: str, acquired_at: float):
        self.service = service
        self.lock_name = lock_name
        self.sort_key = sort_key
        self.token = token
        self.acquired_at = acquired_at
        self.released = False

    def release(self):
        """Release lease ke lock service"""
        self.service.release(self)
        self.released = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.release()
            return False

        # Critical section already failed: keep its exception
        try:
            self.release()
        except Exception:
            logger.error(f"Cannot release {self} after {exc_type.__name__}", exc_info=True)
        return False

    def __repr__(self):
        state = "released" if self.released else "held"
        return f"Lease({self.lock_name}, {self.sort_key}, {state})"


class DistributedLockService(ABC):
    """
    Lock service dengan bounded wait.

    Subclass hanya implement satu attempt (_try_acquire) dan release (_release);
    loop retry, timeout dan interruption ada di sini.
    """

    def __init__(self,
                 wait_timeout: float = 10.0,
                 lease_duration: float = 20.0,
                 retry_interval: float = 0.1,
                 clock: Callable[[], float] = time.monotonic):
        """
        Args:
            wait_timeout: Maximum waktu menunggu lease (seconds)
            lease_duration: Lease expiry jika tidak di-release (seconds)
            retry_interval: Interval antar attempts (seconds)
            clock: Monotonic clock, injectable untuk tests
        """
        self.wait_timeout = wait_timeout
        self.lease_duration = lease_duration
        self.retry_interval = retry_interval
        self.clock = clock

    @abstractmethod
    def _try_acquire(self, lock_name: str, sort_key: str, token: str) -> bool:
        """Single non-blocking attempt. Returns True jika lease granted."""

    @abstractmethod
    def _release(self, lease: Lease) -> bool:
        """Release lease. Returns False jika lease sudah tidak dimiliki token ini."""

    def acquire(self, lock_name: str, sort_key: str,
                interrupt: Optional[threading.Event] = None) -> Lease:
        """
        Block sampai lease granted, denied, atau interrupted.

        Raises:
            LockNotGrantedError: wait budget habis
            LockInterruptedError: interrupt event di-set selama menunggu
            LockServiceError: lock service error
        """
        token = uuid.uuid4().hex
        start = self.clock()
        deadline = start + self.wait_timeout

        while True:
            if interrupt is not None and interrupt.is_set():
                raise LockInterruptedError(lock_name)

            if self._try_acquire(lock_name, sort_key, token):
                return Lease(self, lock_name, sort_key, token, acquired_at=self.clock())

            remaining = deadline - self.clock()
            if remaining <= 0:
                raise LockNotGrantedError(lock_name, self.clock() - start)

            pause = min(self.retry_interval, remaining)
            if interrupt is not None:
                if interrupt.wait(pause):
                    raise LockInterruptedError(lock_name)
            else:
                time.sleep(pause)

    def release(self, lease: Lease) -> None:
        if not self._release(lease):
            logger.warning(f"{lease} was already released or has expired")
