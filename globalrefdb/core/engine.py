"""
Ref consistency engine.
Staleness detection dan compare-and-swap updates di atas SharedRecordStore.

Write path (compare_and_put) selalu raise jika gagal; advisory reads
(exists, get) log error dan return hasil kosong.
"""

import logging
from typing import Any, Optional

from ..stores.base import SharedRecordStore
from ..utils.metrics import MetricsCollector, metrics as default_metrics
from .exceptions import (
    ConditionFailedError,
    GlobalRefDbLockError,
    GlobalRefDbSystemError,
)
from .models import RefKey, RefRecord, to_token

logger = logging.getLogger(__name__)


class RefConsistencyEngine:
    """
    Shared ref records dengan optimistic concurrency.

    Satu record per RefKey, disimpan dengan key = RefKey.path.
    Record hanya berubah melalui conditional write yang menyebut
    value sebelumnya; tidak ada blind overwrite.
    """

    def __init__(self, store: SharedRecordStore, table: str,
                 metrics: Optional[MetricsCollector] = None):
        """
        Args:
            store: Shared record store
            table: Nama refs table
            metrics: Metrics collector, default singleton
        """
        self.store = store
        self.table = table
        self.metrics = metrics or default_metrics

    def is_up_to_date(self, key: RefKey, local_value: Any) -> bool:
        """
        Check apakah local value masih sama dengan shared record.

        Returns:
            True jika record belum ada atau value sama persis

        Raises:
            GlobalRefDbLockError: jika shared record tidak bisa dibaca
        """
        local = to_token(local_value)
        try:
            stored = self.store.read(self.table, key.path)
        except Exception as e:
            self.metrics.record_staleness_check('error')
            raise GlobalRefDbLockError(key.owner_id, key.ref_name,
                                       f"Cannot check staleness of {key.path}: {e}") from e

        if stored is None:
            self.metrics.record_staleness_check('up_to_date')
            return True

        up_to_date = stored == local
        if not up_to_date:
            logger.warning(f"{key.owner_id}:{key.ref_name} is out of sync: "
                           f"local={local} shared={stored}")
        self.metrics.record_staleness_check('up_to_date' if up_to_date else 'stale')
        return up_to_date

    def compare_and_put(self, key: RefKey, expected: Any, new_value: Any) -> bool:
        """
        Replace shared value only if masih sama dengan expected.

        None (untuk expected atau new_value) berarti ZERO_ID. Key yang belum
        ada menerima expected apapun.

        Returns:
            True, selalu; conflict tidak pernah dilaporkan sebagai False

        Raises:
            GlobalRefDbSystemError: conflict atau store error
        """
        path = key.path
        current = to_token(expected)
        new = to_token(new_value)

        try:
            self.store.conditional_write(self.table, path, current, new)
        except ConditionFailedError as e:
            self.metrics.record_compare_and_put('conflict')
            raise GlobalRefDbSystemError(
                f"Conditional Check Failure when updating refPath {path}. "
                f"expected: {current} New: {new}",
                path, current, new
            ) from e
        except Exception as e:
            self.metrics.record_compare_and_put('error')
            raise GlobalRefDbSystemError(
                f"Error updating refPath {path}. expected: {current} new: {new}",
                path, current, new
            ) from e

        self.metrics.record_compare_and_put('success')
        logger.debug(f"Updated path for {key.owner_id}. Current: {current} New: {new}")
        return True

    def exists(self, key: RefKey) -> bool:
        """Best-effort existence check; errors return False"""
        try:
            if self.store.read(self.table, key.path) is None:
                logger.debug(f"ref '{key.path}' does not exist in shared store")
                return False
            return True
        except Exception:
            self.metrics.record_advisory_read_error('exists')
            logger.error(f"Could not check for '{key.path}' existence", exc_info=True)
        return False

    def get(self, key: RefKey) -> Optional[str]:
        """Best-effort read; errors return None"""
        record = self.get_record(key)
        return record.value if record is not None else None

    def get_record(self, key: RefKey) -> Optional[RefRecord]:
        try:
            value = self.store.read(self.table, key.path)
        except Exception:
            self.metrics.record_advisory_read_error('get')
            logger.error(f"Cannot get value for {key.path}", exc_info=True)
            return None
        if value is None:
            return None
        return RefRecord(key, value)

    def remove(self, owner_id: str) -> None:
        """
        Remove semua refs milik owner.

        Not supported: record keys are full ref paths, so the store cannot
        enumerate refs by owner. Records of a removed owner stay in the store.
        """
        logger.warning(f"Removing refs of {owner_id} is not supported, "
                       f"shared records for {owner_id} are left in place")
