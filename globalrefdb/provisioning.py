"""
Bootstrap provisioning.
Memastikan lock table dan refs table ada sebelum ref database dipakai.
"""

import logging
import time

from .core.exceptions import StoreUnavailableError
from .core.models import locks_table_schema, refs_table_schema, TableSchema
from .stores.base import SharedRecordStore
from .utils.config import Config

logger = logging.getLogger(__name__)


class BootstrapProvisioner:
    """
    Create backing tables saat process start.

    Timeout saat menunggu table active hanya di-log; host process tetap jalan
    dan table yang belum ready terlihat sebagai store unavailable.
    """

    def __init__(self, store: SharedRecordStore, config: Config, poll_interval: float = 0.2):
        self.store = store
        self.config = config
        self.poll_interval = poll_interval

    def start(self):
        """
        Ensure lock table lalu refs table.

        Returns:
            False jika store tidak bisa dihubungi untuk salah satu table
        """
        ready = True
        for schema in (locks_table_schema(self.config.LOCKS_TABLE_NAME),
                       refs_table_schema(self.config.REFS_DB_TABLE_NAME)):
            try:
                self.ensure_table(schema)
            except StoreUnavailableError:
                logger.error(f"Cannot provision table '{schema.name}'", exc_info=True)
                ready = False
        return ready

    def stop(self):
        pass

    def ensure_table(self, schema: TableSchema) -> bool:
        """
        Create table jika belum ada dan tunggu sampai usable.

        Returns:
            True jika table dibuat oleh call ini
        """
        if self.store.table_exists(schema.name):
            logger.warning(f"Table '{schema.name}' already exists, nothing to do.")
            return False

        logger.warning(f"Attempt to create table '{schema.name}'")
        created = self.store.create_table(schema)
        if not created:
            # Another server created it first
            logger.warning(f"Table '{schema.name}' created concurrently, nothing to do.")
            return False

        logger.warning(f"Wait for table '{schema.name}' creation")
        if self.wait_until_active(schema.name, self.config.PROVISIONING_TIMEOUT):
            logger.warning(f"Table '{schema.name}' successfully created and active")
        else:
            logger.error(f"Timeout when creating table '{schema.name}'")
        return True

    def wait_until_active(self, table: str, timeout: float) -> bool:
        """Poll table_exists sampai true atau timeout"""
        deadline = time.monotonic() + timeout
        while True:
            try:
                if self.store.table_exists(table):
                    return True
            except StoreUnavailableError as e:
                logger.debug(f"Table '{table}' not reachable yet: {e}")
            if time.monotonic() >= deadline:
                return False
            time.sleep(self.poll_interval)
