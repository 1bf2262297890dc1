"""
Configuration manager untuk global ref-db.
File ini membaca environment variables dan menyediakan
konfigurasi default untuk store, lock service dan provisioning.
"""

import logging
import os
from typing import Mapping, Optional
from dotenv import load_dotenv

# Load environment variables dari .env file
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_REFS_DB_TABLE_NAME = "refsDb"
DEFAULT_LOCKS_TABLE_NAME = "lockTable"


class Config:
    """Class untuk manage semua konfigurasi global ref-db"""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        """
        Args:
            environ: Source of settings, default os.environ
        """
        env = os.environ if environ is None else environ
        self._env = env

        # Tables
        self.REFS_DB_TABLE_NAME: str = env.get('REFS_DB_TABLE_NAME') or DEFAULT_REFS_DB_TABLE_NAME
        self.LOCKS_TABLE_NAME: str = env.get('LOCKS_TABLE_NAME') or DEFAULT_LOCKS_TABLE_NAME

        # Redis Configuration
        self.REDIS_URL: Optional[str] = env.get('REDIS_URL') or None
        self.REDIS_HOST: str = env.get('REDIS_HOST', 'localhost')
        self.REDIS_PORT: int = self._int('REDIS_PORT', 6379)
        self.REDIS_DB: int = self._int('REDIS_DB', 0)
        self.STORE_NAMESPACE: str = env.get('STORE_NAMESPACE', 'globalrefdb')

        # Lock Configuration (dalam seconds)
        self.LOCK_WAIT_TIMEOUT: float = self._float('LOCK_WAIT_TIMEOUT', 10.0)
        self.LOCK_LEASE_DURATION: float = self._float('LOCK_LEASE_DURATION', 20.0)
        self.LOCK_RETRY_INTERVAL: float = self._float('LOCK_RETRY_INTERVAL', 0.1)

        # Provisioning
        self.PROVISIONING_TIMEOUT: float = self._float('PROVISIONING_TIMEOUT', 10.0)

        # Logging
        self.LOG_LEVEL: str = env.get('LOG_LEVEL', 'INFO').upper()
        self.LOG_FILE: str = env.get('LOG_FILE', '')

        logger.info(f"global-refdb configuration: {self.summary()}")

    def _int(self, name: str, default: int) -> int:
        raw = self._env.get(name)
        if raw is None or raw == '':
            return default
        try:
            return int(raw)
        except ValueError:
            raise ValueError(f"{name} must be an integer, got {raw!r}")

    def _float(self, name: str, default: float) -> float:
        raw = self._env.get(name)
        if raw is None or raw == '':
            return default
        try:
            return float(raw)
        except ValueError:
            raise ValueError(f"{name} must be a number, got {raw!r}")

    @property
    def endpoint(self) -> str:
        """Redis endpoint yang dipakai (URL override atau host:port/db)"""
        if self.REDIS_URL:
            return self.REDIS_URL
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    def summary(self) -> str:
        return (f"refsDbTableName: {self.REFS_DB_TABLE_NAME}"
                f"|locksTableName: {self.LOCKS_TABLE_NAME}"
                f"|endpoint: {self.endpoint}")

    def display(self):
        """Print semua konfigurasi untuk debugging"""
        print("=== Configuration ===")
        print(f"Refs table: {self.REFS_DB_TABLE_NAME}")
        print(f"Locks table: {self.LOCKS_TABLE_NAME}")
        print(f"Endpoint: {self.endpoint}")
        print(f"Lock wait/lease: {self.LOCK_WAIT_TIMEOUT}s/{self.LOCK_LEASE_DURATION}s")
        print("=" * 30)


# Test configuration saat file dijalankan langsung
if __name__ == "__main__":
    Config().display()
