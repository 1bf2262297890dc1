"""Stores package initialization"""

from .base import DistributedLockService, Lease, SharedRecordStore
from .memory import InMemoryLockService, InMemoryRecordStore

__all__ = ['DistributedLockService', 'Lease', 'SharedRecordStore',
           'InMemoryLockService', 'InMemoryRecordStore']
