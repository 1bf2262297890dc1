"""Core package initialization"""

from .engine import RefConsistencyEngine
from .lock_coordinator import RefLockCoordinator
from .models import RefKey, RefRecord, ZERO_ID, path_for, to_token

__all__ = ['RefConsistencyEngine', 'RefLockCoordinator', 'RefKey', 'RefRecord',
           'ZERO_ID', 'path_for', 'to_token']
