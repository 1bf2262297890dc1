"""
Global Ref Database

Keeps one global value per ref across multiple servers:
- Compare-and-put updates on a shared record store
- Staleness checks against the shared record
- Distributed leases guarding ref updates
"""

from .core.exceptions import GlobalRefDbError, GlobalRefDbLockError, GlobalRefDbSystemError
from .core.engine import RefConsistencyEngine
from .core.lock_coordinator import RefLockCoordinator
from .core.models import RefKey, RefRecord, ZERO_ID
from .refdb import GlobalRefDatabase

__version__ = "1.0.0"

__all__ = [
    'GlobalRefDatabase',
    'RefConsistencyEngine',
    'RefLockCoordinator',
    'RefKey',
    'RefRecord',
    'ZERO_ID',
    'GlobalRefDbError',
    'GlobalRefDbLockError',
    'GlobalRefDbSystemError',
]
