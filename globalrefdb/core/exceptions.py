"""Global ref-db exception classes."""

from typing import Optional


class GlobalRefDbError(Exception):
    """Base exception for all global ref-db errors."""
    pass


class GlobalRefDbLockError(GlobalRefDbError):
    """
    Raised when a lease cannot be acquired or the staleness of a ref
    cannot be determined.
    """

    def __init__(self, owner_id: str, ref_name: str, message: Optional[str] = None):
        super().__init__(message or f"Unable to lock ref {ref_name} of {owner_id}")
        self.owner_id = owner_id
        self.ref_name = ref_name


class GlobalRefDbSystemError(GlobalRefDbError):
    """Raised when a conditional write on the shared ref record fails."""

    def __init__(self, message: str, path: str, expected: str, new_value: str):
        super().__init__(message)
        self.path = path
        self.expected = expected
        self.new_value = new_value


class CollaboratorError(Exception):
    """Base exception for errors reported by the record store or lock service."""
    pass


class StoreError(CollaboratorError):
    """Raised when the shared record store fails."""
    pass


class ConditionFailedError(StoreError):
    """Raised when a conditional write precondition does not hold."""

    def __init__(self, table: str, key: str, expected: str):
        super().__init__(f"Condition failed on {table}[{key}]: expected {expected}")
        self.table = table
        self.key = key
        self.expected = expected


class StoreUnavailableError(StoreError):
    """Raised when the store (or one of its tables) cannot serve the request."""
    pass


class LockServiceError(CollaboratorError):
    """Raised when lock service operations fail."""
    pass


class LockNotGrantedError(LockServiceError):
    """Raised when a lease is still held by someone else after the wait budget."""

    def __init__(self, lock_name: str, waited: float):
        super().__init__(f"Lock '{lock_name}' not granted after {waited:.3f}s")
        self.lock_name = lock_name
        self.waited = waited


class LockInterruptedError(LockServiceError):
    """Raised when the wait for a lease is interrupted."""

    def __init__(self, lock_name: str):
        super().__init__(f"Interrupted while waiting for lock '{lock_name}'")
        self.lock_name = lock_name
