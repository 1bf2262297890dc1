"""
Data model untuk global ref-db.
RefKey, RefRecord dan path encoding yang dipakai oleh record store
dan lock service.
"""

from dataclasses import dataclass
from typing import Any, Optional


# All-zero SHA-1: canonical token for "ref deleted / no commit"
ZERO_ID = "0" * 40

REF_DB_PRIMARY_KEY = "refPath"
REF_DB_VALUE_KEY = "refValue"

LOCK_DB_PRIMARY_KEY = "lockKey"
LOCK_DB_SORT_KEY = "lockValue"


def path_for(owner_id: str, ref_name: str) -> str:
    """
    Encode owner dan ref name menjadi satu storage key.

    The separator is not escaped: owner ids containing "/" can collide
    with ref names, which callers have to avoid.
    """
    return "/" + owner_id + "/" + ref_name


def to_token(value: Any) -> str:
    """Normalize a ref value to its textual token (None means ZERO_ID)."""
    if value is None:
        return ZERO_ID
    return str(value)


@dataclass(frozen=True)
class RefKey:
    """Identifies a ref globally"""
    owner_id: str
    ref_name: str

    @property
    def path(self) -> str:
        return path_for(self.owner_id, self.ref_name)

    def __str__(self):
        return self.path


@dataclass
class RefRecord:
    """Shared record for one RefKey"""
    key: RefKey
    value: str

    @property
    def is_deleted(self) -> bool:
        return self.value == ZERO_ID


@dataclass(frozen=True)
class TableSchema:
    """Key schema untuk satu backing table"""
    name: str
    partition_key: str
    sort_key: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'partition_key': self.partition_key,
            'sort_key': self.sort_key,
        }


def refs_table_schema(table_name: str) -> TableSchema:
    return TableSchema(name=table_name, partition_key=REF_DB_PRIMARY_KEY)


def locks_table_schema(table_name: str) -> TableSchema:
    return TableSchema(
        name=table_name,
        partition_key=LOCK_DB_PRIMARY_KEY,
        sort_key=LOCK_DB_SORT_KEY
    )
