"""
Tenant-scoped key/value context store.

Each tenant owns an independent partition guarded by its own re-entrant lock.
Partitions are created on first write under a short registry lock, so work on
different tenants never contends.
"""

import copy
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..utils.error_handling import validate_input
from ..utils.logging import get_logger


class _Missing:
    """Sentinel type returned by ``ContextStore.retrieve`` for absent keys."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


@dataclass
class ContextEntry:
    """A single stored value and the time it was last written."""
    tenant_id: str
    key: str
    value: Any
    last_write_timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tenant_id": self.tenant_id,
            "key": self.key,
            "value": copy.deepcopy(self.value),
            "last_write_timestamp": self.last_write_timestamp,
        }


class _TenantPartition:
    """Entries of one tenant plus the lock that serializes access to them."""

    def __init__(self, tenant_id: str):
        self.tenant_id = tenant_id
        self.lock = threading.RLock()
        self.entries: Dict[str, ContextEntry] = {}
        # Set once the partition is dropped from the store; writers must re-resolve
        self.retired = False


class ContextStore:
    """
    In-memory, per-tenant key/value namespace.

    Values are deep-copied on the way in and on the way out, so neither the
    caller's original object nor a retrieved value aliases stored state.
    Absence is reported through the ``MISSING`` sentinel rather than an
    exception.
    """

    def __init__(self):
        self.logger = get_logger(__name__)
        self._partitions: Dict[str, _TenantPartition] = {}
        self._registry_lock = threading.Lock()

    def _get_partition(self, tenant_id: str, create: bool = False) -> Optional[_TenantPartition]:
        partition = self._partitions.get(tenant_id)
        if partition is not None or not create:
            return partition

        with self._registry_lock:
            partition = self._partitions.get(tenant_id)
            if partition is None:
                partition = _TenantPartition(tenant_id)
                self._partitions[tenant_id] = partition
            return partition

    def store(self, tenant_id: str, key: str, value: Any) -> ContextEntry:
        """Insert or overwrite ``(tenant_id, key)``.

        Args:
            tenant_id: Tenant namespace
            key: Entry key within the tenant
            value: JSON-like payload; stored as a deep copy

        Returns:
            The entry as written

        Raises:
            ValidationError: If tenant_id or key is empty
        """
        validate_input(tenant_id, "tenant", str)
        validate_input(key, "key", str)

        stored_value = copy.deepcopy(value)

        while True:
            partition = self._get_partition(tenant_id, create=True)
            with partition.lock:
                if not partition.retired:
                    entry = ContextEntry(tenant_id=tenant_id, key=key, value=stored_value)
                    partition.entries[key] = entry
                    break

        self.logger.debug(f"Stored context for tenant {tenant_id}: {key}")
        return entry

    def retrieve(self, tenant_id: str, key: str) -> Any:
        """Return a copy of the stored value, or ``MISSING`` when absent."""
        partition = self._get_partition(tenant_id)
        if partition is None:
            return MISSING

        with partition.lock:
            entry = partition.entries.get(key)
            if entry is None:
                return MISSING
            return copy.deepcopy(entry.value)

    def get_entry(self, tenant_id: str, key: str) -> Optional[ContextEntry]:
        """Return a copy of the full entry, or None when absent."""
        partition = self._get_partition(tenant_id)
        if partition is None:
            return None

        with partition.lock:
            entry = partition.entries.get(key)
            if entry is None:
                return None
            return ContextEntry(
                tenant_id=entry.tenant_id,
                key=entry.key,
                value=copy.deepcopy(entry.value),
                last_write_timestamp=entry.last_write_timestamp,
            )

    def clear(self, tenant_id: str) -> int:
        """Remove every entry of ``tenant_id`` and return how many were removed.

        The tenant's partition is dropped, so cleared tenants hold no memory.
        A writer that resolved the partition before the clear sees it retired
        and stores into a fresh one.
        """
        with self._registry_lock:
            partition = self._partitions.pop(tenant_id, None)
        if partition is None:
            return 0

        with partition.lock:
            removed = len(partition.entries)
            partition.entries.clear()
            partition.retired = True

        self.logger.info(f"Cleared {removed} context entries for tenant: {tenant_id}")
        return removed

    def keys(self, tenant_id: str) -> List[str]:
        partition = self._get_partition(tenant_id)
        if partition is None:
            return []
        with partition.lock:
            return list(partition.entries.keys())

    def count(self, tenant_id: str) -> int:
        partition = self._get_partition(tenant_id)
        if partition is None:
            return 0
        with partition.lock:
            return len(partition.entries)

    def tenants(self) -> List[str]:
        """Tenants that currently hold at least one entry."""
        with self._registry_lock:
            partitions = list(self._partitions.values())
        return [p.tenant_id for p in partitions if p.entries]
