"""
Remediation queue storage

Entries are unique per (user_id, item_id, detection_type). Re-running a
detection sweep updates entries in place, so it never creates duplicates.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple
import logging
import threading

from hemisphere.schemas.remediation import (
    ACTIVE_STATUSES,
    RemediationEntry,
    RemediationStatus,
)

logger = logging.getLogger(__name__)

RemediationKey = Tuple[str, str, str]


class RemediationStore(ABC):
    """Persistence port for the remediation queue"""

    @abstractmethod
    def get(self, key: RemediationKey) -> Optional[RemediationEntry]:
        ...

    @abstractmethod
    def upsert(self, entry: RemediationEntry) -> RemediationEntry:
        """
        Insert, or update score/signals/type of the existing entry and reset it to pending
        """

    @abstractmethod
    def dismiss(self, key: RemediationKey, now: datetime) -> bool:
        """
        Move a pending/in-progress entry to dismissed; returns whether it changed
        """

    @abstractmethod
    def list_entries(self, status: Optional[RemediationStatus] = None) -> List[RemediationEntry]:
        ...


class InMemoryRemediationStore(RemediationStore):
    """
    Thread-safe in-process store, constructed and injected by the caller
    """

    def __init__(self, entries: Iterable[RemediationEntry] = ()):
        # Seeded entries keep their stored status
        self._entries: Dict[RemediationKey, RemediationEntry] = {e.key: e for e in entries}
        self._lock = threading.Lock()

    def get(self, key: RemediationKey) -> Optional[RemediationEntry]:
        with self._lock:
            entry = self._entries.get(key)
            return entry.model_copy(deep=True) if entry else None

    def upsert(self, entry: RemediationEntry) -> RemediationEntry:
        with self._lock:
            existing = self._entries.get(entry.key)
            if existing is None:
                stored = entry.model_copy(
                    update={"status": RemediationStatus.PENDING, "resolved_at": None},
                    deep=True,
                )
            else:
                stored = existing.model_copy(
                    update={
                        "zombie_score": entry.zombie_score,
                        "signals": dict(entry.signals),
                        "remediation_type": entry.remediation_type,
                        "status": RemediationStatus.PENDING,
                        "resolved_at": None,
                        "updated_at": entry.updated_at,
                    }
                )
            self._entries[entry.key] = stored
            return stored.model_copy(deep=True)

    def dismiss(self, key: RemediationKey, now: datetime) -> bool:
        with self._lock:
            existing = self._entries.get(key)
            if existing is None or existing.status not in ACTIVE_STATUSES:
                return False
            self._entries[key] = existing.model_copy(
                update={
                    "status": RemediationStatus.DISMISSED,
                    "resolved_at": now,
                    "updated_at": now,
                }
            )
            return True

    def list_entries(self, status: Optional[RemediationStatus] = None) -> List[RemediationEntry]:
        with self._lock:
            entries = [
                e.model_copy(deep=True) for e in self._entries.values()
                if status is None or e.status == status
            ]
        return sorted(entries, key=lambda e: e.key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
