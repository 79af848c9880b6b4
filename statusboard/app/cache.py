import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from .verdict import HealthState, ProbeVerdict


class Status(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    UNSTABLE = "unstable"
    UNKNOWN = "unknown"

    @classmethod
    def from_state(cls, state: HealthState) -> "Status":
        return _STATE_TO_STATUS[state]


_STATE_TO_STATUS = {
    HealthState.UP: Status.ONLINE,
    HealthState.UNSTABLE: Status.UNSTABLE,
    HealthState.DOWN: Status.OFFLINE,
}


@dataclass(frozen=True)
class CacheEntry:
    status: Status
    recorded_at: float
    verdict: Optional[ProbeVerdict] = None


class HealthCache:
    """Last verdict per target id, reused while younger than the TTL.

    Shared by every overlapping check cycle. The lock only guards the dict
    itself: two cycles can both miss on the same id and both re-probe, and
    the last put wins. Entries are never evicted; stale ones read as absent.
    """

    def __init__(self, ttl_s: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_s = ttl_s
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, target_id: str) -> Optional[CacheEntry]:
        with self._lock:
            entry = self._entries.get(target_id)
        if entry is None or self.clock() - entry.recorded_at >= self.ttl_s:
            return None
        return entry

    def put(self, target_id: str, status: Status, verdict: Optional[ProbeVerdict] = None) -> CacheEntry:
        entry = CacheEntry(status=status, recorded_at=self.clock(), verdict=verdict)
        with self._lock:
            self._entries[target_id] = entry
        return entry

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, target_id: str) -> bool:
        with self._lock:
            return target_id in self._entries
