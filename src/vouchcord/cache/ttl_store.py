"""
Key-value store interface used for in-process caches.

Components that cache state (monitored channels, guild prefixes) receive a
store instead of keeping module-level dictionaries, so tests can hand in a
fresh store or a fake clock.
"""

from typing import Any, Callable, Dict, Optional, Protocol, Tuple
import time

from vouchcord.util.logger import get_logger

logger = get_logger("ttl_store")


class KeyValueStore(Protocol):
    """Minimal get/set/delete store keyed by string."""

    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None: ...

    def delete(self, key: str) -> bool: ...


class InMemoryTTLStore:
    """
    Dictionary-backed store with optional per-entry expiry.

    Args:
        clock: Monotonic time source; injectable for tests.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        # key -> (expires_at or None, value)
        self._entries: Dict[str, Tuple[Optional[float], Any]] = {}
        self._clock = clock

    def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None if missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._entries[key]
            logger.debug("[CACHE] Expired key: %s", key)
            return None
        return value

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds is not None else None
        self._entries[key] = (expires_at, value)

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def __len__(self) -> int:
        return len(self._entries)
