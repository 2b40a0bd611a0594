"""
Cache of the channels monitored for vouches and proofs.

Message handlers look channels up on every event, so the enabled sets are
held in a :class:`KeyValueStore` and reloaded from the database once they
are older than the configured TTL. Enable/disable operations update the
cache immediately so a change takes effect before the next reload.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Optional, Set

from vouchcord.cache.ttl_store import InMemoryTTLStore, KeyValueStore
from vouchcord.datatypes.discord_datatypes import ChannelID
from vouchcord.repositories.auto_channel_repo import ChannelKind
from vouchcord.util.logger import get_logger

logger = get_logger("channel_cache")

ChannelLoader = Callable[[ChannelKind], Awaitable[Set[ChannelID]]]

LOADED_AT_KEY = "channels:loaded_at"


def _channels_key(kind: ChannelKind) -> str:
    return f"channels:{kind.value}"


class ChannelCache:
    """
    TTL-refreshed view of the monitored channel sets.

    Args:
        loader: Coroutine returning the enabled channels of one kind.
        ttl_seconds: Age after which :meth:`refresh_if_needed` reloads.
        store: Backing key-value store.
        clock: Monotonic time source.
    """

    def __init__(
        self,
        loader: ChannelLoader,
        ttl_seconds: float,
        store: Optional[KeyValueStore] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._loader = loader
        self._ttl_seconds = ttl_seconds
        self._store: KeyValueStore = store if store is not None else InMemoryTTLStore(clock)
        self._clock = clock
        self._lock = asyncio.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def _channels(self, kind: ChannelKind) -> Set[ChannelID]:
        channels = self._store.get(_channels_key(kind))
        return channels if channels is not None else set()

    def is_stale(self) -> bool:
        loaded_at = self._store.get(LOADED_AT_KEY)
        return loaded_at is None or self._clock() - loaded_at > self._ttl_seconds

    async def load(self) -> None:
        """Reload both channel sets from the loader."""
        vouch_channels, proof_channels = await asyncio.gather(
            self._loader(ChannelKind.VOUCH),
            self._loader(ChannelKind.PROOF),
        )
        self._store.set(_channels_key(ChannelKind.VOUCH), set(vouch_channels))
        self._store.set(_channels_key(ChannelKind.PROOF), set(proof_channels))
        self._store.set(LOADED_AT_KEY, self._clock())
        logger.info(
            "[CHANNEL CACHE] Loaded %d vouch channels, %d proof channels",
            len(vouch_channels),
            len(proof_channels),
        )

    async def refresh_if_needed(self) -> bool:
        """Reload when the cache is older than the TTL. Returns True if a reload happened."""
        if not self.is_stale():
            return False
        async with self._lock:
            # Another task may have reloaded while we waited for the lock
            if not self.is_stale():
                return False
            await self.load()
            return True

    def is_monitored(self, channel_id: ChannelID, kind: ChannelKind) -> bool:
        return ChannelID(channel_id) in self._channels(kind)

    def is_auto_vouch_channel(self, channel_id: ChannelID | int) -> bool:
        return self.is_monitored(ChannelID(channel_id), ChannelKind.VOUCH)

    def is_auto_proof_channel(self, channel_id: ChannelID | int) -> bool:
        return self.is_monitored(ChannelID(channel_id), ChannelKind.PROOF)

    def add(self, channel_id: ChannelID, kind: ChannelKind) -> None:
        channels = set(self._channels(kind))
        channels.add(ChannelID(channel_id))
        self._store.set(_channels_key(kind), channels)

    def remove(self, channel_id: ChannelID, kind: ChannelKind) -> None:
        channels = set(self._channels(kind))
        channels.discard(ChannelID(channel_id))
        self._store.set(_channels_key(kind), channels)
