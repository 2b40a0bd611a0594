"""
PrefixService: per-guild text command prefix with a short-lived cache.
"""

from __future__ import annotations

from typing import Optional

from vouchcord.cache.ttl_store import InMemoryTTLStore, KeyValueStore
from vouchcord.database.database import Database
from vouchcord.datatypes.discord_datatypes import GuildID, UserID
from vouchcord.util.logger import get_logger

logger = get_logger("prefix_service")

MAX_PREFIX_LENGTH = 5


def validate_prefix(prefix: str) -> str:
    """
    Check a requested prefix and return it unchanged.

    Raises:
        ValueError: If the prefix is empty, longer than five characters, or contains whitespace.
    """
    if not prefix:
        raise ValueError("Prefix cannot be empty.")
    if len(prefix) > MAX_PREFIX_LENGTH:
        raise ValueError(f"Prefix must be {MAX_PREFIX_LENGTH} characters or less.")
    if any(ch.isspace() for ch in prefix):
        raise ValueError("Prefix cannot contain spaces.")
    return prefix


class PrefixService:
    """
    Resolve and change guild prefixes.

    Args:
        db: Database used for storage.
        default_prefix: Prefix for guilds that never set one.
        store: Cache for resolved prefixes.
        ttl_seconds: Lifetime of a cached prefix.
    """

    def __init__(
        self,
        db: Database,
        default_prefix: str,
        store: Optional[KeyValueStore] = None,
        ttl_seconds: float = 60.0,
    ) -> None:
        self._db = db
        self._default_prefix = default_prefix
        self._store: KeyValueStore = store if store is not None else InMemoryTTLStore()
        self._ttl_seconds = ttl_seconds

    @property
    def default_prefix(self) -> str:
        return self._default_prefix

    async def get_prefix(self, guild_id: GuildID) -> str:
        key = f"prefix:{guild_id}"
        cached = self._store.get(key)
        if cached is not None:
            return cached

        try:
            prefix = await self._db.get_prefix(guild_id) or self._default_prefix
        except Exception as exc:
            logger.error("[PREFIX] Failed to load prefix for guild %s: %s", guild_id, exc)
            return self._default_prefix

        self._store.set(key, prefix, self._ttl_seconds)
        return prefix

    async def set_prefix(self, guild_id: GuildID, prefix: str, updated_by: Optional[UserID] = None) -> str:
        """
        Validate and store a new prefix.

        Raises:
            ValueError: If the prefix is invalid (see :func:`validate_prefix`).
        """
        validate_prefix(prefix)
        await self._db.set_prefix(guild_id, prefix, updated_by)
        self._store.set(f"prefix:{guild_id}", prefix, self._ttl_seconds)
        logger.info("[PREFIX] Prefix changed to %r in guild %s by %s", prefix, guild_id, updated_by)
        return prefix
