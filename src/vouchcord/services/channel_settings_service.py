"""
ChannelSettingsService: turns auto-vouch and auto-proof monitoring on and off.

Each change is written to the database and mirrored into the channel cache
so the listener sees it on the very next message.
"""

from __future__ import annotations

from enum import Enum

from vouchcord.cache.channel_cache import ChannelCache
from vouchcord.database.database import Database
from vouchcord.datatypes.discord_datatypes import ChannelID, GuildID
from vouchcord.repositories.auto_channel_repo import ChannelKind
from vouchcord.util.logger import get_logger

logger = get_logger("channel_settings_service")


class ToggleResult(str, Enum):
    ENABLED = "enabled"
    REENABLED = "reenabled"
    ALREADY_ENABLED = "already_enabled"
    DISABLED = "disabled"
    NOT_ENABLED = "not_enabled"


class ChannelSettingsService:
    """Enable or disable monitoring of a channel for one record kind."""

    def __init__(self, db: Database, cache: ChannelCache) -> None:
        self._db = db
        self._cache = cache

    async def enable(
        self, guild_id: GuildID, channel_id: ChannelID, channel_name: str, kind: ChannelKind
    ) -> ToggleResult:
        current = await self._db.get_channel_enabled(channel_id, kind)
        if current:
            return ToggleResult.ALREADY_ENABLED

        await self._db.set_channel_enabled(guild_id, channel_id, channel_name, kind, True)
        self._cache.add(channel_id, kind)

        result = ToggleResult.ENABLED if current is None else ToggleResult.REENABLED
        logger.info(
            "[CHANNEL SETTINGS] Auto-%s %s for channel %s (%s) in guild %s",
            kind.value, result.value, channel_name, channel_id, guild_id,
        )
        return result

    async def disable(
        self, guild_id: GuildID, channel_id: ChannelID, channel_name: str, kind: ChannelKind
    ) -> ToggleResult:
        current = await self._db.get_channel_enabled(channel_id, kind)
        if not current:
            return ToggleResult.NOT_ENABLED

        await self._db.set_channel_enabled(guild_id, channel_id, channel_name, kind, False)
        self._cache.remove(channel_id, kind)
        logger.info("[CHANNEL SETTINGS] Auto-%s disabled for channel %s (%s)", kind.value, channel_name, channel_id)
        return ToggleResult.DISABLED
