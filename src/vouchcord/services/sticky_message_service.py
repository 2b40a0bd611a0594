"""
StickyMessageService: keeps one message pinned to the bottom of a channel.

A sticky is reposted every time a member writes in its channel, and the
previous copy is deleted so only one is visible. Admins can stop a sticky
without losing its text and start it again later.
"""

from __future__ import annotations

from enum import Enum
from typing import List

import discord

from vouchcord.database.database import Database
from vouchcord.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, UserID
from vouchcord.datatypes.message_datatypes import StickyRecord
from vouchcord.util import discord_utils
from vouchcord.util.logger import get_logger

logger = get_logger("sticky_message_service")


class StickyResult(str, Enum):
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    NOT_FOUND = "not_found"
    STOPPED = "stopped"
    ALREADY_STOPPED = "already_stopped"
    STARTED = "started"
    ALREADY_ACTIVE = "already_active"
    REMOVED = "removed"


class StickyMessageService:
    """Create, stop, start, remove and repost per-channel sticky messages."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def stick(
        self, channel: discord.TextChannel, guild_id: GuildID, author: discord.Member, text: str
    ) -> StickyResult:
        channel_id = ChannelID(channel.id)
        if await self._db.get_sticky(channel_id) is not None:
            return StickyResult.ALREADY_EXISTS

        posted = await channel.send(text)
        await self._db.create_sticky(
            StickyRecord(
                channel_id=channel_id,
                guild_id=guild_id,
                channel_name=discord_utils.channel_display_name(channel),
                message=text,
                created_by=UserID(author.id),
                created_by_name=str(author),
                last_message_id=MessageID(posted.id),
            )
        )
        logger.info("[STICKY] Created sticky in %s (%s) by %s", channel_id, channel.name, author)
        return StickyResult.CREATED

    async def stop(self, channel_id: ChannelID) -> StickyResult:
        sticky = await self._db.get_sticky(channel_id)
        if sticky is None:
            return StickyResult.NOT_FOUND
        if not sticky.is_active:
            return StickyResult.ALREADY_STOPPED

        await self._db.set_sticky_active(channel_id, False)
        logger.info("[STICKY] Stopped sticky in %s", channel_id)
        return StickyResult.STOPPED

    async def start(self, channel: discord.TextChannel) -> StickyResult:
        channel_id = ChannelID(channel.id)
        sticky = await self._db.get_sticky(channel_id)
        if sticky is None:
            return StickyResult.NOT_FOUND
        if sticky.is_active:
            return StickyResult.ALREADY_ACTIVE

        posted = await channel.send(sticky.message)
        await self._db.set_sticky_active(channel_id, True, MessageID(posted.id))
        logger.info("[STICKY] Restarted sticky in %s", channel_id)
        return StickyResult.STARTED

    async def remove(self, channel: discord.TextChannel) -> StickyResult:
        channel_id = ChannelID(channel.id)
        sticky = await self._db.get_sticky(channel_id)
        if sticky is None:
            return StickyResult.NOT_FOUND

        await self._delete_posted_copy(channel, sticky)
        await self._db.delete_sticky(channel_id)
        logger.info("[STICKY] Removed sticky in %s", channel_id)
        return StickyResult.REMOVED

    async def list_for_guild(self, guild_id: GuildID) -> List[StickyRecord]:
        return await self._db.list_stickies(guild_id)

    async def repost(self, channel: discord.TextChannel, trigger_id: MessageID) -> bool:
        """
        Move the channel's sticky below the message that just arrived.

        Nothing happens when the channel has no active sticky or when the
        trigger is the sticky copy itself.

        Returns:
            bool: True if a new copy was posted.
        """
        channel_id = ChannelID(channel.id)
        sticky = await self._db.get_sticky(channel_id)
        if sticky is None or not sticky.is_active:
            return False
        if sticky.last_message_id is not None and sticky.last_message_id == trigger_id:
            return False

        await self._delete_posted_copy(channel, sticky)
        posted = await channel.send(sticky.message)
        await self._db.set_sticky_last_message(channel_id, MessageID(posted.id))
        logger.debug("[STICKY] Reposted sticky in %s as %s", channel_id, posted.id)
        return True

    async def _delete_posted_copy(self, channel: discord.TextChannel, sticky: StickyRecord) -> None:
        if sticky.last_message_id is None:
            return
        try:
            previous = await channel.fetch_message(sticky.last_message_id.to_int())
        except discord.HTTPException as exc:
            logger.warning("[STICKY] Could not fetch previous sticky %s: %s", sticky.last_message_id, exc)
            return
        await discord_utils.safe_delete(previous, reason="(sticky repost)")
