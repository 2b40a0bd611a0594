"""
Repository for the auto_channels table (channels monitored for vouches or proofs).
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Set

import aiosqlite

from vouchcord.datatypes.discord_datatypes import ChannelID, GuildID


class ChannelKind(str, Enum):
    VOUCH = "vouch"
    PROOF = "proof"


class AutoChannelRepository:
    """CRUD for the auto_channels table."""

    async def get_enabled(self, conn: aiosqlite.Connection, kind: ChannelKind) -> Set[ChannelID]:
        async with conn.execute(
            "SELECT channel_id FROM auto_channels WHERE kind = ? AND is_enabled = 1",
            (kind.value,),
        ) as cursor:
            rows = await cursor.fetchall()
        return {ChannelID(row[0]) for row in rows}

    async def is_enabled(self, conn: aiosqlite.Connection, channel_id: ChannelID, kind: ChannelKind) -> Optional[bool]:
        """Return the enabled flag, or None when the channel was never configured."""
        async with conn.execute(
            "SELECT is_enabled FROM auto_channels WHERE channel_id = ? AND kind = ?",
            (int(channel_id), kind.value),
        ) as cursor:
            row = await cursor.fetchone()
        return bool(row[0]) if row else None

    async def set_enabled(
        self,
        conn: aiosqlite.Connection,
        guild_id: GuildID,
        channel_id: ChannelID,
        channel_name: str,
        kind: ChannelKind,
        enabled: bool,
    ) -> None:
        await conn.execute(
            """
            INSERT INTO auto_channels (channel_id, kind, guild_id, channel_name, is_enabled)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(channel_id, kind) DO UPDATE SET
                is_enabled = excluded.is_enabled,
                channel_name = excluded.channel_name,
                updated_at = CURRENT_TIMESTAMP
            """,
            (int(channel_id), kind.value, int(guild_id), channel_name, int(enabled)),
        )
