"""
Repository for the sticky_messages table.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

import aiosqlite

from vouchcord.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, UserID
from vouchcord.datatypes.message_datatypes import StickyRecord, utc_now


def _row_to_record(row: aiosqlite.Row) -> StickyRecord:
    return StickyRecord(
        channel_id=ChannelID(row["channel_id"]),
        guild_id=GuildID(row["guild_id"]),
        channel_name=row["channel_name"],
        message=row["message"],
        created_by=UserID(row["created_by"]),
        created_by_name=row["created_by_name"],
        last_message_id=MessageID(row["last_message_id"]) if row["last_message_id"] is not None else None,
        is_active=bool(row["is_active"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]) if row["updated_at"] else None,
    )


class StickyMessageRepository:
    """CRUD for the sticky_messages table. One sticky per channel."""

    async def get(self, conn: aiosqlite.Connection, channel_id: ChannelID) -> Optional[StickyRecord]:
        async with conn.execute(
            "SELECT * FROM sticky_messages WHERE channel_id = ?", (int(channel_id),)
        ) as cursor:
            row = await cursor.fetchone()
        return _row_to_record(row) if row else None

    async def insert(self, conn: aiosqlite.Connection, record: StickyRecord) -> bool:
        """Insert a sticky; returns False if the channel already has one."""
        cursor = await conn.execute(
            """
            INSERT OR IGNORE INTO sticky_messages (
                channel_id, guild_id, channel_name, message, last_message_id,
                is_active, created_by, created_by_name, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                int(record.channel_id),
                int(record.guild_id),
                record.channel_name,
                record.message,
                int(record.last_message_id) if record.last_message_id is not None else None,
                int(record.is_active),
                int(record.created_by),
                record.created_by_name,
                record.created_at.isoformat(),
            ),
        )
        return cursor.rowcount > 0

    async def set_active(
        self,
        conn: aiosqlite.Connection,
        channel_id: ChannelID,
        is_active: bool,
        last_message_id: Optional[MessageID] = None,
    ) -> bool:
        """Start or stop a sticky. A given last_message_id replaces the stored one."""
        cursor = await conn.execute(
            """
            UPDATE sticky_messages
            SET is_active = ?, last_message_id = COALESCE(?, last_message_id), updated_at = ?
            WHERE channel_id = ?
            """,
            (
                int(is_active),
                int(last_message_id) if last_message_id is not None else None,
                utc_now().isoformat(),
                int(channel_id),
            ),
        )
        return cursor.rowcount > 0

    async def set_last_message(
        self, conn: aiosqlite.Connection, channel_id: ChannelID, message_id: MessageID
    ) -> bool:
        cursor = await conn.execute(
            "UPDATE sticky_messages SET last_message_id = ?, updated_at = ? WHERE channel_id = ?",
            (int(message_id), utc_now().isoformat(), int(channel_id)),
        )
        return cursor.rowcount > 0

    async def delete(self, conn: aiosqlite.Connection, channel_id: ChannelID) -> bool:
        cursor = await conn.execute("DELETE FROM sticky_messages WHERE channel_id = ?", (int(channel_id),))
        return cursor.rowcount > 0

    async def list_for_guild(self, conn: aiosqlite.Connection, guild_id: GuildID) -> List[StickyRecord]:
        """Every sticky in a guild, newest first."""
        async with conn.execute(
            "SELECT * FROM sticky_messages WHERE guild_id = ? ORDER BY created_at DESC",
            (int(guild_id),),
        ) as cursor:
            rows = await cursor.fetchall()
        return [_row_to_record(row) for row in rows]
