"""
Repository for the vouches table.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import List, Optional

import aiosqlite

from vouchcord.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, UserID
from vouchcord.datatypes.message_datatypes import VouchRecord


def _row_to_record(row: aiosqlite.Row) -> VouchRecord:
    return VouchRecord(
        message_id=MessageID(row["message_id"]),
        guild_id=GuildID(row["guild_id"]),
        channel_id=ChannelID(row["channel_id"]),
        channel_name=row["channel_name"],
        author_id=UserID(row["author_id"]),
        author_name=row["author_name"],
        author_avatar=row["author_avatar"],
        message=row["message"],
        cleaned_message=row["cleaned_message"],
        vouch_value=row["vouch_value"],
        attachments=json.loads(row["attachments"] or "[]"),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]) if row["updated_at"] else None,
    )


class VouchRepository:
    """CRUD for the vouches table."""

    async def insert(self, conn: aiosqlite.Connection, record: VouchRecord) -> bool:
        """Insert a vouch. Returns False if a vouch for the message already exists."""
        cursor = await conn.execute(
            """
            INSERT OR IGNORE INTO vouches (
                message_id, guild_id, channel_id, channel_name, author_id, author_name,
                author_avatar, message, cleaned_message, vouch_value, attachments,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                int(record.message_id),
                int(record.guild_id),
                int(record.channel_id),
                record.channel_name,
                int(record.author_id),
                record.author_name,
                record.author_avatar,
                record.message,
                record.cleaned_message,
                record.vouch_value,
                json.dumps(record.attachments),
                record.created_at.isoformat(),
                record.updated_at.isoformat() if record.updated_at else None,
            ),
        )
        return cursor.rowcount > 0

    async def get(self, conn: aiosqlite.Connection, message_id: MessageID) -> Optional[VouchRecord]:
        async with conn.execute(
            "SELECT * FROM vouches WHERE message_id = ?", (int(message_id),)
        ) as cursor:
            row = await cursor.fetchone()
        return _row_to_record(row) if row else None

    async def update_content(
        self,
        conn: aiosqlite.Connection,
        message_id: MessageID,
        *,
        message: str,
        cleaned_message: str,
        vouch_value: Optional[str],
        attachments: List[str],
        updated_at: datetime,
    ) -> bool:
        """Replace the text fields of an edited vouch. Returns False if no row matched."""
        cursor = await conn.execute(
            """
            UPDATE vouches
               SET message = ?, cleaned_message = ?, vouch_value = ?, attachments = ?, updated_at = ?
             WHERE message_id = ?
            """,
            (message, cleaned_message, vouch_value, json.dumps(attachments), updated_at.isoformat(), int(message_id)),
        )
        return cursor.rowcount > 0

    async def delete(self, conn: aiosqlite.Connection, message_id: MessageID) -> bool:
        cursor = await conn.execute("DELETE FROM vouches WHERE message_id = ?", (int(message_id),))
        return cursor.rowcount > 0
