"""
Repository for the proofs table.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import List, Optional

import aiosqlite

from vouchcord.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, UserID
from vouchcord.datatypes.message_datatypes import ProofRecord


class ProofRepository:
    """CRUD for the proofs table."""

    async def insert(self, conn: aiosqlite.Connection, record: ProofRecord) -> bool:
        """Insert a proof row; duplicates (same message) are skipped and return False."""
        cursor = await conn.execute(
            """
            INSERT OR IGNORE INTO proofs (
                message_id, guild_id, channel_id, channel_name, author_id, author_name,
                author_avatar, message, image_urls, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
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
                json.dumps(record.image_urls),
                record.created_at.isoformat(),
            ),
        )
        return cursor.rowcount > 0

    async def get(self, conn: aiosqlite.Connection, message_id: MessageID) -> Optional[ProofRecord]:
        async with conn.execute(
            "SELECT * FROM proofs WHERE message_id = ?", (int(message_id),)
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return ProofRecord(
            message_id=MessageID(row["message_id"]),
            guild_id=GuildID(row["guild_id"]),
            channel_id=ChannelID(row["channel_id"]),
            channel_name=row["channel_name"],
            author_id=UserID(row["author_id"]),
            author_name=row["author_name"],
            author_avatar=row["author_avatar"],
            image_urls=json.loads(row["image_urls"] or "[]"),
            message=row["message"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    async def delete(self, conn: aiosqlite.Connection, message_id: MessageID) -> bool:
        cursor = await conn.execute("DELETE FROM proofs WHERE message_id = ?", (int(message_id),))
        return cursor.rowcount > 0

    async def get_image_urls_for_channel(self, conn: aiosqlite.Connection, channel_id: ChannelID) -> List[str]:
        """Return every stored image URL for a channel, oldest proof first."""
        async with conn.execute(
            "SELECT image_urls FROM proofs WHERE channel_id = ? ORDER BY created_at",
            (int(channel_id),),
        ) as cursor:
            rows = await cursor.fetchall()
        urls: List[str] = []
        for row in rows:
            urls.extend(json.loads(row[0] or "[]"))
        return urls
