"""
Repository for the guild_prefixes table.
"""

from __future__ import annotations

from typing import Optional

import aiosqlite

from vouchcord.datatypes.discord_datatypes import GuildID, UserID


class GuildPrefixRepository:
    """CRUD for the guild_prefixes table."""

    async def get(self, conn: aiosqlite.Connection, guild_id: GuildID) -> Optional[str]:
        async with conn.execute(
            "SELECT prefix FROM guild_prefixes WHERE guild_id = ?", (int(guild_id),)
        ) as cursor:
            row = await cursor.fetchone()
        return row[0] if row else None

    async def upsert(
        self, conn: aiosqlite.Connection, guild_id: GuildID, prefix: str, updated_by: Optional[UserID] = None
    ) -> None:
        await conn.execute(
            """
            INSERT INTO guild_prefixes (guild_id, prefix, updated_by)
            VALUES (?, ?, ?)
            ON CONFLICT(guild_id) DO UPDATE SET
                prefix = excluded.prefix,
                updated_by = excluded.updated_by,
                updated_at = CURRENT_TIMESTAMP
            """,
            (int(guild_id), prefix, int(updated_by) if updated_by is not None else None),
        )
