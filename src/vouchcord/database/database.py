"""
Central database coordinator.

The Database class owns a :class:`ConnectionManager` and routes every
operation to the matching repository, wrapping writes in a serialised
transaction. Repositories stay connection-agnostic.

Lifecycle:
    1. ``await database.initialize()`` at startup
    2. call the record and settings methods
    3. ``await database.shutdown()`` at exit
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import List, Optional, Set

from vouchcord.configuration.app_configuration import app_config
from vouchcord.database.db_connection import ConnectionManager
from vouchcord.database.db_schema import SchemaManager
from vouchcord.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, UserID
from vouchcord.datatypes.message_datatypes import ProofRecord, StickyRecord, VouchRecord
from vouchcord.repositories.auto_channel_repo import AutoChannelRepository, ChannelKind
from vouchcord.repositories.guild_prefix_repo import GuildPrefixRepository
from vouchcord.repositories.proof_repo import ProofRepository
from vouchcord.repositories.sticky_message_repo import StickyMessageRepository
from vouchcord.repositories.vouch_repo import VouchRepository
from vouchcord.util.logger import get_logger

logger = get_logger("database")


class Database:
    """
    Coordinator for all Vouchcord persistence.

    Args:
        db_path: Path to the SQLite database file.
        connection: Optional connection manager; a private one is created by default.
    """

    def __init__(self, db_path: Path, connection: Optional[ConnectionManager] = None):
        self.db_path = db_path
        self._connection = connection or ConnectionManager()
        self._vouches = VouchRepository()
        self._proofs = ProofRepository()
        self._channels = AutoChannelRepository()
        self._prefixes = GuildPrefixRepository()
        self._stickies = StickyMessageRepository()

    @property
    def connection(self) -> ConnectionManager:
        return self._connection

    async def initialize(self) -> None:
        """Open the connection and make sure the schema exists."""
        await self._connection.open(self.db_path)
        await SchemaManager.initialize_schema(self._connection.connection)
        logger.info("[DATABASE] Ready at %s", self.db_path)

    async def shutdown(self) -> None:
        await self._connection.close()

    # ------------------------------------------------------------------
    # Vouches
    # ------------------------------------------------------------------

    async def save_vouch(self, record: VouchRecord) -> bool:
        async with self._connection.transaction() as conn:
            return await self._vouches.insert(conn, record)

    async def get_vouch(self, message_id: MessageID) -> Optional[VouchRecord]:
        async with self._connection.read() as conn:
            return await self._vouches.get(conn, message_id)

    async def update_vouch(
        self,
        message_id: MessageID,
        *,
        message: str,
        cleaned_message: str,
        vouch_value: Optional[str],
        attachments: List[str],
        updated_at: datetime,
    ) -> bool:
        async with self._connection.transaction() as conn:
            return await self._vouches.update_content(
                conn,
                message_id,
                message=message,
                cleaned_message=cleaned_message,
                vouch_value=vouch_value,
                attachments=attachments,
                updated_at=updated_at,
            )

    async def delete_vouch(self, message_id: MessageID) -> bool:
        async with self._connection.transaction() as conn:
            return await self._vouches.delete(conn, message_id)

    # ------------------------------------------------------------------
    # Proofs
    # ------------------------------------------------------------------

    async def save_proof(self, record: ProofRecord) -> bool:
        async with self._connection.transaction() as conn:
            return await self._proofs.insert(conn, record)

    async def get_proof(self, message_id: MessageID) -> Optional[ProofRecord]:
        async with self._connection.read() as conn:
            return await self._proofs.get(conn, message_id)

    async def delete_proof(self, message_id: MessageID) -> bool:
        async with self._connection.transaction() as conn:
            return await self._proofs.delete(conn, message_id)

    async def get_proof_image_urls(self, channel_id: ChannelID) -> List[str]:
        async with self._connection.read() as conn:
            return await self._proofs.get_image_urls_for_channel(conn, channel_id)

    # ------------------------------------------------------------------
    # Monitored channels
    # ------------------------------------------------------------------

    async def get_enabled_channels(self, kind: ChannelKind) -> Set[ChannelID]:
        async with self._connection.read() as conn:
            return await self._channels.get_enabled(conn, kind)

    async def get_channel_enabled(self, channel_id: ChannelID, kind: ChannelKind) -> Optional[bool]:
        async with self._connection.read() as conn:
            return await self._channels.is_enabled(conn, channel_id, kind)

    async def set_channel_enabled(
        self, guild_id: GuildID, channel_id: ChannelID, channel_name: str, kind: ChannelKind, enabled: bool
    ) -> None:
        async with self._connection.transaction() as conn:
            await self._channels.set_enabled(conn, guild_id, channel_id, channel_name, kind, enabled)

    # ------------------------------------------------------------------
    # Prefixes
    # ------------------------------------------------------------------

    async def get_prefix(self, guild_id: GuildID) -> Optional[str]:
        async with self._connection.read() as conn:
            return await self._prefixes.get(conn, guild_id)

    async def set_prefix(self, guild_id: GuildID, prefix: str, updated_by: Optional[UserID] = None) -> None:
        async with self._connection.transaction() as conn:
            await self._prefixes.upsert(conn, guild_id, prefix, updated_by)

    # ------------------------------------------------------------------
    # Sticky messages
    # ------------------------------------------------------------------

    async def get_sticky(self, channel_id: ChannelID) -> Optional[StickyRecord]:
        async with self._connection.read() as conn:
            return await self._stickies.get(conn, channel_id)

    async def create_sticky(self, record: StickyRecord) -> bool:
        async with self._connection.transaction() as conn:
            return await self._stickies.insert(conn, record)

    async def set_sticky_active(
        self, channel_id: ChannelID, is_active: bool, last_message_id: Optional[MessageID] = None
    ) -> bool:
        async with self._connection.transaction() as conn:
            return await self._stickies.set_active(conn, channel_id, is_active, last_message_id)

    async def set_sticky_last_message(self, channel_id: ChannelID, message_id: MessageID) -> bool:
        async with self._connection.transaction() as conn:
            return await self._stickies.set_last_message(conn, channel_id, message_id)

    async def delete_sticky(self, channel_id: ChannelID) -> bool:
        async with self._connection.transaction() as conn:
            return await self._stickies.delete(conn, channel_id)

    async def list_stickies(self, guild_id: GuildID) -> List[StickyRecord]:
        async with self._connection.read() as conn:
            return await self._stickies.list_for_guild(conn, guild_id)


# Global database instance
database = Database(app_config.database_path)
