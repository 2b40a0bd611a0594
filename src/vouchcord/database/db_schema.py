"""
Database schema creation and version tracking.
"""

import aiosqlite
from vouchcord.util.logger import get_logger

logger = get_logger("database_schema")

SCHEMA_VERSION = 2


class SchemaManager:
    """Creates the Vouchcord tables and indexes if they do not exist."""

    @staticmethod
    async def initialize_schema(db: aiosqlite.Connection) -> None:
        """
        Create or update all database tables and indexes.

        Args:
            db: Open database connection
        """
        await SchemaManager._create_tables(db)
        await SchemaManager._create_indexes(db)
        await SchemaManager._update_schema_version(db)
        await db.commit()
        logger.info("[SCHEMA] Database schema initialized (version %d)", SCHEMA_VERSION)

    @staticmethod
    async def _create_tables(db: aiosqlite.Connection) -> None:
        # Attachment and image URL lists are stored as JSON arrays
        await db.execute("""
            CREATE TABLE IF NOT EXISTS vouches (
                message_id INTEGER PRIMARY KEY,
                guild_id INTEGER NOT NULL,
                channel_id INTEGER NOT NULL,
                channel_name TEXT NOT NULL DEFAULT '',
                author_id INTEGER NOT NULL,
                author_name TEXT NOT NULL DEFAULT '',
                author_avatar TEXT,
                message TEXT NOT NULL DEFAULT '',
                cleaned_message TEXT NOT NULL DEFAULT '',
                vouch_value TEXT,
                attachments TEXT NOT NULL DEFAULT '[]',
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS proofs (
                message_id INTEGER PRIMARY KEY,
                guild_id INTEGER NOT NULL,
                channel_id INTEGER NOT NULL,
                channel_name TEXT NOT NULL DEFAULT '',
                author_id INTEGER NOT NULL,
                author_name TEXT NOT NULL DEFAULT '',
                author_avatar TEXT,
                message TEXT NOT NULL DEFAULT '',
                image_urls TEXT NOT NULL DEFAULT '[]',
                created_at TIMESTAMP NOT NULL
            )
        """)

        # kind is 'vouch' or 'proof'
        await db.execute("""
            CREATE TABLE IF NOT EXISTS auto_channels (
                channel_id INTEGER NOT NULL,
                kind TEXT NOT NULL CHECK (kind IN ('vouch', 'proof')),
                guild_id INTEGER NOT NULL,
                channel_name TEXT NOT NULL DEFAULT '',
                is_enabled INTEGER NOT NULL DEFAULT 1,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (channel_id, kind)
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS guild_prefixes (
                guild_id INTEGER PRIMARY KEY,
                prefix TEXT NOT NULL,
                updated_by INTEGER,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # last_message_id is the copy currently posted at the bottom of the channel
        await db.execute("""
            CREATE TABLE IF NOT EXISTS sticky_messages (
                channel_id INTEGER PRIMARY KEY,
                guild_id INTEGER NOT NULL,
                channel_name TEXT NOT NULL DEFAULT '',
                message TEXT NOT NULL,
                last_message_id INTEGER,
                is_active INTEGER NOT NULL DEFAULT 1,
                created_by INTEGER NOT NULL,
                created_by_name TEXT NOT NULL DEFAULT '',
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    @staticmethod
    async def _create_indexes(db: aiosqlite.Connection) -> None:
        await db.execute("CREATE INDEX IF NOT EXISTS idx_vouches_author ON vouches(guild_id, author_id)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_proofs_author ON proofs(guild_id, author_id)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_auto_channels_enabled ON auto_channels(kind, is_enabled)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_sticky_messages_guild ON sticky_messages(guild_id)")

    @staticmethod
    async def _update_schema_version(db: aiosqlite.Connection) -> None:
        await db.execute("INSERT OR IGNORE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
