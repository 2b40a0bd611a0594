"""
Tests for the Database coordinator and its repositories.
"""

from datetime import datetime, timezone

import pytest
import pytest_asyncio

from vouchcord.database.database import Database
from vouchcord.database.db_connection import ConnectionManager
from vouchcord.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, UserID
from vouchcord.datatypes.message_datatypes import ProofRecord, StickyRecord, VouchRecord
from vouchcord.repositories.auto_channel_repo import ChannelKind


@pytest_asyncio.fixture
async def test_db(tmp_path):
    """Create a temporary test database."""
    db = Database(tmp_path / "data" / "test.db")
    await db.initialize()
    yield db
    await db.shutdown()


def make_vouch(message_id=1, author_id=10, **overrides) -> VouchRecord:
    fields = dict(
        message_id=MessageID(message_id),
        guild_id=GuildID(100),
        channel_id=ChannelID(200),
        channel_name="vouches",
        author_id=UserID(author_id),
        author_name="buyer#0001",
        author_avatar="https://cdn.discordapp.com/avatars/10/abc.png",
        message="legit <@5> 500 inr <:ok:1>",
        cleaned_message="legit <@5> 500 inr",
        vouch_value="500 INR",
        attachments=["https://cdn.discordapp.com/attachments/200/1/a.png?ex=1"],
        created_at=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
    )
    fields.update(overrides)
    return VouchRecord(**fields)


def make_proof(message_id=50) -> ProofRecord:
    return ProofRecord(
        message_id=MessageID(message_id),
        guild_id=GuildID(100),
        channel_id=ChannelID(300),
        channel_name="proofs",
        author_id=UserID(10),
        author_name="buyer#0001",
        author_avatar=None,
        image_urls=[
            f"https://cdn.discordapp.com/attachments/300/{message_id}/a.png?ex=1",
            f"https://cdn.discordapp.com/attachments/300/{message_id + 1}/b.png?ex=1",
        ],
    )


@pytest.mark.asyncio
async def test_initialize_creates_database_file(test_db, tmp_path):
    assert (tmp_path / "data" / "test.db").exists()
    assert test_db.connection.is_open


@pytest.mark.asyncio
async def test_vouch_roundtrip(test_db):
    record = make_vouch()

    assert await test_db.save_vouch(record) is True
    stored = await test_db.get_vouch(MessageID(1))

    assert stored == record


@pytest.mark.asyncio
async def test_duplicate_vouch_is_ignored(test_db):
    assert await test_db.save_vouch(make_vouch()) is True
    assert await test_db.save_vouch(make_vouch(message="changed")) is False
    assert (await test_db.get_vouch(MessageID(1))).message == "legit <@5> 500 inr <:ok:1>"


@pytest.mark.asyncio
async def test_update_vouch(test_db):
    await test_db.save_vouch(make_vouch())
    edited_at = datetime(2024, 1, 3, tzinfo=timezone.utc)

    updated = await test_db.update_vouch(
        MessageID(1),
        message="legit <@5> nitro",
        cleaned_message="legit <@5> nitro",
        vouch_value="Nitro",
        attachments=[],
        updated_at=edited_at,
    )

    stored = await test_db.get_vouch(MessageID(1))
    assert updated is True
    assert stored.vouch_value == "Nitro"
    assert stored.attachments == []
    assert stored.updated_at == edited_at


@pytest.mark.asyncio
async def test_update_missing_vouch_returns_false(test_db):
    assert await test_db.update_vouch(
        MessageID(404),
        message="x",
        cleaned_message="x",
        vouch_value=None,
        attachments=[],
        updated_at=datetime.now(timezone.utc),
    ) is False


@pytest.mark.asyncio
async def test_delete_vouch(test_db):
    await test_db.save_vouch(make_vouch(1))
    await test_db.save_vouch(make_vouch(2))

    assert await test_db.delete_vouch(MessageID(2)) is True
    assert await test_db.delete_vouch(MessageID(2)) is False
    assert await test_db.get_vouch(MessageID(1)) is not None
    assert await test_db.get_vouch(MessageID(2)) is None


@pytest.mark.asyncio
async def test_proof_roundtrip_and_channel_urls(test_db):
    first, second = make_proof(50), make_proof(60)
    assert await test_db.save_proof(first) is True
    assert await test_db.save_proof(second) is True
    assert await test_db.save_proof(first) is False

    stored = await test_db.get_proof(MessageID(50))
    assert stored.image_urls == first.image_urls
    assert stored.message == ""

    urls = await test_db.get_proof_image_urls(ChannelID(300))
    assert urls == first.image_urls + second.image_urls

    assert await test_db.delete_proof(MessageID(50)) is True
    assert await test_db.get_proof(MessageID(50)) is None


@pytest.mark.asyncio
async def test_channel_enable_flags(test_db):
    channel = ChannelID(200)

    assert await test_db.get_channel_enabled(channel, ChannelKind.VOUCH) is None

    await test_db.set_channel_enabled(GuildID(100), channel, "vouches", ChannelKind.VOUCH, True)
    assert await test_db.get_channel_enabled(channel, ChannelKind.VOUCH) is True
    assert await test_db.get_channel_enabled(channel, ChannelKind.PROOF) is None
    assert await test_db.get_enabled_channels(ChannelKind.VOUCH) == {channel}

    await test_db.set_channel_enabled(GuildID(100), channel, "vouches", ChannelKind.VOUCH, False)
    assert await test_db.get_channel_enabled(channel, ChannelKind.VOUCH) is False
    assert await test_db.get_enabled_channels(ChannelKind.VOUCH) == set()


@pytest.mark.asyncio
async def test_guild_prefix_upsert(test_db):
    assert await test_db.get_prefix(GuildID(100)) is None

    await test_db.set_prefix(GuildID(100), "?", UserID(1))
    await test_db.set_prefix(GuildID(100), "$$", UserID(2))

    assert await test_db.get_prefix(GuildID(100)) == "$$"


@pytest.mark.asyncio
async def test_failed_transaction_rolls_back(test_db):
    with pytest.raises(RuntimeError):
        async with test_db.connection.transaction() as conn:
            await conn.execute("INSERT INTO guild_prefixes (guild_id, prefix) VALUES (?, ?)", (1, "!"))
            raise RuntimeError("abort")

    assert await test_db.get_prefix(GuildID(1)) is None


@pytest.mark.asyncio
async def test_connection_manager_requires_open():
    manager = ConnectionManager()
    assert manager.is_open is False
    with pytest.raises(RuntimeError):
        _ = manager.connection


def make_sticky(channel_id=400, created_at=datetime(2024, 1, 1, tzinfo=timezone.utc)) -> StickyRecord:
    return StickyRecord(
        channel_id=ChannelID(channel_id),
        guild_id=GuildID(100),
        channel_name="market",
        message="Read the rules\nbefore trading.",
        created_by=UserID(9),
        created_by_name="admin#0001",
        last_message_id=MessageID(1000),
        created_at=created_at,
    )


@pytest.mark.asyncio
async def test_sticky_lifecycle(test_db):
    channel = ChannelID(400)
    assert await test_db.get_sticky(channel) is None

    assert await test_db.create_sticky(make_sticky()) is True
    assert await test_db.create_sticky(make_sticky()) is False
    stored = await test_db.get_sticky(channel)
    assert stored.message == "Read the rules\nbefore trading."
    assert stored.last_message_id == MessageID(1000)
    assert stored.is_active is True
    assert stored.updated_at is None

    assert await test_db.set_sticky_active(channel, False) is True
    stopped = await test_db.get_sticky(channel)
    assert stopped.is_active is False
    assert stopped.last_message_id == MessageID(1000)
    assert stopped.updated_at is not None

    assert await test_db.set_sticky_active(channel, True, MessageID(1001)) is True
    assert (await test_db.get_sticky(channel)).last_message_id == MessageID(1001)

    assert await test_db.set_sticky_last_message(channel, MessageID(1002)) is True
    assert (await test_db.get_sticky(channel)).last_message_id == MessageID(1002)

    assert await test_db.delete_sticky(channel) is True
    assert await test_db.delete_sticky(channel) is False
    assert await test_db.set_sticky_last_message(channel, MessageID(1003)) is False


@pytest.mark.asyncio
async def test_list_stickies_newest_first(test_db):
    await test_db.create_sticky(make_sticky(400, datetime(2024, 1, 1, tzinfo=timezone.utc)))
    await test_db.create_sticky(make_sticky(401, datetime(2024, 2, 1, tzinfo=timezone.utc)))

    stickies = await test_db.list_stickies(GuildID(100))

    assert [sticky.channel_id for sticky in stickies] == [ChannelID(401), ChannelID(400)]
    assert await test_db.list_stickies(GuildID(999)) == []


@pytest.mark.asyncio
async def test_connection_manager_enables_wal_and_closes_once(tmp_path):
    manager = ConnectionManager()
    await manager.open(tmp_path / "db" / "first.db")
    await manager.open(tmp_path / "db" / "second.db")

    async with manager.read() as conn:
        async with conn.execute("PRAGMA journal_mode") as cursor:
            assert (await cursor.fetchone())[0] == "wal"
    assert manager.path == tmp_path / "db" / "first.db"
    assert not (tmp_path / "db" / "second.db").exists()

    await manager.close()
    await manager.close()
    assert manager.is_open is False
