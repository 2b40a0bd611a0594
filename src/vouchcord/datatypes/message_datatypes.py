"""
Message value objects consumed by the validation pipeline, and the records
persisted for vouches and proofs.

Key types:
- `InboundMessage`: read-only snapshot of a chat message (content, mentions,
  attachments, embeds, stickers). Built from a ``discord.Message`` by
  :mod:`vouchcord.util.message_adapter`, or directly in tests.
- `VouchRecord` / `ProofRecord` / `StickyRecord`: rows stored by the repositories.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from vouchcord.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, UserID


@dataclass(frozen=True, slots=True)
class AttachmentInfo:
    """A file attached to a message."""

    url: str
    proxy_url: Optional[str] = None
    content_type: Optional[str] = None


@dataclass(frozen=True, slots=True)
class EmbedMedia:
    """Image, thumbnail, video or icon sub-object of an embed."""

    url: Optional[str] = None
    proxy_url: Optional[str] = None


@dataclass(frozen=True, slots=True)
class EmbedField:
    name: str = ""
    value: str = ""


@dataclass(frozen=True, slots=True)
class EmbedInfo:
    """Flattened view of a Discord embed.

    Attributes:
        url (str | None): The embed's own link.
        image, thumbnail, video, author_icon, footer_icon (EmbedMedia | None):
            Media sub-objects, each with a url and an optional proxy url.
        title, description (str | None): Free text that may contain links.
        fields (tuple[EmbedField, ...]): Name/value pairs that may contain links.
    """

    url: Optional[str] = None
    image: Optional[EmbedMedia] = None
    thumbnail: Optional[EmbedMedia] = None
    video: Optional[EmbedMedia] = None
    author_icon: Optional[EmbedMedia] = None
    footer_icon: Optional[EmbedMedia] = None
    title: Optional[str] = None
    description: Optional[str] = None
    fields: Tuple[EmbedField, ...] = ()


@dataclass(frozen=True, slots=True)
class StickerInfo:
    url: str


@dataclass(frozen=True, slots=True)
class InboundMessage:
    """Read-only snapshot of a chat message.

    Every sequence may be empty and content may be the empty string; the
    validators treat those as the empty case rather than as errors.
    """

    content: str = ""
    mentioned_user_ids: Tuple[str, ...] = ()
    attachments: Tuple[AttachmentInfo, ...] = ()
    embeds: Tuple[EmbedInfo, ...] = ()
    stickers: Tuple[StickerInfo, ...] = ()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class VouchRecord:
    """A validated vouch stored in the ``vouches`` table.

    Attributes:
        message_id (MessageID): ID of the vouch message; primary key.
        guild_id (GuildID): Guild the vouch was posted in.
        channel_id (ChannelID): Auto-vouch channel the vouch was posted in.
        channel_name (str): Channel name at the time of posting.
        author_id (UserID): Author of the vouch.
        author_name (str): Author tag at the time of posting.
        author_avatar (str | None): Author avatar URL.
        message (str): Raw message content.
        cleaned_message (str): Content with custom emoji and extra whitespace removed.
        vouch_value (str | None): Human readable value extracted from the content.
        attachments (list[str]): Attachment URLs of the message.
        created_at (datetime): When the vouch was posted.
        updated_at (datetime | None): When the vouch was last edited.
    """

    message_id: MessageID
    guild_id: GuildID
    channel_id: ChannelID
    channel_name: str
    author_id: UserID
    author_name: str
    author_avatar: Optional[str]
    message: str
    cleaned_message: str
    vouch_value: Optional[str] = None
    attachments: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: Optional[datetime] = None


@dataclass(slots=True)
class ProofRecord:
    """Proof images stored in the ``proofs`` table, one row per message."""

    message_id: MessageID
    guild_id: GuildID
    channel_id: ChannelID
    channel_name: str
    author_id: UserID
    author_name: str
    author_avatar: Optional[str]
    image_urls: List[str]
    message: str = ""
    created_at: datetime = field(default_factory=utc_now)


@dataclass(slots=True)
class StickyRecord:
    """A sticky message stored in the ``sticky_messages`` table, one per channel.

    Attributes:
        channel_id (ChannelID): Channel the message sticks to; primary key.
        guild_id (GuildID): Guild owning the channel.
        channel_name (str): Channel name when the sticky was created.
        message (str): Text reposted at the bottom of the channel.
        created_by (UserID): Admin who created the sticky.
        created_by_name (str): Tag of that admin.
        last_message_id (MessageID | None): The copy currently posted, if any.
        is_active (bool): False while the sticky is stopped.
    """

    channel_id: ChannelID
    guild_id: GuildID
    channel_name: str
    message: str
    created_by: UserID
    created_by_name: str
    last_message_id: Optional[MessageID] = None
    is_active: bool = True
    created_at: datetime = field(default_factory=utc_now)
    updated_at: Optional[datetime] = None
