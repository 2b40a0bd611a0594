"""Conversion of py-cord messages into InboundMessage snapshots and proof rows."""

from __future__ import annotations

from typing import Any, List, Optional

import discord

from vouchcord.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, UserID
from vouchcord.datatypes.message_datatypes import (
    AttachmentInfo,
    EmbedField,
    EmbedInfo,
    EmbedMedia,
    InboundMessage,
    ProofRecord,
    StickerInfo,
    utc_now,
)
from vouchcord.util import discord_utils


def _text(value: Any) -> Optional[str]:
    """Return ``value`` as a string, treating None and empty sentinels as missing."""
    if value is None:
        return None
    text = str(value)
    return text or None


def _media(proxy: Any, url_attr: str = "url", proxy_attr: str = "proxy_url") -> Optional[EmbedMedia]:
    if proxy is None:
        return None
    url = _text(getattr(proxy, url_attr, None))
    proxy_url = _text(getattr(proxy, proxy_attr, None))
    if url is None and proxy_url is None:
        return None
    return EmbedMedia(url=url, proxy_url=proxy_url)


def embed_to_info(embed: discord.Embed) -> EmbedInfo:
    """Flatten a ``discord.Embed`` into an :class:`EmbedInfo`."""
    fields = tuple(
        EmbedField(name=_text(getattr(f, "name", None)) or "", value=_text(getattr(f, "value", None)) or "")
        for f in (getattr(embed, "fields", None) or [])
    )
    return EmbedInfo(
        url=_text(getattr(embed, "url", None)),
        image=_media(getattr(embed, "image", None)),
        thumbnail=_media(getattr(embed, "thumbnail", None)),
        video=_media(getattr(embed, "video", None)),
        author_icon=_media(getattr(embed, "author", None), "icon_url", "proxy_icon_url"),
        footer_icon=_media(getattr(embed, "footer", None), "icon_url", "proxy_icon_url"),
        title=_text(getattr(embed, "title", None)),
        description=_text(getattr(embed, "description", None)),
        fields=fields,
    )


def to_inbound_message(message: discord.Message) -> InboundMessage:
    """
    Build the validation snapshot of a Discord message.

    Only user mentions count; role and channel mentions are ignored.

    Args:
        message: The py-cord message.

    Returns:
        InboundMessage: Immutable snapshot consumed by the validators.
    """
    attachments = tuple(
        AttachmentInfo(
            url=attachment.url,
            proxy_url=_text(getattr(attachment, "proxy_url", None)),
            content_type=_text(getattr(attachment, "content_type", None)),
        )
        for attachment in (message.attachments or [])
        if attachment.url
    )
    stickers = tuple(
        StickerInfo(url=str(sticker.url))
        for sticker in (getattr(message, "stickers", None) or [])
        if getattr(sticker, "url", None)
    )
    return InboundMessage(
        content=message.content or "",
        mentioned_user_ids=tuple(str(user.id) for user in (message.mentions or [])),
        attachments=attachments,
        embeds=tuple(embed_to_info(embed) for embed in (message.embeds or [])),
        stickers=stickers,
    )


def to_proof_record(message: discord.Message, image_urls: List[str], text: str = "") -> ProofRecord:
    """Build the stored proof row for a message and the image URLs accepted from it."""
    return ProofRecord(
        message_id=MessageID(message.id),
        guild_id=GuildID(message.guild.id),
        channel_id=ChannelID(message.channel.id),
        channel_name=discord_utils.channel_display_name(message.channel),
        author_id=UserID(message.author.id),
        author_name=str(message.author),
        author_avatar=discord_utils.author_avatar_url(message.author),
        image_urls=image_urls,
        message=text,
        created_at=message.created_at or utc_now(),
    )
