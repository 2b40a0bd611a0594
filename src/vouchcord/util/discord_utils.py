"""Small Discord helpers shared by the cogs."""

from __future__ import annotations

from typing import Optional, Union

import discord

from vouchcord.util.logger import get_logger

logger = get_logger("discord_utils")


def is_ignored_author(author: Optional[Union[discord.User, discord.Member]]) -> bool:
    """Return True for bot authors and for events whose author is unknown."""
    return author is None or bool(getattr(author, "bot", False))


def has_admin_permissions(member: Optional[Union[discord.User, discord.Member]]) -> bool:
    """Return True if the member has the Administrator permission in its guild."""
    permissions = getattr(member, "guild_permissions", None)
    return bool(permissions and permissions.administrator)


def channel_display_name(channel: object) -> str:
    """Name of a guild channel, or ``"DM"`` for private channels."""
    return getattr(channel, "name", None) or "DM"


def author_avatar_url(author: Union[discord.User, discord.Member]) -> Optional[str]:
    avatar = getattr(author, "display_avatar", None)
    return str(avatar.url) if avatar is not None else None


async def safe_delete(message: discord.Message, *, reason: str = "") -> bool:
    """
    Delete a message, logging instead of raising when Discord refuses.

    Returns:
        bool: True if the message was deleted.
    """
    try:
        await message.delete()
        return True
    except discord.NotFound:
        logger.debug("[DISCORD] Message %s already deleted", message.id)
    except discord.Forbidden:
        logger.warning("[DISCORD] Missing permission to delete message %s %s", message.id, reason)
    except discord.HTTPException as exc:
        logger.warning("[DISCORD] Failed to delete message %s %s: %s", message.id, reason, exc)
    return False


async def send_transient(channel: discord.abc.Messageable, content: str, delete_after: float) -> None:
    """Send a short-lived notice to a channel; failures are logged."""
    try:
        await channel.send(content, delete_after=delete_after)
    except discord.HTTPException as exc:
        logger.warning("[DISCORD] Could not send notice: %s", exc)


async def reply_transient(message: discord.Message, content: str, delete_after: float) -> None:
    """Reply to a message with a short-lived notice; failures are logged."""
    try:
        await message.reply(content, delete_after=delete_after)
    except discord.HTTPException as exc:
        logger.warning("[DISCORD] Could not reply to message %s: %s", message.id, exc)
