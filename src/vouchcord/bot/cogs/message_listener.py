"""Message listener Cog for Vouchcord.

This cog handles message-related Discord events for monitored channels:

- **on_message**: text commands (``<prefix>delete`` as a reply,
  ``<prefix>prefix <new>``, ``<prefix>autovouch on|off``,
  ``<prefix>autoproof on|off``, the sticky message commands and
  ``<prefix>collectproof``), vouch validation in auto-vouch channels, proof
  image collection in auto-proof channels and sticky message reposts.
- **on_message_edit**: re-validates stored vouches after an edit.
- **on_raw_message_delete**: drops the record of a deleted vouch or proof.
"""

from __future__ import annotations

from typing import List, Optional

import discord
from discord.ext import commands

from vouchcord.cache.channel_cache import ChannelCache
from vouchcord.configuration.app_configuration import AppConfig, app_config
from vouchcord.database.database import Database, database
from vouchcord.datatypes.discord_datatypes import ChannelID, GuildID, MessageID, UserID
from vouchcord.datatypes.message_datatypes import InboundMessage, StickyRecord, VouchRecord, utc_now
from vouchcord.repositories.auto_channel_repo import ChannelKind
from vouchcord.services.channel_settings_service import ChannelSettingsService, ToggleResult
from vouchcord.services.prefix_service import PrefixService
from vouchcord.services.proof_collection_service import CollectionSummary, ProofCollectionService
from vouchcord.services.sticky_message_service import StickyMessageService, StickyResult
from vouchcord.util import discord_utils
from vouchcord.util.logger import get_logger
from vouchcord.util.message_adapter import to_inbound_message, to_proof_record
from vouchcord.validation.image_extractor import (
    ImageVerifier,
    extract_image_urls,
    extract_verified_image_urls,
    find_unsigned_urls,
)
from vouchcord.validation.image_verifier import HttpImageVerifier
from vouchcord.validation.vouch_validator import VouchValidator, clean_vouch_message, extract_vouch_value

logger = get_logger("message_listener_cog")

VOUCH_SAVED_NOTICE = "✅ Vouch added successfully!"
INVALID_VOUCH_NOTICE = "⚠️ Only vouches are allowed here. Your message has been removed."
INVALID_EDIT_NOTICE = "⚠️ Edited message is not a valid vouch. Message has been removed."
VOUCH_DELETED_NOTICE = "🗑️ Vouch deleted successfully."
PROOF_DELETED_NOTICE = "🗑️ Proof deleted successfully."
NOT_ALLOWED_NOTICE = "You need administrator permissions to use this command."

CHANNEL_COMMANDS = {"autovouch": ChannelKind.VOUCH, "autoproof": ChannelKind.PROOF}
TOGGLE_NOTICES = {
    ToggleResult.ENABLED: "✅ Auto-{kind} enabled in this channel.",
    ToggleResult.REENABLED: "✅ Auto-{kind} re-enabled in this channel.",
    ToggleResult.ALREADY_ENABLED: "Auto-{kind} is already enabled in this channel.",
    ToggleResult.DISABLED: "Auto-{kind} disabled in this channel.",
    ToggleResult.NOT_ENABLED: "Auto-{kind} is not enabled in this channel.",
}

STICKY_COMMANDS = ("stick", "stickstop", "stickstart", "stickremove")
STICKY_NOTICES = {
    StickyResult.CREATED: "Sticky message created successfully.",
    StickyResult.ALREADY_EXISTS: "A sticky message already exists in this channel. Use `{prefix}stickremove` first.",
    StickyResult.NOT_FOUND: "There is no sticky message in this channel.",
    StickyResult.STOPPED: "Sticky message has been stopped.",
    StickyResult.ALREADY_STOPPED: "The sticky message is already stopped.",
    StickyResult.STARTED: "Sticky message has been restarted.",
    StickyResult.ALREADY_ACTIVE: "The sticky message is already active.",
    StickyResult.REMOVED: "Sticky message has been removed.",
}
STICKY_PREVIEW_LENGTH = 50
LIST_DELETE_AFTER = 30


def _sticky_preview(text: str) -> str:
    flat = " ".join(text.split())
    if len(flat) > STICKY_PREVIEW_LENGTH:
        return flat[:STICKY_PREVIEW_LENGTH] + "..."
    return flat


def format_sticky_list(stickies: List[StickyRecord]) -> str:
    """Render a guild's stickies, active ones first, as a chat message."""
    active = [sticky for sticky in stickies if sticky.is_active]
    stopped = [sticky for sticky in stickies if not sticky.is_active]

    lines = [f"📌 **Sticky messages** ({len(stickies)})"]
    for title, group in (("Active", active), ("Stopped", stopped)):
        if not group:
            continue
        lines.append(f"**{title}**")
        lines.extend(f"<#{sticky.channel_id}>: {_sticky_preview(sticky.message)}" for sticky in group)
    return "\n".join(lines)


def format_collection_summary(channel, summary: CollectionSummary) -> str:
    return (
        f"📥 Proof collection finished for <#{channel.id}>\n"
        f"Messages scanned: {summary.scanned}\n"
        f"Messages with images: {summary.with_images}\n"
        f"New images saved: {summary.saved_images} ({summary.saved_messages} messages)\n"
        f"Already stored: {summary.already_stored}\n"
        f"Failed verification: {summary.rejected}"
    )


class MessageListenerCog(commands.Cog):
    """Cog responsible for vouch and proof handling on message events."""

    def __init__(
        self,
        discord_bot_instance,
        db: Optional[Database] = None,
        channel_cache: Optional[ChannelCache] = None,
        prefix_service: Optional[PrefixService] = None,
        validator: Optional[VouchValidator] = None,
        channel_settings: Optional[ChannelSettingsService] = None,
        verifier: Optional[ImageVerifier] = None,
        sticky_messages: Optional[StickyMessageService] = None,
        proof_collection: Optional[ProofCollectionService] = None,
        config: AppConfig = app_config,
    ):
        """
        Initialize the message listener cog.

        Parameters
        ----------
        discord_bot_instance:
            The Discord bot instance to attach this cog to.
        db, channel_cache, prefix_service, validator, channel_settings, verifier,
        sticky_messages, proof_collection:
            Collaborators; each defaults to one built from ``config``.
        config:
            Application configuration.
        """
        self.bot = discord_bot_instance
        self.config = config
        self.db = db or database
        self.channel_cache = channel_cache or ChannelCache(self.db.get_enabled_channels, config.channel_cache_ttl)
        self.prefix_service = prefix_service or PrefixService(self.db, config.default_prefix)
        self.validator = validator or VouchValidator(config.allowed_mention_ids)
        self.channel_settings = channel_settings or ChannelSettingsService(self.db, self.channel_cache)
        if verifier is None and config.verify_images:
            verifier = HttpImageVerifier(timeout=config.verification_timeout)
        self.verifier = verifier
        self.sticky_messages = sticky_messages or StickyMessageService(self.db)
        self.proof_collection = proof_collection or ProofCollectionService(self.db, self.verifier)
        logger.info("Message listener cog loaded")

    @property
    def feedback_delay(self) -> float:
        return self.config.feedback_delete_after

    # ------------------------------------------------------------------
    # Record builders
    # ------------------------------------------------------------------

    def _build_vouch_record(self, message: discord.Message, inbound: InboundMessage) -> VouchRecord:
        return VouchRecord(
            message_id=MessageID(message.id),
            guild_id=GuildID(message.guild.id),
            channel_id=ChannelID(message.channel.id),
            channel_name=discord_utils.channel_display_name(message.channel),
            author_id=UserID(message.author.id),
            author_name=str(message.author),
            author_avatar=discord_utils.author_avatar_url(message.author),
            message=inbound.content,
            cleaned_message=clean_vouch_message(inbound.content),
            vouch_value=extract_vouch_value(inbound.content),
            attachments=[attachment.url for attachment in inbound.attachments],
            created_at=message.created_at or utc_now(),
        )

    # ------------------------------------------------------------------
    # Text commands
    # ------------------------------------------------------------------

    async def _handle_text_command(self, message: discord.Message, prefix: str) -> bool:
        """
        Run a prefix command if the message is one.

        Returns
        -------
        bool
            True if the message was consumed as a command.
        """
        body = message.content.strip()[len(prefix):].strip()
        args = body.split()
        if not args:
            return False

        command = args[0].lower()
        if command == "delete":
            reference = message.reference
            if reference is None or reference.message_id is None:
                return False
            return await self._delete_referenced_record(message, MessageID(reference.message_id))
        if command == "prefix":
            await self._change_prefix(message, prefix, args[1] if len(args) > 1 else None)
            return True
        if command in CHANNEL_COMMANDS:
            await self._toggle_channel(message, CHANNEL_COMMANDS[command], args[1].lower() if len(args) > 1 else "on")
            return True
        if command in STICKY_COMMANDS:
            # Keep the sticky text's own line breaks and spacing
            await self._sticky_command(message, prefix, command, body[len(args[0]):].strip())
            return True
        if command in ("stickies", "getstickies"):
            await self._list_stickies(message)
            return True
        if command == "collectproof":
            await self._collect_proofs(message)
            return True
        return False

    async def _change_prefix(self, message: discord.Message, current_prefix: str, new_prefix: Optional[str]) -> None:
        if not discord_utils.has_admin_permissions(message.author):
            await discord_utils.reply_transient(message, NOT_ALLOWED_NOTICE, 5)
            return

        if not new_prefix:
            await discord_utils.reply_transient(
                message,
                f"Current prefix is `{current_prefix}`. Usage: `{current_prefix}prefix <new_prefix>`",
                5,
            )
            return

        try:
            await self.prefix_service.set_prefix(GuildID(message.guild.id), new_prefix, UserID(message.author.id))
        except ValueError as exc:
            await discord_utils.reply_transient(message, str(exc), 5)
            return

        await discord_utils.reply_transient(message, f"Bot prefix has been changed to `{new_prefix}`", 5)
        await message.delete(delay=5)

    async def _toggle_channel(self, message: discord.Message, kind: ChannelKind, mode: str) -> None:
        """Turn auto-vouch or auto-proof monitoring of the current channel on or off."""
        if not discord_utils.has_admin_permissions(message.author):
            await discord_utils.reply_transient(message, NOT_ALLOWED_NOTICE, 5)
            return

        if mode not in ("on", "off"):
            await discord_utils.reply_transient(message, f"Usage: `auto{kind.value} on` or `auto{kind.value} off`", 5)
            return

        toggle = self.channel_settings.enable if mode == "on" else self.channel_settings.disable
        result = await toggle(
            GuildID(message.guild.id),
            ChannelID(message.channel.id),
            discord_utils.channel_display_name(message.channel),
            kind,
        )
        await discord_utils.reply_transient(message, TOGGLE_NOTICES[result].format(kind=kind.value), 5)
        await message.delete(delay=5)

    async def _sticky_command(self, message: discord.Message, prefix: str, command: str, text: str) -> None:
        """Create, stop, restart or remove the sticky message of the current channel."""
        if not discord_utils.has_admin_permissions(message.author):
            await discord_utils.reply_transient(message, NOT_ALLOWED_NOTICE, 5)
            return

        if command == "stick":
            if not text:
                await discord_utils.reply_transient(message, "Please provide a message to stick.", 5)
                return
            result = await self.sticky_messages.stick(message.channel, GuildID(message.guild.id), message.author, text)
        elif command == "stickstop":
            result = await self.sticky_messages.stop(ChannelID(message.channel.id))
        elif command == "stickstart":
            result = await self.sticky_messages.start(message.channel)
        else:
            result = await self.sticky_messages.remove(message.channel)

        await discord_utils.reply_transient(message, STICKY_NOTICES[result].format(prefix=prefix), 5)
        await message.delete(delay=5)

    async def _list_stickies(self, message: discord.Message) -> None:
        if not discord_utils.has_admin_permissions(message.author):
            await discord_utils.reply_transient(message, NOT_ALLOWED_NOTICE, 5)
            return

        stickies = await self.sticky_messages.list_for_guild(GuildID(message.guild.id))
        if not stickies:
            await discord_utils.reply_transient(message, "There are no sticky messages in this server.", 5)
            await message.delete(delay=5)
            return

        await discord_utils.reply_transient(message, format_sticky_list(stickies), LIST_DELETE_AFTER)
        await message.delete(delay=LIST_DELETE_AFTER)

    async def _collect_proofs(self, message: discord.Message) -> None:
        """Import proof images from the history of the mentioned channel, or the current one."""
        if not discord_utils.has_admin_permissions(message.author):
            await discord_utils.reply_transient(message, NOT_ALLOWED_NOTICE, 5)
            return

        mentioned = getattr(message, "channel_mentions", None) or []
        channel = mentioned[0] if mentioned else message.channel
        try:
            summary = await self.proof_collection.collect(channel)
        except discord.HTTPException as exc:
            logger.warning("[COLLECT] Could not read history of %s: %s", channel.id, exc)
            await discord_utils.reply_transient(message, "I can't read the message history of that channel.", 5)
            return

        await discord_utils.reply_transient(message, format_collection_summary(channel, summary), LIST_DELETE_AFTER)

    async def _delete_referenced_record(self, message: discord.Message, referenced_id: MessageID) -> bool:
        """Delete the vouch or proof a ``delete`` reply points at. Returns False if there is none."""
        record = await self.db.get_vouch(referenced_id)
        kind = "vouch"
        if record is None:
            record = await self.db.get_proof(referenced_id)
            kind = "proof"
        if record is None:
            return False

        if record.author_id != message.author.id and not discord_utils.has_admin_permissions(message.author):
            await discord_utils.reply_transient(message, NOT_ALLOWED_NOTICE, self.feedback_delay)
            return True

        try:
            referenced = await message.channel.fetch_message(referenced_id.to_int())
            await discord_utils.safe_delete(referenced, reason=f"({kind} delete command)")
        except discord.HTTPException as exc:
            logger.warning("[%s] Could not fetch message %s for deletion: %s", kind.upper(), referenced_id, exc)

        if kind == "vouch":
            await self.db.delete_vouch(referenced_id)
            notice = VOUCH_DELETED_NOTICE
        else:
            await self.db.delete_proof(referenced_id)
            notice = PROOF_DELETED_NOTICE

        await discord_utils.reply_transient(message, notice, self.feedback_delay)
        await message.delete(delay=self.feedback_delay)
        logger.info("[%s] Deleted %s via reply command by %s", kind.upper(), referenced_id, message.author)
        return True

    # ------------------------------------------------------------------
    # Vouches and proofs
    # ------------------------------------------------------------------

    async def _handle_vouch(self, message: discord.Message) -> None:
        inbound = to_inbound_message(message)

        if self.validator.is_valid(inbound.content, inbound.mentioned_user_ids):
            saved = await self.db.save_vouch(self._build_vouch_record(message, inbound))
            if saved:
                await discord_utils.reply_transient(message, VOUCH_SAVED_NOTICE, self.feedback_delay)
                logger.info(f"[VOUCH] Saved vouch {message.id} from {message.author}")
            return

        await discord_utils.safe_delete(message, reason="(invalid vouch)")
        await discord_utils.send_transient(message.channel, INVALID_VOUCH_NOTICE, self.feedback_delay)
        logger.info(f"[VOUCH] Removed invalid vouch {message.id} from {message.author}")

    async def _extract_proof_urls(self, inbound: InboundMessage) -> List[str]:
        if self.verifier is not None:
            return await extract_verified_image_urls(inbound, self.verifier)
        return extract_image_urls(inbound)

    async def _handle_proof(self, message: discord.Message) -> None:
        image_urls = await self._extract_proof_urls(to_inbound_message(message))
        if not image_urls:
            return

        for url in find_unsigned_urls(image_urls):
            logger.warning(f"[PROOF] URL without query parameters may expire: {url}")

        saved = await self.db.save_proof(to_proof_record(message, image_urls))
        if saved:
            logger.info(f"[PROOF] Saved proof {message.id} from {message.author} ({len(image_urls)} images)")

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self):
        """Open the database on first connect and prime the channel cache."""
        try:
            if not self.db.connection.is_open:
                await self.db.initialize()
            await self.channel_cache.load()
        except Exception as exc:
            logger.critical(f"Failed to initialize storage: {exc}", exc_info=True)

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message):
        """
        Handle new messages in guild channels.

        This handler:
        1. Ignores DMs and bots
        2. Reloads the channel cache when its TTL has expired
        3. Runs prefix text commands
        4. Validates vouches or collects proof images in monitored channels
        5. Moves the channel's sticky message, if any, below the new message

        Parameters
        ----------
        message:
            The Discord message that was created.
        """
        if message.guild is None or discord_utils.is_ignored_author(message.author):
            return

        try:
            await self.channel_cache.refresh_if_needed()

            prefix = await self.prefix_service.get_prefix(GuildID(message.guild.id))
            if message.content.strip().startswith(prefix):
                if await self._handle_text_command(message, prefix):
                    return

            if self.channel_cache.is_auto_vouch_channel(message.channel.id):
                await self._handle_vouch(message)
            elif self.channel_cache.is_auto_proof_channel(message.channel.id):
                await self._handle_proof(message)

            await self.sticky_messages.repost(message.channel, MessageID(message.id))
        except Exception as e:
            logger.error(f"Error processing message {message.id}: {e}", exc_info=True)

    @commands.Cog.listener(name="on_message_edit")
    async def on_message_edit(self, before: discord.Message, after: discord.Message):
        """
        Re-validate a stored vouch after its author edits it.

        A vouch that is still valid has its stored text updated. One that no
        longer passes is deleted from the channel and the database.

        Parameters
        ----------
        before:
            The message before editing.
        after:
            The message after editing.
        """
        if after.guild is None or discord_utils.is_ignored_author(after.author):
            return

        if (before.content or "").strip() == (after.content or "").strip():
            return

        try:
            await self.channel_cache.refresh_if_needed()
            if not self.channel_cache.is_auto_vouch_channel(after.channel.id):
                return

            message_id = MessageID(after.id)
            if await self.db.get_vouch(message_id) is None:
                return

            inbound = to_inbound_message(after)
            if self.validator.is_valid(inbound.content, inbound.mentioned_user_ids):
                await self.db.update_vouch(
                    message_id,
                    message=inbound.content,
                    cleaned_message=clean_vouch_message(inbound.content),
                    vouch_value=extract_vouch_value(inbound.content),
                    attachments=[attachment.url for attachment in inbound.attachments],
                    updated_at=after.edited_at or utc_now(),
                )
                logger.info(f"[VOUCH] Updated vouch {after.id}")
                return

            await discord_utils.safe_delete(after, reason="(edited into invalid vouch)")
            await discord_utils.send_transient(after.channel, INVALID_EDIT_NOTICE, self.feedback_delay)
            await self.db.delete_vouch(message_id)
            logger.info(f"[VOUCH] Removed vouch {after.id} after invalid edit")
        except Exception as e:
            logger.error(f"Error processing edit of message {after.id}: {e}", exc_info=True)

    @commands.Cog.listener(name="on_raw_message_delete")
    async def on_raw_message_delete(self, payload: discord.RawMessageDeleteEvent):
        """Remove the vouch or proof stored for a deleted message, if any."""
        if payload.guild_id is None:
            return

        message_id = MessageID(payload.message_id)
        try:
            if await self.db.delete_vouch(message_id):
                logger.info(f"[VOUCH] Removed vouch {message_id} (message deleted)")
                return
            if await self.db.delete_proof(message_id):
                logger.info(f"[PROOF] Removed proof {message_id} (message deleted)")
        except Exception as e:
            logger.error(f"Error processing deletion of message {message_id}: {e}", exc_info=True)


def setup(discord_bot_instance):
    """
    Register the MessageListenerCog with the bot.

    Parameters
    ----------
    discord_bot_instance:
        The Discord bot instance to add this cog to.
    """
    discord_bot_instance.add_cog(MessageListenerCog(discord_bot_instance))
