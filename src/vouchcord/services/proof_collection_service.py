"""
ProofCollectionService: imports proof images from a channel's history.

The live listener only sees proofs posted while the bot is running. This
service walks the whole history of a channel, oldest message first, and
stores the images that are not in the database yet.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import AsyncIterator, Optional, Set

import discord

from vouchcord.database.database import Database
from vouchcord.datatypes.discord_datatypes import ChannelID
from vouchcord.util import discord_utils
from vouchcord.util.logger import get_logger
from vouchcord.util.message_adapter import to_inbound_message, to_proof_record
from vouchcord.validation.image_extractor import (
    ImageVerifier,
    extract_image_urls,
    find_unsigned_urls,
    verify_image_urls,
)

logger = get_logger("proof_collection_service")


@dataclass(slots=True)
class CollectionSummary:
    """Counters reported back to the admin after a collection run."""

    scanned: int = 0
    with_images: int = 0
    saved_messages: int = 0
    saved_images: int = 0
    already_stored: int = 0
    rejected: int = 0


class ProofCollectionService:
    """Scan a channel's history and store every proof image not yet known."""

    def __init__(self, db: Database, verifier: Optional[ImageVerifier] = None) -> None:
        self._db = db
        self._verifier = verifier

    def _history(self, channel: discord.TextChannel) -> AsyncIterator[discord.Message]:
        # py-cord fetches the pages of 100 messages itself
        return channel.history(limit=None, oldest_first=True)

    async def collect(self, channel: discord.TextChannel) -> CollectionSummary:
        """
        Collect proof images from every message in ``channel``.

        URLs already stored for the channel, and URLs seen earlier in the
        same run, are skipped. Each message with new images becomes one
        proof row holding those images and the message text.

        Args:
            channel: Text channel to scan.

        Returns:
            CollectionSummary: What was scanned, stored, skipped and rejected.
        """
        channel_id = ChannelID(channel.id)
        known: Set[str] = set(await self._db.get_proof_image_urls(channel_id))
        summary = CollectionSummary()
        logger.info("[COLLECT] Scanning %s (%s), %d image URLs already stored", channel.name, channel_id, len(known))

        async for message in self._history(channel):
            summary.scanned += 1
            if discord_utils.is_ignored_author(message.author):
                continue

            urls = extract_image_urls(to_inbound_message(message))
            if not urls:
                continue
            summary.with_images += 1

            fresh = [url for url in urls if url not in known]
            summary.already_stored += len(urls) - len(fresh)
            if fresh and self._verifier is not None:
                verified = await verify_image_urls(fresh, self._verifier)
                summary.rejected += len(fresh) - len(verified)
                fresh = verified
            if not fresh:
                continue

            for url in find_unsigned_urls(fresh):
                logger.warning("[COLLECT] URL without query parameters may expire: %s", url)

            if await self._db.save_proof(to_proof_record(message, fresh, message.content or "")):
                summary.saved_messages += 1
                summary.saved_images += len(fresh)
            else:
                # The message already has a proof row from the live listener
                summary.already_stored += len(fresh)
            known.update(fresh)

        logger.info(
            "[COLLECT] Finished %s: scanned=%d with_images=%d saved=%d images=%d known=%d rejected=%d",
            channel_id,
            summary.scanned,
            summary.with_images,
            summary.saved_messages,
            summary.saved_images,
            summary.already_stored,
            summary.rejected,
        )
        return summary
