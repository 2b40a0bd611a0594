"""Image URL extraction and canonicalization for proof messages.

A single uploaded image usually shows up several times in one message: as
the attachment URL, as its ``media.discordapp.net`` proxy, inside embeds that
Discord generates for forwarded messages, and as a pasted link in the text.
:func:`extract_image_urls` gathers every candidate and collapses them to one
URL per physical image.

Gathering runs in four phases (attachments, embeds, stickers, raw text).
Canonicalization then groups candidates by attachment ID and keeps one URL
per group, preferring the ``cdn`` host over the ``media`` mirror and a signed
URL (with a query string) over an unsigned one.
"""

from __future__ import annotations

import asyncio
import re
from typing import Callable, Iterable, List, Optional

from vouchcord.datatypes.image_datatypes import IMAGE_EXTENSIONS, ImageURL
from vouchcord.datatypes.message_datatypes import EmbedInfo, EmbedMedia, InboundMessage
from vouchcord.util.logger import get_logger

logger = get_logger("image_extractor")

ImageVerifier = Callable[[str], bool]

_EXT = "|".join(IMAGE_EXTENSIONS)
_URL_CHARS = r"[^\s<>\"']"

CDN_URL_PATTERNS: tuple[re.Pattern[str], ...] = (
    # Canonical host with a known image extension
    re.compile(
        rf"https?://cdn\.discordapp\.com/attachments/\d+/\d+/{_URL_CHARS}+\.(?:{_EXT})(?:\?{_URL_CHARS}*)?",
        re.IGNORECASE,
    ),
    # Mirror host with a known image extension
    re.compile(
        rf"https?://media\.discordapp\.net/attachments/\d+/\d+/{_URL_CHARS}+\.(?:{_EXT})(?:\?{_URL_CHARS}*)?",
        re.IGNORECASE,
    ),
    # Any attachment-shaped URL on either host. This also covers extension-less
    # URLs whose query carries width/height/size/format.
    re.compile(
        rf"https?://(?:cdn|media)\.discordapp\.(?:com|net)/attachments/\d+/\d+/{_URL_CHARS}+",
        re.IGNORECASE,
    ),
    # Custom emoji
    re.compile(r"https?://cdn\.discordapp\.com/emojis/\d+\.(?:png|gif|webp)", re.IGNORECASE),
    # Stickers
    re.compile(r"https?://media\.discordapp\.net/stickers/\d+\.(?:png|gif|webp)", re.IGNORECASE),
)


def extract_urls_from_text(text: Optional[str]) -> List[str]:
    """Return every CDN-shaped URL found in ``text``.

    Each pattern contributes its own matches, so one URL can be listed more
    than once; canonicalization removes the repeats.
    """
    if not text:
        return []

    urls: List[str] = []
    for pattern in CDN_URL_PATTERNS:
        urls.extend(match.group(0) for match in pattern.finditer(text))
    return urls


def _media_urls(media: Optional[EmbedMedia], proxy_first: bool = False) -> List[str]:
    if media is None:
        return []
    urls: List[str] = []
    if proxy_first:
        # Videos expose the proxied preview first
        if media.proxy_url:
            urls.append(media.proxy_url)
        if media.url:
            urls.append(media.url)
        return urls
    if media.url:
        urls.append(media.url)
        if media.proxy_url and media.proxy_url != media.url:
            urls.append(media.proxy_url)
    return urls


def _embed_candidates(embed: EmbedInfo) -> List[str]:
    urls: List[str] = []
    if embed.url:
        urls.extend(extract_urls_from_text(embed.url))
    urls.extend(_media_urls(embed.image))
    urls.extend(_media_urls(embed.thumbnail))
    urls.extend(_media_urls(embed.video, proxy_first=True))
    urls.extend(_media_urls(embed.author_icon))
    urls.extend(_media_urls(embed.footer_icon))
    if embed.title:
        urls.extend(extract_urls_from_text(embed.title))
    for embed_field in embed.fields:
        urls.extend(extract_urls_from_text(embed_field.name))
        urls.extend(extract_urls_from_text(embed_field.value))
    if embed.description:
        urls.extend(extract_urls_from_text(embed.description))
    return urls


def gather_candidate_urls(message: InboundMessage) -> List[str]:
    """Collect raw candidate URLs from a message, in phase order, duplicates included."""
    candidates: List[str] = []

    for attachment in message.attachments:
        if attachment.url:
            candidates.append(attachment.url)
        if attachment.proxy_url and attachment.proxy_url != attachment.url:
            candidates.append(attachment.proxy_url)

    for embed in message.embeds:
        candidates.extend(_embed_candidates(embed))

    for sticker in message.stickers:
        if sticker.url:
            candidates.append(sticker.url)

    candidates.extend(extract_urls_from_text(message.content))
    return candidates


def _preference(url: ImageURL) -> tuple[bool, bool]:
    return (url.is_primary_host, url.has_query)


def canonicalize_image_urls(candidates: Iterable[str]) -> List[str]:
    """Collapse candidate URLs to one URL per physical image.

    Unparsable URLs are skipped. URLs that are neither on a known CDN host
    nor carry an image extension are dropped. Candidates sharing an
    attachment ID (or, without one, the same full URL) form a group; the
    kept URL is the one on the canonical host, then the signed one, then
    the one seen last. Groups keep the order in which they were first seen.
    """
    chosen: dict[str, ImageURL] = {}

    for raw in candidates:
        try:
            url = ImageURL(raw)
        except ValueError:
            logger.debug("[PROOF] Skipping malformed URL %r", raw)
            continue

        if not url.is_known_host and not url.has_image_extension:
            continue

        key = url.dedup_key
        existing = chosen.get(key)
        if existing is None or _preference(url) >= _preference(existing):
            chosen[key] = url

    return [str(url) for url in chosen.values()]


def accept_structurally_valid(url: str) -> bool:
    """Default verifier: anything that survived canonicalization is accepted."""
    return True


def extract_image_urls(message: InboundMessage, verifier: Optional[ImageVerifier] = None) -> List[str]:
    """Return the deduplicated, canonical image URLs of a message.

    Args:
        message: The message snapshot to scan.
        verifier: Optional synchronous check applied to each canonical URL.
            Defaults to :func:`accept_structurally_valid`.

    Returns:
        list[str]: One URL per distinct image, canonical host preferred.
    """
    urls = canonicalize_image_urls(gather_candidate_urls(message))
    check = verifier or accept_structurally_valid
    return [url for url in urls if check(url)]


def has_valid_proof_images(message: InboundMessage) -> bool:
    return bool(extract_image_urls(message))


def find_unsigned_urls(urls: Iterable[str]) -> List[str]:
    """Return the URLs that carry no query string (unsigned CDN links may expire)."""
    unsigned: List[str] = []
    for raw in urls:
        try:
            if not ImageURL(raw).has_query:
                unsigned.append(raw)
        except ValueError:
            continue
    return unsigned


async def verify_image_urls(urls: Iterable[str], verifier: ImageVerifier) -> List[str]:
    """Run ``verifier`` over ``urls`` concurrently in worker threads.

    Order of the input is preserved. A verifier that raises counts as a
    rejection for that URL only.
    """
    url_list = list(urls)
    if not url_list:
        return []

    results = await asyncio.gather(
        *(asyncio.to_thread(verifier, url) for url in url_list),
        return_exceptions=True,
    )

    verified: List[str] = []
    for url, result in zip(url_list, results):
        if isinstance(result, BaseException):
            logger.warning("[PROOF] Verification raised for %s: %s", url, result)
            continue
        if result:
            verified.append(url)
    return verified


async def extract_verified_image_urls(message: InboundMessage, verifier: ImageVerifier) -> List[str]:
    """Async variant of :func:`extract_image_urls` that checks URLs concurrently."""
    return await verify_image_urls(extract_image_urls(message), verifier)
