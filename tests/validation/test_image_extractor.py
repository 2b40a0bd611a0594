import asyncio

import pytest

from vouchcord.datatypes.message_datatypes import (
    AttachmentInfo,
    EmbedField,
    EmbedInfo,
    EmbedMedia,
    InboundMessage,
    StickerInfo,
)
from vouchcord.validation import image_extractor
from vouchcord.validation.image_extractor import (
    canonicalize_image_urls,
    extract_image_urls,
    extract_urls_from_text,
    extract_verified_image_urls,
    find_unsigned_urls,
    gather_candidate_urls,
    has_valid_proof_images,
    verify_image_urls,
)

CDN = "https://cdn.discordapp.com/attachments/111/999/proof.png?ex=abc&is=def&hm=123"
MEDIA = "https://media.discordapp.net/attachments/111/999/proof.png?ex=abc&is=def&hm=123&width=400&height=300"
CDN_UNSIGNED = "https://cdn.discordapp.com/attachments/111/999/proof.png"
OTHER = "https://cdn.discordapp.com/attachments/111/1000/second.jpg?ex=1"


def test_attachment_and_proxy_collapse_to_primary_host():
    message = InboundMessage(attachments=(AttachmentInfo(url=CDN, proxy_url=MEDIA),))

    assert extract_image_urls(message) == [CDN]


def test_mirror_seen_last_still_loses_to_primary():
    message = InboundMessage(
        attachments=(AttachmentInfo(url=CDN, proxy_url=None),),
        content=f"see {MEDIA}",
    )

    assert extract_image_urls(message) == [CDN]


def test_signed_url_beats_unsigned_on_same_host():
    assert canonicalize_image_urls([CDN_UNSIGNED, CDN]) == [CDN]
    assert canonicalize_image_urls([CDN, CDN_UNSIGNED]) == [CDN]


def test_later_candidate_wins_full_tie():
    later = "https://cdn.discordapp.com/attachments/111/999/proof.png?ex=zzz"
    assert canonicalize_image_urls([CDN, later]) == [later]


def test_group_order_follows_first_appearance():
    result = canonicalize_image_urls([OTHER, MEDIA, CDN])
    assert result == [OTHER, CDN]


def test_malformed_and_unknown_urls_are_dropped():
    candidates = [
        "not a url",
        "ftp://cdn.discordapp.com/attachments/1/2/a.png",
        "https://example.com/page",
        "http://[::1",
    ]
    assert canonicalize_image_urls(candidates) == []


def test_external_image_url_is_kept_by_extension():
    url = "https://i.example.org/pics/cat.JPEG"
    assert canonicalize_image_urls([url]) == [url]


def test_non_attachment_urls_dedupe_by_full_url():
    emoji = "https://cdn.discordapp.com/emojis/12345.png"
    assert canonicalize_image_urls([emoji, emoji]) == [emoji]


def test_extract_urls_from_text_finds_cdn_links():
    text = f"proof: {CDN} and sticker https://media.discordapp.net/stickers/777.png"
    urls = extract_urls_from_text(text)

    assert CDN in urls
    assert "https://media.discordapp.net/stickers/777.png" in urls


def test_extract_urls_from_text_empty():
    assert extract_urls_from_text("") == []
    assert extract_urls_from_text(None) == []


def test_extensionless_url_with_size_query_is_matched_whole():
    url = "https://media.discordapp.net/attachments/1/2/image?width=100&height=100"
    assert extract_urls_from_text(f"<{url}>") == [url]


def test_gather_order_is_attachments_embeds_stickers_text():
    sticker = "https://media.discordapp.net/stickers/55.png"
    embed_image = "https://cdn.discordapp.com/attachments/3/4/embed.png?ex=1"
    message = InboundMessage(
        content=OTHER,
        attachments=(AttachmentInfo(url=CDN, proxy_url=MEDIA),),
        embeds=(EmbedInfo(image=EmbedMedia(url=embed_image, proxy_url=embed_image)),),
        stickers=(StickerInfo(url=sticker),),
    )

    candidates = gather_candidate_urls(message)

    assert candidates[:4] == [CDN, MEDIA, embed_image, sticker]
    assert OTHER in candidates[4:]


def test_embed_sources_are_scanned():
    field_url = "https://cdn.discordapp.com/attachments/9/10/field.png?ex=1"
    desc_url = "https://cdn.discordapp.com/attachments/9/11/desc.webp?ex=1"
    video_proxy = "https://media.discordapp.net/attachments/9/12/clip.gif?ex=1"
    embed = EmbedInfo(
        thumbnail=EmbedMedia(url="https://cdn.discordapp.com/attachments/9/13/thumb.png?ex=1"),
        video=EmbedMedia(url=None, proxy_url=video_proxy),
        fields=(EmbedField(name="proof", value=f"here {field_url}"),),
        description=desc_url,
    )

    urls = extract_image_urls(InboundMessage(embeds=(embed,)))

    assert urls == [
        "https://cdn.discordapp.com/attachments/9/13/thumb.png?ex=1",
        video_proxy,
        field_url,
        desc_url,
    ]


def test_empty_message_has_no_proof():
    message = InboundMessage()
    assert extract_image_urls(message) == []
    assert has_valid_proof_images(message) is False


def test_extraction_is_idempotent():
    message = InboundMessage(attachments=(AttachmentInfo(url=CDN, proxy_url=MEDIA),), content=OTHER)
    first = extract_image_urls(message)
    second = extract_image_urls(InboundMessage(content=" ".join(first)))
    assert second == first
    assert extract_image_urls(message) == first


def test_custom_verifier_filters_urls():
    message = InboundMessage(content=f"{CDN} {OTHER}")
    assert extract_image_urls(message, verifier=lambda url: "second" in url) == [OTHER]


def test_find_unsigned_urls():
    assert find_unsigned_urls([CDN, CDN_UNSIGNED, "garbage"]) == [CDN_UNSIGNED]


@pytest.mark.asyncio
async def test_verify_image_urls_preserves_order_and_isolates_errors():
    def verifier(url):
        if "boom" in url:
            raise RuntimeError("network down")
        return "bad" not in url

    urls = ["https://a/1.png", "https://a/boom.png", "https://a/bad.png", "https://a/2.png"]

    assert await verify_image_urls(urls, verifier) == ["https://a/1.png", "https://a/2.png"]
    assert await verify_image_urls([], verifier) == []


@pytest.mark.asyncio
async def test_verification_runs_concurrently(monkeypatch):
    calls = []

    async def fake_to_thread(func, url):
        calls.append(url)
        await asyncio.sleep(0)
        return func(url)

    monkeypatch.setattr(image_extractor.asyncio, "to_thread", fake_to_thread)
    message = InboundMessage(content=f"{CDN} {OTHER}")

    result = await extract_verified_image_urls(message, lambda url: True)

    assert result == [CDN, OTHER]
    assert calls == [CDN, OTHER]


def test_signed_primary_wins_over_unsigned_mirror():
    primary = "https://cdn.discordapp.com/attachments/1/999/a.png?ex=1"
    mirror = "https://media.discordapp.net/attachments/1/999/a.png"

    assert canonicalize_image_urls([primary, mirror]) == [primary]
    assert canonicalize_image_urls([mirror, primary]) == [primary]
