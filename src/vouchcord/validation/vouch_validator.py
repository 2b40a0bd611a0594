"""Rules deciding whether a chat message counts as a vouch.

A vouch must contain an endorsement keyword, mention the user being vouched
for, and name something of value. All three checks are plain substring tests
on the lower-cased content, so "legitimate" satisfies "legit".
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from vouchcord.util.logger import get_logger

logger = get_logger("vouch_validator")

POSITIVE_KEYWORDS: tuple[str, ...] = (
    "legit",
    "vouch",
    "trusted",
    "rep",
    "+rep",
    "ref",
    "thanks",
    "tysm",
    "ty",
)

VALUE_KEYWORDS: tuple[str, ...] = (
    "inr",
    "owo",
    "nitro",
    "decor",
    "ltc",
    "btc",
    "crypto",
    "usd",
    "dollar",
    "$",
    "rs",
    "rupee",
    "eth",
    "usdt",
    "upi",
    "paytm",
    "gpay",
    "phonepe",
    "robux",
    "credits",
    "sol",
    "xrp",
    "binance",
    "cash",
    "money",
    "amount",
    "deal",
    "trade",
    "exchange",
    "swap",
    "sell",
    "buy",
)

# <:name:id> and <a:name:id>
CUSTOM_EMOJI_PATTERN = re.compile(r"<a?:\w+:\d+>")
WHITESPACE_PATTERN = re.compile(r"\s+")

INR_PATTERN = re.compile(r"(\d+)\s*(?:inr|rs|rupee)", re.IGNORECASE)
OWO_PATTERN = re.compile(r"([\d.]+)\s*([km])?\s*owo", re.IGNORECASE)
CRYPTO_PATTERN = re.compile(
    r"(?:\$|usd)?\s*(\d+\.?\d*)\s*(?:\$|usd)?\s*(ltc|btc|eth|usdt|crypto|sol|xrp)",
    re.IGNORECASE,
)
ROBUX_PATTERN = re.compile(r"(\d+)\s*(?:robux|rbx)", re.IGNORECASE)


class VouchValidator:
    """Stateless vouch checker with an optional mention allow-list.

    Args:
        allowed_mention_ids: User IDs a vouch may be addressed to. Empty
            means any mentioned user is accepted.
    """

    def __init__(self, allowed_mention_ids: Optional[Iterable[str | int]] = None) -> None:
        self.allowed_mention_ids = frozenset(str(uid) for uid in (allowed_mention_ids or ()))

    def has_positive_keyword(self, content: str) -> bool:
        text = content.lower()
        return any(keyword in text for keyword in POSITIVE_KEYWORDS)

    def has_required_mention(self, mentioned_user_ids: Iterable[str | int]) -> bool:
        mentioned = {str(uid) for uid in mentioned_user_ids}
        if not mentioned:
            return False
        if not self.allowed_mention_ids:
            return True
        return not mentioned.isdisjoint(self.allowed_mention_ids)

    def has_value_keyword(self, content: str) -> bool:
        text = content.lower()
        return any(keyword in text for keyword in VALUE_KEYWORDS)

    def is_valid(self, content: str, mentioned_user_ids: Iterable[str | int]) -> bool:
        """Return True only when the keyword, mention and value checks all pass."""
        content = content or ""
        if not self.has_positive_keyword(content):
            logger.debug("[VOUCH] Rejected: no positive keyword")
            return False
        if not self.has_required_mention(mentioned_user_ids or ()):
            logger.debug("[VOUCH] Rejected: no acceptable mention")
            return False
        if not self.has_value_keyword(content):
            logger.debug("[VOUCH] Rejected: no value keyword")
            return False
        return True


def is_valid_vouch(
    content: str,
    mentioned_user_ids: Iterable[str | int],
    allowed_mention_ids: Optional[Iterable[str | int]] = None,
) -> bool:
    """Check a message against the vouch rules.

    Args:
        content: Raw message content.
        mentioned_user_ids: IDs of users mentioned in the message.
        allowed_mention_ids: Optional allow-list; see :class:`VouchValidator`.

    Returns:
        bool: True if the message is a valid vouch.
    """
    return VouchValidator(allowed_mention_ids).is_valid(content, mentioned_user_ids)


def clean_vouch_message(content: str) -> str:
    """Remove custom emoji tokens and normalise whitespace for display and storage.

    Emoji removal repeats until nothing changes so that tokens exposed by an
    inner removal are stripped too, which keeps the function idempotent.
    """
    cleaned = content or ""
    while True:
        stripped = CUSTOM_EMOJI_PATTERN.sub("", cleaned)
        if stripped == cleaned:
            break
        cleaned = stripped
    return WHITESPACE_PATTERN.sub(" ", cleaned.strip())


def extract_vouch_value(content: str) -> Optional[str]:
    """Best-effort extraction of what the vouch was worth.

    Patterns are tried in a fixed order and the first match wins: rupee
    amounts, OWO amounts, crypto amounts, then the bare "Nitro" and "Decor"
    keywords, then Robux amounts.

    Returns:
        str | None: e.g. ``"500 INR"``, ``"$20 BTC"``, ``"Nitro"``; None if nothing matched.
    """
    text = (content or "").lower()

    inr_match = INR_PATTERN.search(text)
    if inr_match:
        return f"{inr_match.group(1)} INR"

    owo_match = OWO_PATTERN.search(text)
    if owo_match:
        multiplier = owo_match.group(2).upper() if owo_match.group(2) else ""
        return f"{owo_match.group(1)}{multiplier} OWO"

    crypto_match = CRYPTO_PATTERN.search(text)
    if crypto_match:
        return f"${crypto_match.group(1)} {crypto_match.group(2).upper()}"

    if "nitro" in text:
        return "Nitro"

    if "decor" in text:
        return "Decor"

    robux_match = ROBUX_PATTERN.search(text)
    if robux_match:
        return f"{robux_match.group(1)} Robux"

    return None
