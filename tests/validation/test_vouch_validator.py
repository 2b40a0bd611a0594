import pytest

from vouchcord.validation.vouch_validator import (
    VouchValidator,
    clean_vouch_message,
    extract_vouch_value,
    is_valid_vouch,
)


def test_valid_vouch_needs_keyword_mention_and_value():
    assert is_valid_vouch("+rep <@1> legit 500 inr deal", ["1"]) is True


@pytest.mark.parametrize(
    "content, mentions",
    [
        ("<@1> 500 inr", ["1"]),          # no positive keyword
        ("legit 500 inr", []),             # no mention
        ("legit vouch <@1>", ["1"]),       # no value keyword
        ("", []),
    ],
)
def test_invalid_vouches_are_rejected(content, mentions):
    assert is_valid_vouch(content, mentions) is False


def test_keyword_matching_is_case_insensitive_substring():
    # "LEGITIMATE" contains "legit", "NITRO" is a value keyword
    assert is_valid_vouch("LEGITIMATE seller, got NITRO", [42]) is True


def test_empty_allow_list_accepts_any_mention():
    validator = VouchValidator()
    assert validator.has_required_mention(["123"]) is True
    assert validator.has_required_mention([]) is False


def test_allow_list_requires_an_allowed_mention():
    validator = VouchValidator(allowed_mention_ids=[111, "222"])

    assert validator.is_valid("legit trade", ["333"]) is False
    assert validator.is_valid("legit trade", ["333", "222"]) is True
    assert validator.is_valid("legit trade", [111]) is True


def test_is_valid_tolerates_none_inputs():
    assert VouchValidator().is_valid(None, None) is False  # type: ignore[arg-type]


def test_clean_vouch_message_strips_emoji_and_whitespace():
    raw = "  legit <:pepe:123456>  deal\n\n<a:dance:987> thanks  "
    assert clean_vouch_message(raw) == "legit deal thanks"


def test_clean_vouch_message_is_idempotent_for_nested_tokens():
    raw = "vouch <:a<:b:1>:2> done"
    once = clean_vouch_message(raw)
    assert once == "vouch done"
    assert clean_vouch_message(once) == once


def test_clean_vouch_message_empty():
    assert clean_vouch_message("") == ""
    assert clean_vouch_message("   ") == ""


@pytest.mark.parametrize(
    "content, expected",
    [
        ("legit 500 INR", "500 INR"),
        ("paid 250rs via upi", "250 INR"),
        ("got 2.5k owo from him", "2.5K OWO"),
        ("10 owo", "10 OWO"),
        ("legit $20 btc", "$20 BTC"),
        ("15 usdt received", "$15 USDT"),
        ("bought nitro, legit", "Nitro"),
        ("profile decor trade", "Decor"),
        ("300 robux vouch", "300 Robux"),
        ("vouch thanks", None),
    ],
)
def test_extract_vouch_value(content, expected):
    assert extract_vouch_value(content) == expected


def test_extract_vouch_value_prefers_rupees_over_later_patterns():
    assert extract_vouch_value("100 inr and nitro") == "100 INR"


@pytest.mark.parametrize(
    "content, expected",
    [("paid 500 INR for this", "500 INR"), ("got nitro today", "Nitro"), ("random text", None)],
)
def test_extract_vouch_value_documented_examples(content, expected):
    assert extract_vouch_value(content) == expected
