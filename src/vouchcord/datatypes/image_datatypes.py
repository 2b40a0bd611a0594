from __future__ import annotations

import re
from typing import Union
from urllib.parse import SplitResult, urlsplit


# Canonical CDN host class first, mirror host class second
PRIMARY_CDN_HOSTS = frozenset({"cdn.discordapp.com", "cdn.discordapp.net"})
MIRROR_CDN_HOSTS = frozenset({"media.discordapp.net", "media.discordapp.com"})
KNOWN_CDN_HOSTS = PRIMARY_CDN_HOSTS | MIRROR_CDN_HOSTS

IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "webp", "bmp", "svg", "jfif", "tiff")

IMAGE_EXTENSION_PATTERN = re.compile(r"\.(?:" + "|".join(IMAGE_EXTENSIONS) + r")(?:\?|$)", re.IGNORECASE)
ATTACHMENT_PATH_PATTERN = re.compile(r"/attachments/(\d+)/(\d+)/")


class ImageURL:
    """
    Parsed image URL with the properties the proof pipeline cares about.

    Construction fails with ValueError for anything that is not an absolute
    http(s) URL with a host, so callers can use a single ``try`` to skip
    malformed candidates.

    Example:
        >>> url = ImageURL("https://cdn.discordapp.com/attachments/1/999/a.png?ex=1")
        >>> url.attachment_id
        '999'
        >>> url.is_primary_host, url.has_query
        (True, True)
    """

    __slots__ = ("_value", "_parts")

    def __init__(self, value: Union[str, "ImageURL"]) -> None:
        if isinstance(value, ImageURL):
            self._value = value._value
            self._parts = value._parts
            return
        if not isinstance(value, str):
            raise ValueError(f"Cannot create ImageURL from {type(value).__name__}: {value}")

        url = value.strip()
        if not url:
            raise ValueError("ImageURL cannot be empty")

        parts: SplitResult = urlsplit(url)
        # Accessing .port validates the netloc; it raises ValueError on garbage
        _ = parts.port
        if parts.scheme.lower() not in ("http", "https") or not parts.hostname:
            raise ValueError(f"Not an absolute http(s) URL: {url!r}")

        self._value = url
        self._parts = parts

    @property
    def hostname(self) -> str:
        return (self._parts.hostname or "").lower()

    @property
    def path(self) -> str:
        return self._parts.path

    @property
    def has_query(self) -> bool:
        return bool(self._parts.query)

    @property
    def is_primary_host(self) -> bool:
        return self.hostname in PRIMARY_CDN_HOSTS

    @property
    def is_mirror_host(self) -> bool:
        return self.hostname in MIRROR_CDN_HOSTS

    @property
    def is_known_host(self) -> bool:
        return self.hostname in KNOWN_CDN_HOSTS

    @property
    def has_image_extension(self) -> bool:
        return IMAGE_EXTENSION_PATTERN.search(self._value) is not None

    @property
    def attachment_id(self) -> str | None:
        """Numeric attachment ID from ``/attachments/{channel}/{attachment}/``, if present."""
        match = ATTACHMENT_PATH_PATTERN.search(self._parts.path)
        return match.group(2) if match else None

    @property
    def dedup_key(self) -> str:
        """Attachment ID when extractable, otherwise the full URL."""
        return self.attachment_id or self._value

    def to_string(self) -> str:
        return self._value

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"ImageURL({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ImageURL):
            return self._value == other._value
        if isinstance(other, str):
            return self._value == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)
