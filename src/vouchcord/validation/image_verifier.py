"""Network-backed image URL verification.

:class:`HttpImageVerifier` is a drop-in ``verifier`` for
:func:`vouchcord.validation.image_extractor.extract_image_urls`. It blocks the
calling thread, so async callers should go through
:func:`vouchcord.validation.image_extractor.verify_image_urls`, which runs
one check per worker thread.
"""

from __future__ import annotations

import requests

from vouchcord.util.logger import get_logger

logger = get_logger("image_verifier")

USER_AGENT = "DiscordBot (Vouchcord, 1.0.0)"


class HttpImageVerifier:
    """Check that a URL is reachable and serves an image.

    A HEAD request is tried first. If it does not succeed, a GET for the
    first kilobyte is tried instead. The URL passes only when a successful
    response reports a ``Content-Type`` starting with ``image/``. Timeouts,
    connection errors and any other failure count as "not verified".

    Args:
        timeout: Per-request timeout in seconds.
        session: Optional ``requests.Session`` to reuse connections.
    """

    def __init__(self, timeout: float = 3.0, session: requests.Session | None = None) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()

    @staticmethod
    def _is_image_response(response: requests.Response) -> bool:
        content_type = (response.headers.get("Content-Type") or "").lower()
        return response.ok and content_type.startswith("image/")

    def __call__(self, url: str) -> bool:
        headers = {"User-Agent": USER_AGENT}
        try:
            response = self.session.head(url, headers=headers, timeout=self.timeout, allow_redirects=True)
            if self._is_image_response(response):
                return True

            if not response.ok:
                response = self.session.get(
                    url,
                    headers={**headers, "Range": "bytes=0-1024"},
                    timeout=self.timeout,
                    stream=True,
                )
                try:
                    if self._is_image_response(response):
                        return True
                finally:
                    response.close()

            logger.debug(f"[VERIFY] Not an image response for {url}")
            return False
        except requests.RequestException as exc:
            logger.warning(f"[VERIFY] Request failed for {url}: {exc}")
            return False
        except Exception as exc:
            logger.error(f"[VERIFY] Unexpected error verifying {url}: {exc}")
            return False
