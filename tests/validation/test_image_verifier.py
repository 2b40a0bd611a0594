from types import SimpleNamespace

import requests

from vouchcord.validation.image_verifier import USER_AGENT, HttpImageVerifier

URL = "https://cdn.discordapp.com/attachments/1/2/a.png?ex=1"


class FakeResponse:
    def __init__(self, status=200, content_type="image/png"):
        self.ok = status < 400
        self.status_code = status
        self.headers = {"Content-Type": content_type} if content_type else {}
        self.closed = False

    def close(self):
        self.closed = True


class FakeSession:
    def __init__(self, head=None, get=None, head_error=None):
        self._head = head
        self._get = get
        self._head_error = head_error
        self.calls = []

    def head(self, url, **kwargs):
        self.calls.append(SimpleNamespace(method="HEAD", url=url, kwargs=kwargs))
        if self._head_error:
            raise self._head_error
        return self._head

    def get(self, url, **kwargs):
        self.calls.append(SimpleNamespace(method="GET", url=url, kwargs=kwargs))
        return self._get


def test_head_with_image_content_type_passes():
    session = FakeSession(head=FakeResponse())
    verifier = HttpImageVerifier(timeout=1.5, session=session)

    assert verifier(URL) is True
    assert [c.method for c in session.calls] == ["HEAD"]
    assert session.calls[0].kwargs["timeout"] == 1.5
    assert session.calls[0].kwargs["headers"]["User-Agent"] == USER_AGENT


def test_failed_head_falls_back_to_ranged_get():
    get_response = FakeResponse(status=206, content_type="image/jpeg")
    session = FakeSession(head=FakeResponse(status=405, content_type=None), get=get_response)

    assert HttpImageVerifier(session=session)(URL) is True
    assert [c.method for c in session.calls] == ["HEAD", "GET"]
    assert session.calls[1].kwargs["headers"]["Range"] == "bytes=0-1024"
    assert get_response.closed is True


def test_non_image_content_type_fails():
    session = FakeSession(head=FakeResponse(content_type="text/html"))
    assert HttpImageVerifier(session=session)(URL) is False
    # A successful HEAD is trusted; no GET fallback
    assert [c.method for c in session.calls] == ["HEAD"]


def test_get_fallback_with_error_status_fails():
    session = FakeSession(head=FakeResponse(status=404), get=FakeResponse(status=404))
    assert HttpImageVerifier(session=session)(URL) is False


def test_network_errors_count_as_unverified():
    session = FakeSession(head_error=requests.Timeout("slow"))
    assert HttpImageVerifier(session=session)(URL) is False

    session = FakeSession(head_error=RuntimeError("boom"))
    assert HttpImageVerifier(session=session)(URL) is False
