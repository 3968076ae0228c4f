import pytest
import requests

from docln2epub_lib.errors import FetchError
from docln2epub_lib.network import NetworkManager


class StubResponse:
    def __init__(self, status=200, content=b"", text=""):
        self.status_code = status
        self.content = content
        self.text = text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class StubSession:
    def __init__(self, response=None, error=None):
        self.headers = {}
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.error:
            raise self.error
        return self.response


def test_fetch_bytes_uses_timeout_and_rewrites_host():
    session = StubSession(StubResponse(content=b"img"))
    network = NetworkManager(timeout=5, session=session)

    assert network.fetch_bytes("//i2.docln.net/a.jpg") == b"img"
    assert session.calls == [("https://i2.hako.vip/a.jpg", 5)]
    assert "User-Agent" in session.headers


def test_http_error_becomes_fetch_error():
    network = NetworkManager(session=StubSession(StubResponse(status=404)))

    with pytest.raises(FetchError) as excinfo:
        network.fetch_text("https://docln.net/sang-tac/1")
    assert excinfo.value.url == "https://docln.net/sang-tac/1"


def test_timeout_becomes_fetch_error():
    network = NetworkManager(session=StubSession(error=requests.Timeout("slow")))

    with pytest.raises(FetchError):
        network.fetch_bytes("https://docln.net/a.jpg")
