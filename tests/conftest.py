import io

import pytest
from PIL import Image

from docln2epub_lib.errors import FetchError
from docln2epub_lib.models import Chapter, Novel, Volume


def make_image(fmt: str = "PNG", color=(200, 30, 30)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color).save(buf, format=fmt)
    return buf.getvalue()


class FakeFetcher:
    """In-memory stand-in for NetworkManager."""

    def __init__(self, pages=None, files=None):
        self.pages = dict(pages or {})
        self.files = dict(files or {})
        self.requests = []

    def fetch_text(self, url: str) -> str:
        self.requests.append(url)
        if url not in self.pages:
            raise FetchError(url, "404 Not Found")
        return self.pages[url]

    def fetch_bytes(self, url: str) -> bytes:
        self.requests.append(url)
        if url not in self.files:
            raise FetchError(url, "404 Not Found")
        return self.files[url]


def chapter_page(*paragraphs: str) -> str:
    body = "".join(paragraphs)
    return f'<html><body><div id="chapter-content">{body}</div></body></html>'


@pytest.fixture
def png_bytes():
    return make_image("PNG")


@pytest.fixture
def jpeg_bytes():
    return make_image("JPEG")


@pytest.fixture
def oebps(tmp_path):
    path = tmp_path / "epub_1" / "OEBPS"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def novel():
    return Novel(
        id=1234,
        url="https://docln.net/sang-tac/1234",
        title="Chuyện & Kể",
        author="Tác giả A",
        summary="Line one\nLine two",
        tags=["Action", "Fantasy"],
        volumes=[
            Volume(
                title="Tập 1",
                volume_id="#volume_1",
                chapters=[
                    Chapter(title="Chương 1", url="https://docln.net/c/1"),
                    Chapter(title="Chương 2", url="https://docln.net/c/2"),
                ],
            ),
            Volume(
                title="Tập 2",
                volume_id="#volume_2",
                chapters=[Chapter(title="Chương 1", url="https://docln.net/c/3")],
            ),
        ],
    )
