import zipfile

import pytest
from bs4 import BeautifulSoup

from docln2epub_lib.config import JobConfig
from docln2epub_lib.errors import FetchError, ParseError
from docln2epub_lib.job import ChapterRenderer, ConversionJob, convert_novel, describe_novel
from docln2epub_lib.assets import AssetResolver
from docln2epub_lib.content import ContentDocumentBuilder
from docln2epub_lib.models import Chapter

from .conftest import FakeFetcher, chapter_page
from .test_parser import LISTING


@pytest.fixture
def config(tmp_path):
    return JobConfig(output_dir=tmp_path, delay=0)


def test_full_job_with_failed_chapter(tmp_path, novel, config, png_bytes, jpeg_bytes):
    novel.cover_url = "https://i.docln.net/covers/main.jpg"
    novel.volumes[0].cover_url = "https://i.docln.net/covers/v1.png"
    fetcher = FakeFetcher(
        pages={
            "https://docln.net/c/1": chapter_page(
                "<p>Một</p>", '<p><img src="https://i.docln.net/ill/1.png"></p>'
            ),
            "https://docln.net/c/3": chapter_page("<p>Ba</p>"),
        },
        files={
            "https://i.docln.net/covers/main.jpg": jpeg_bytes,
            "https://i.docln.net/covers/v1.png": png_bytes,
            "https://i.docln.net/ill/1.png": png_bytes,
        },
    )

    epub_path = ConversionJob(novel, tmp_path / "epub_1234", fetcher, config).run()

    assert epub_path == tmp_path / "docln_1234.epub"
    assert not (tmp_path / "epub_1234").exists()
    with zipfile.ZipFile(epub_path) as zf:
        names = zf.namelist()
        assert names[0] == "mimetype"
        assert "OEBPS/images/cover.jpg" in names
        assert "OEBPS/images/volume_001/Tập_1.png" in names
        assert "OEBPS/images/volume_001/chapter_001/001.png" in names
        assert "OEBPS/text/volume_001/chapter_000.xhtml" in names
        assert "OEBPS/text/volume_001/chapter_001.xhtml" in names
        assert "OEBPS/text/volume_001/chapter_002.xhtml" not in names
        assert "OEBPS/text/volume_002/chapter_001.xhtml" in names

        chapter = BeautifulSoup(zf.read("OEBPS/text/volume_001/chapter_001.xhtml"), "html.parser")
        assert chapter.img["src"] == "../../images/volume_001/chapter_001/001.png"

        opf = zf.read("OEBPS/content.opf").decode("utf-8")
        assert opf.count("<itemref ") == 3

    assert novel.volumes[0].chapters[1].xhtml_path is None
    assert novel.volumes[0].chapters[0].illustration_paths == [
        "../../images/volume_001/chapter_001/001.png"
    ]


def test_failed_image_keeps_remote_url_and_numbering(tmp_path, png_bytes):
    oebps = tmp_path / "OEBPS"
    fetcher = FakeFetcher(files={"https://x/b.png": png_bytes})
    renderer = ChapterRenderer(oebps, AssetResolver(oebps, fetcher), ContentDocumentBuilder())
    chapter = Chapter(title="c", url="https://docln.net/c/1", has_illustrations=True)
    fragments = ['<p><img src="https://x/a.png"></p>', '<p><img src="https://x/b.png"></p>']

    href = renderer.render_chapter(chapter, fragments, 0, 0)

    soup = BeautifulSoup((oebps / href).read_bytes(), "html.parser")
    assert [img["src"] for img in soup.find_all("img")] == [
        "https://x/a.png",
        "../../images/volume_001/chapter_001/001.png",
    ]


def test_flagged_chapter_without_images_matches_plain_rendering(tmp_path):
    oebps = tmp_path / "OEBPS"
    renderer = ChapterRenderer(oebps, AssetResolver(oebps, FakeFetcher()), ContentDocumentBuilder())
    fragments = ["<p>chỉ có chữ</p>"]

    flagged = Chapter(title="c", url="u", has_illustrations=True)
    plain = Chapter(title="c", url="u", has_illustrations=False)
    first = (oebps / renderer.render_chapter(flagged, fragments, 0, 0)).read_bytes()
    second = (oebps / renderer.render_chapter(plain, fragments, 0, 1)).read_bytes()

    assert first == second
    assert not (oebps / "images").exists()


def test_relative_image_sources_are_fetched_absolute(tmp_path, png_bytes):
    oebps = tmp_path / "OEBPS"
    fetcher = FakeFetcher(files={"https://docln.net/img/x.png": png_bytes})
    renderer = ChapterRenderer(oebps, AssetResolver(oebps, fetcher), ContentDocumentBuilder())
    chapter = Chapter(title="c", url="https://docln.net/c/1")

    renderer.render_chapter(chapter, ['<p><img src="/img/x.png"></p>'], 0, 0)

    assert chapter.illustration_paths == ["../../images/volume_001/chapter_001/001.png"]


def test_cancelled_job_still_packages(tmp_path, novel, config):
    fetcher = FakeFetcher(pages={"https://docln.net/c/1": chapter_page("<p>x</p>")})
    job = ConversionJob(novel, tmp_path / "epub_1234", fetcher, config)
    job.cancel()

    epub_path = job.run()

    assert fetcher.requests == []
    with zipfile.ZipFile(epub_path) as zf:
        assert zf.namelist()[0] == "mimetype"
        assert not any(n.startswith("OEBPS/text/") for n in zf.namelist())


def test_chapter_order_does_not_depend_on_arrival(tmp_path, novel):
    config = JobConfig(output_dir=tmp_path, delay=0, threads=3)
    fetcher = FakeFetcher(
        pages={u: chapter_page(f"<p>{u}</p>") for u in
               ["https://docln.net/c/1", "https://docln.net/c/2", "https://docln.net/c/3"]}
    )

    epub_path = ConversionJob(novel, tmp_path / "epub_1234", fetcher, config).run()

    with zipfile.ZipFile(epub_path) as zf:
        opf = zf.read("OEBPS/content.opf").decode("utf-8")
    spine = opf[opf.index("<spine"):]
    assert spine.index("chapter1_1") < spine.index("chapter1_2") < spine.index("chapter2_1")


def test_convert_novel_end_to_end(config):
    url = "https://docln.net/sang-tac/1234"
    fetcher = FakeFetcher(
        pages={
            url: LISTING,
            "https://docln.net/sang-tac/c1": chapter_page("<p>1</p>"),
            "https://docln.net/sang-tac/c2": chapter_page("<p>2</p>"),
        }
    )

    epub_path, novel = convert_novel(1234, config, fetcher)

    assert epub_path.name == "docln_1234.epub"
    assert [c.xhtml_path for c in novel.volumes[0].chapters] == [
        "text/volume_001/chapter_001.xhtml",
        "text/volume_001/chapter_002.xhtml",
    ]
    assert novel.volumes[1].cover_image_path is None
    assert "Truyện Thử" in describe_novel(novel)


def test_convert_novel_aborts_without_listing(config):
    with pytest.raises(FetchError):
        convert_novel(99, config, FakeFetcher())
    assert not config.work_dir(99).exists()


def test_convert_novel_aborts_without_author(config):
    url = "https://docln.net/sang-tac/5"
    fetcher = FakeFetcher(pages={url: LISTING.replace("Tác giả:", "Nhóm dịch:")})

    with pytest.raises(ParseError):
        convert_novel(5, config, fetcher)
    assert not config.work_dir(5).exists()


def test_config_validation(tmp_path):
    with pytest.raises(ValueError):
        JobConfig(output_dir=tmp_path, category="unknown")
    assert JobConfig(category="ai-dich").novel_url(7) == "https://docln.net/ai-dich/7"


def test_illustration_without_image_suffix_is_in_the_manifest(tmp_path, novel, config, png_bytes):
    url = "https://i.docln.net/ill/show.php?id=1"
    fetcher = FakeFetcher(
        pages={"https://docln.net/c/1": chapter_page(f'<p><img src="{url}"></p>')},
        files={url: png_bytes},
    )

    epub_path = ConversionJob(novel, tmp_path / "epub_1234", fetcher, config).run()

    with zipfile.ZipFile(epub_path) as zf:
        chapter = BeautifulSoup(zf.read("OEBPS/text/volume_001/chapter_001.xhtml"), "html.parser")
        opf = zf.read("OEBPS/content.opf").decode("utf-8")
    assert chapter.img["src"] == "../../images/volume_001/chapter_001/001.png"
    assert 'href="images/volume_001/chapter_001/001.png"' in opf
