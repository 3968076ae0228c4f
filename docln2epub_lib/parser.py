import logging
from typing import List, Optional

from bs4 import BeautifulSoup

from .constants import HTML_PARSER
from .errors import ParseError
from .models import Chapter, Novel, Volume
from .utils import TextUtils

logger = logging.getLogger(__name__)


class NovelInfoParser:
    """Reads a novel listing page into a ``Novel`` with its volumes and chapters."""

    def parse(self, page_html: str, url: str, novel_id: int) -> Novel:
        soup = BeautifulSoup(page_html, HTML_PARSER)
        novel = Novel(id=novel_id, url=url)

        name_tag = soup.find("span", "series-name")
        novel.title = TextUtils.clean_text(name_tag.get_text()) if name_tag else ""
        if not novel.title:
            raise ParseError(f"Novel title not found: {url}")

        for item in soup.find_all("div", "info-item"):
            label = item.find("span", "info-name")
            value = self._info_value(item)
            if not label or not value:
                continue
            if "Tác giả" in label.text:
                novel.author = value
            elif "Họa sĩ" in label.text:
                novel.illustrator = value
        if not novel.author:
            raise ParseError(f"Author not found: {url}")

        summary = soup.find("div", "summary-content")
        if summary:
            paragraphs = [TextUtils.clean_text(p.get_text()) for p in summary.find_all("p")]
            novel.summary = "\n".join(p for p in paragraphs if p)

        genres = soup.find("div", "series-gernes")
        if genres:
            novel.tags = [TextUtils.clean_text(a.get_text()) for a in genres.find_all("a")]
            novel.tags = [t for t in novel.tags if t]

        cover_div = soup.select_one("div.series-cover div.img-in-ratio")
        if cover_div:
            novel.cover_url = TextUtils.extract_style_url(cover_div.get("style")) or ""

        novel.volumes = self.parse_volumes(soup, url)
        logger.info(
            f"Parsed: {novel.title} | Volumes: {len(novel.volumes)} | Tags: {len(novel.tags)}"
        )
        return novel

    @staticmethod
    def _info_value(item) -> Optional[str]:
        value = item.find("span", "info-value")
        if not value:
            return None
        link = value.find("a")
        text = TextUtils.clean_text((link or value).get_text())
        return text or None

    def parse_volumes(self, soup: BeautifulSoup, url: str) -> List[Volume]:
        volumes = []
        for li in soup.select("section#list-vol ol.list-volume li"):
            volume_id = li.get("data-scrollto", "")
            if not volume_id:
                continue
            title_span = li.find("span", "list_vol-title")
            title = TextUtils.clean_text(title_span.get_text()) if title_span else ""
            volume = Volume(
                title=title or "Unknown Vol",
                volume_id=volume_id,
            )

            header = soup.find("header", id=volume_id.lstrip("#"))
            section = header.parent if header else None
            if section is None:
                logger.warning(f"Volume section not found: {volume.title} ({volume_id})")
            else:
                cover_div = section.select_one("div.volume-cover div.img-in-ratio")
                if cover_div:
                    volume.cover_url = TextUtils.extract_style_url(cover_div.get("style")) or ""
                volume.chapters = self.parse_chapters(section, url)
            volumes.append(volume)
        return volumes

    @staticmethod
    def parse_chapters(section, url: str) -> List[Chapter]:
        chapters = []
        chapter_list = section.find("ul", "list-chapters")
        if not chapter_list:
            return chapters
        for li in chapter_list.find_all("li"):
            name_div = li.find("div", "chapter-name")
            link = name_div.find("a") if name_div else None
            if not link or not link.get("href"):
                continue
            title = TextUtils.clean_text(link.get_text())
            if not title:
                continue
            chapters.append(
                Chapter(
                    title=title,
                    url=TextUtils.reformat_url(url, link["href"]),
                    # The listing marks illustrated chapters with an icon
                    has_illustrations=name_div.find("i") is not None,
                )
            )
        return chapters


class ChapterContentParser:
    """Extracts the paragraph fragments of a chapter page."""

    BAD_CLASSES = ["d-none", "d-md-block", "flex", "note-content"]

    def parse(self, page_html: str) -> List[str]:
        soup = BeautifulSoup(page_html, HTML_PARSER)
        content_div = soup.find("div", id="chapter-content")
        if not content_div:
            raise ParseError("Chapter content not found")

        for bad in content_div.find_all(["div", "p", "a"], class_=self.BAD_CLASSES):
            bad.decompose()

        return [str(p) for p in content_div.find_all("p")]
