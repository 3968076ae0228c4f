import html
import logging
from typing import Dict, List, Mapping, Optional, Sequence

from bs4 import BeautifulSoup
from ebooklib import epub

from .constants import CSS_FILE, HTML_PARSER, LANGUAGE
from .errors import ParseError
from .utils import PathUtils

logger = logging.getLogger(__name__)


class ContentDocumentBuilder:
    """Renders chapters and volume covers into standalone XHTML documents.

    Every document lives in ``text/volume_NNN/`` so links to the stylesheet
    and images are made two levels up.
    """

    def __init__(self, language: str = LANGUAGE):
        self.language = language
        self.stylesheet_href = PathUtils.from_text(CSS_FILE)

    @staticmethod
    def media_sources(fragments: Sequence[str]) -> List[str]:
        """Distinct ``<img>`` sources in document order."""
        sources = []
        for fragment in fragments:
            soup = BeautifulSoup(fragment, HTML_PARSER)
            for img in soup.find_all("img"):
                src = img.get("src")
                if src and src not in sources:
                    sources.append(src)
        return sources

    @staticmethod
    def rewrite_fragment(fragment: str, rewrites: Mapping[str, str]) -> str:
        if not rewrites:
            return fragment
        soup = BeautifulSoup(fragment, HTML_PARSER)
        changed = False
        for img in soup.find_all("img"):
            local = rewrites.get(img.get("src"))
            if local is None:
                continue
            img["src"] = local
            for attr in ("style", "onclick"):
                if attr in img.attrs:
                    del img[attr]
            changed = True
        return str(soup) if changed else fragment

    def render(
        self,
        title: str,
        body_fragments: Sequence[str],
        inline_media_rewrites: Optional[Mapping[str, str]] = None,
    ) -> bytes:
        rewrites: Dict[str, str] = dict(inline_media_rewrites or {})
        body = "\n".join(self.rewrite_fragment(f, rewrites) for f in body_fragments)
        content = (
            f"<h1>{html.escape(title)}</h1>\n"
            f'<div class="chapter-content">\n{body}\n</div>'
        )
        return self._to_document(title, content)

    def render_volume_cover(self, title: str, cover_image_path: str) -> bytes:
        src = html.escape(PathUtils.from_text(cover_image_path))
        content = (
            f"<h1>{html.escape(title)}</h1>\n"
            f'<div class="volume-cover">\n'
            f'<img src="{src}" alt="{html.escape(title)}"/>\n'
            f"</div>"
        )
        return self._to_document(title, content)

    def _to_document(self, title: str, content: str) -> bytes:
        book = epub.EpubBook()
        book.set_language(self.language)
        page = epub.EpubHtml(title=title, file_name="page.xhtml", content=content)
        page.add_link(href=self.stylesheet_href, rel="stylesheet", type="text/css")
        book.add_item(page)

        try:
            document = page.get_content()
        except ValueError as e:
            # lxml rejects control characters in text nodes
            raise ParseError(f"Could not render document '{title}': {e}") from e
        if not document:
            raise ParseError(f"Could not render document '{title}'")
        return document
