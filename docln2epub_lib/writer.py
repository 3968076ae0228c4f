"""Serializes a ``PackageModel`` into an EPUB 2 working tree."""

import logging
from collections import Counter
from datetime import date
from html import escape
from pathlib import Path
from typing import List, Optional

from .constants import (
    CONTAINER_FILE,
    CSS,
    CSS_FILE,
    CSS_MEDIA_TYPE,
    GENERATOR,
    IDENTIFIER_PREFIX,
    LANGUAGE,
    META_INF_DIR,
    MIMETYPE,
    MIMETYPE_FILE,
    NCX_FILE,
    NCX_MEDIA_TYPE,
    OEBPS_DIR,
    OPF_FILE,
    OPF_MEDIA_TYPE,
)
from .content import ContentDocumentBuilder
from .errors import PackageError
from .models import ManifestItem, NavPoint, PackageModel, UnitKind

logger = logging.getLogger(__name__)


class PackageWriter:
    def __init__(self, builder: Optional[ContentDocumentBuilder] = None):
        self.builder = builder or ContentDocumentBuilder()

    def write(self, model: PackageModel, destination_root: Path):
        root = Path(destination_root)
        oebps = root / OEBPS_DIR
        try:
            (root / META_INF_DIR).mkdir(parents=True, exist_ok=True)
            oebps.mkdir(parents=True, exist_ok=True)

            (root / MIMETYPE_FILE).write_bytes(MIMETYPE.encode("ascii"))
            self._write_text(root / META_INF_DIR / CONTAINER_FILE, self.container_xml())
            self._write_text(oebps / CSS_FILE, CSS.strip() + "\n")
            self.write_volume_covers(model, oebps)

            self.check(model, oebps)

            self._write_text(oebps / OPF_FILE, self.content_opf(model))
            self._write_text(oebps / NCX_FILE, self.toc_ncx(model))
        except OSError as e:
            raise PackageError(f"Cannot write package to {root}: {e}") from e
        logger.info(f"Package metadata written to {root}")

    @staticmethod
    def _write_text(path: Path, text: str):
        path.write_text(text, encoding="utf-8")

    def write_volume_covers(self, model: PackageModel, oebps: Path):
        for unit in model.units:
            if unit.kind is not UnitKind.VOLUME_COVER:
                continue
            path = oebps / unit.href
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(
                self.builder.render_volume_cover(unit.title, unit.cover_image_path)
            )
            logger.debug(f"Volume cover page written: {unit.href}")

    @staticmethod
    def manifest_items(model: PackageModel) -> List[ManifestItem]:
        return [
            ManifestItem(id="ncx", href=NCX_FILE, media_type=NCX_MEDIA_TYPE),
            ManifestItem(id="style", href=CSS_FILE, media_type=CSS_MEDIA_TYPE),
        ] + list(model.manifest)

    def check(self, model: PackageModel, oebps: Path):
        """Spine/manifest referential integrity and unit files on disk."""
        items = self.manifest_items(model)
        ids = Counter(item.id for item in items)
        duplicates = [i for i, n in ids.items() if n > 1]
        if duplicates:
            raise PackageError(f"Duplicate manifest ids: {', '.join(duplicates)}")

        hrefs = {item.id: item.href for item in items}
        for idref in model.spine:
            if idref not in hrefs:
                raise PackageError(f"Spine references unknown item '{idref}'")

        for unit in model.units:
            if hrefs.get(unit.id) != unit.href:
                raise PackageError(f"Unit '{unit.id}' is not in the manifest as {unit.href}")
            if not (oebps / unit.href).is_file():
                raise PackageError(f"Unit '{unit.id}' has no document at {unit.href}")

    @staticmethod
    def container_xml() -> str:
        return f"""<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
    <rootfiles>
        <rootfile full-path="{OEBPS_DIR}/{OPF_FILE}" media-type="{OPF_MEDIA_TYPE}"/>
    </rootfiles>
</container>
"""

    @staticmethod
    def identifier(model: PackageModel) -> str:
        return f"{IDENTIFIER_PREFIX}:{model.novel.id}"

    def content_opf(self, model: PackageModel) -> str:
        novel = model.novel
        meta = [
            f'<dc:identifier id="BookId">{escape(self.identifier(model))}</dc:identifier>',
            f"<dc:title>{escape(novel.title)}</dc:title>",
            f"<dc:language>{LANGUAGE}</dc:language>",
            f'<dc:creator opf:role="aut">{escape(novel.author)}</dc:creator>',
        ]
        if novel.illustrator:
            meta.append(f'<dc:contributor opf:role="ill">{escape(novel.illustrator)}</dc:contributor>')
        for tag in novel.tags:
            meta.append(f"<dc:subject>{escape(tag)}</dc:subject>")
        if novel.summary:
            meta.append(f"<dc:description>{escape(novel.summary)}</dc:description>")
        meta.append(f"<dc:publisher>{GENERATOR}</dc:publisher>")
        meta.append(f"<dc:date>{date.today().strftime('%Y-%m-%d')}</dc:date>")
        if novel.url:
            meta.append(f"<dc:source>{escape(novel.url)}</dc:source>")
        meta.append(f'<meta name="generator" content="{GENERATOR}"/>')
        if model.cover_item:
            meta.append(f'<meta name="cover" content="{model.cover_item.id}"/>')

        manifest = [
            f'<item id="{escape(i.id)}" href="{escape(i.href)}" media-type="{i.media_type}"/>'
            for i in self.manifest_items(model)
        ]
        spine = [f'<itemref idref="{escape(idref)}"/>' for idref in model.spine]

        guide = []
        if model.cover_item:
            guide.append(f'<reference type="cover" title="Cover" href="{escape(model.cover_item.href)}"/>')
        if model.units:
            guide.append(f'<reference type="text" title="Start" href="{escape(model.units[0].href)}"/>')

        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<package version="2.0" xmlns="http://www.idpf.org/2007/opf" unique-identifier="BookId">',
            '    <metadata xmlns:dc="http://purl.org/dc/elements/1.1/" xmlns:opf="http://www.idpf.org/2007/opf">',
            *(f"        {line}" for line in meta),
            "    </metadata>",
            "    <manifest>",
            *(f"        {line}" for line in manifest),
            "    </manifest>",
            '    <spine toc="ncx">',
            *(f"        {line}" for line in spine),
            "    </spine>",
        ]
        if guide:
            lines += ["    <guide>", *(f"        {line}" for line in guide), "    </guide>"]
        lines.append("</package>")
        return "\n".join(lines) + "\n"

    def toc_ncx(self, model: PackageModel) -> str:
        depth = 2 if any(nav.children for nav in model.navigation) else 1
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<ncx version="2005-1" xmlns="http://www.daisy.org/z3986/2005/ncx/">',
            "    <head>",
            f'        <meta name="dtb:uid" content="{escape(self.identifier(model))}"/>',
            f'        <meta name="dtb:depth" content="{depth}"/>',
            '        <meta name="dtb:totalPageCount" content="0"/>',
            '        <meta name="dtb:maxPageNumber" content="0"/>',
            "    </head>",
            "    <docTitle>",
            f"        <text>{escape(model.novel.title)}</text>",
            "    </docTitle>",
            "    <navMap>",
        ]
        play_order = 1
        for nav in model.navigation:
            play_order = self._nav_point(lines, nav, play_order, level=2)
        lines += ["    </navMap>", "</ncx>"]
        return "\n".join(lines) + "\n"

    def _nav_point(self, lines: List[str], nav: NavPoint, play_order: int, level: int) -> int:
        pad = "    " * level
        lines += [
            f'{pad}<navPoint id="navPoint{play_order}" playOrder="{play_order}">',
            f"{pad}    <navLabel>",
            f"{pad}        <text>{escape(nav.title)}</text>",
            f"{pad}    </navLabel>",
            f'{pad}    <content src="{escape(nav.href)}"/>',
        ]
        play_order += 1
        for child in nav.children:
            play_order = self._nav_point(lines, child, play_order, level + 1)
        lines.append(f"{pad}</navPoint>")
        return play_order
