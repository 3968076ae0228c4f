"""One conversion job: fetch chapters, render them, assemble and archive."""

import logging
import threading
from multiprocessing.dummy import Pool as ThreadPool
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import tqdm

from .archiver import EpubArchiver
from .assembler import StructureAssembler
from .assets import AssetResolver
from .config import JobConfig
from .constants import OEBPS_DIR
from .content import ContentDocumentBuilder
from .errors import FetchError, PackageError, ParseError
from .models import Chapter, Novel, Volume
from .network import NetworkManager
from .parser import ChapterContentParser, NovelInfoParser
from .utils import PathUtils, TextUtils
from .writer import PackageWriter

logger = logging.getLogger(__name__)


class ChapterRenderer:
    """Downloads a chapter's illustrations and writes its content document."""

    def __init__(
        self,
        oebps_dir: Path,
        resolver: AssetResolver,
        builder: ContentDocumentBuilder,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.oebps_dir = Path(oebps_dir)
        self.resolver = resolver
        self.builder = builder
        self.cancel_event = cancel_event or threading.Event()

    def resolve_illustrations(
        self,
        chapter: Chapter,
        fragments: List[str],
        volume_index: int,
        chapter_index: int,
    ) -> Dict[str, str]:
        rewrites = {}
        sequence = 1
        for src in self.builder.media_sources(fragments):
            if self.cancel_event.is_set():
                break
            remote_url = TextUtils.reformat_url(chapter.url, src)
            try:
                local = self.resolver.resolve_illustration(
                    remote_url, volume_index, chapter_index, sequence
                )
            except FetchError as e:
                logger.warning(f"Image DL fail: {remote_url} | {e}")
                continue
            if local:
                rewrites[src] = local
                chapter.illustration_paths.append(local)
                sequence += 1

        if chapter.has_illustrations and not rewrites:
            logger.debug(f"No illustration resolved for '{chapter.title}'")
        return rewrites

    def render_chapter(
        self,
        chapter: Chapter,
        fragments: List[str],
        volume_index: int,
        chapter_index: int,
    ) -> str:
        """Writes the chapter document and returns its OEBPS-relative path."""
        rewrites = self.resolve_illustrations(chapter, fragments, volume_index, chapter_index)
        document = self.builder.render(chapter.title, fragments, rewrites)

        href = PathUtils.chapter_href(volume_index, chapter_index)
        path = self.oebps_dir / href
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(document)
        except OSError as e:
            raise PackageError(f"Cannot write {path}: {e}") from e
        return href


class ConversionJob:
    def __init__(
        self,
        novel: Novel,
        work_dir: Path,
        fetcher,
        config: Optional[JobConfig] = None,
    ):
        self.novel = novel
        self.work_dir = Path(work_dir)
        self.oebps_dir = self.work_dir / OEBPS_DIR
        self.fetcher = fetcher
        self.config = config or JobConfig(output_dir=self.work_dir.parent)
        self.cancel_event = threading.Event()

        self.builder = ContentDocumentBuilder()
        self.resolver = AssetResolver(self.oebps_dir, fetcher)
        self.renderer = ChapterRenderer(
            self.oebps_dir, self.resolver, self.builder, self.cancel_event
        )
        self.chapter_parser = ChapterContentParser()

    def cancel(self):
        """Stops issuing requests; whatever was fetched is still packaged."""
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def run(self) -> Path:
        try:
            self.oebps_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PackageError(f"Cannot create {self.oebps_dir}: {e}") from e

        self.resolve_covers()
        for volume_index, volume in enumerate(self.novel.volumes):
            if self.cancelled:
                break
            self.process_volume(volume_index, volume)

        model = StructureAssembler(self.oebps_dir).assemble(self.novel)
        PackageWriter(self.builder).write(model, self.work_dir)
        return EpubArchiver().archive(self.work_dir)

    def resolve_covers(self):
        novel = self.novel
        if novel.cover_url and not self.cancelled:
            try:
                novel.cover_image_path = self.resolver.resolve_novel_cover(novel.cover_url)
            except FetchError as e:
                logger.warning(f"Novel cover download failed: {e}")

        for volume_index, volume in enumerate(novel.volumes):
            if not volume.cover_url or self.cancelled:
                continue
            try:
                volume.cover_image_path = self.resolver.resolve_volume_cover(
                    volume.cover_url, volume_index, volume.title
                )
            except FetchError as e:
                logger.warning(f"Cover download failed for '{volume.title}': {e}")

    def process_volume(self, volume_index: int, volume: Volume):
        tasks = [(volume_index, i, chapter) for i, chapter in enumerate(volume.chapters)]
        if not tasks:
            return

        print(f"Processing Volume: {volume.title} ({len(tasks)} chapters)")
        pool = ThreadPool(self.config.threads)
        results = pool.imap_unordered(self._process_chapter, tasks)
        try:
            done = list(tqdm.tqdm(results, total=len(tasks)))
        except KeyboardInterrupt:
            print("\nInterrupted, packaging the chapters fetched so far...")
            self.cancel()
            # Remaining tasks return immediately once cancelled
            done = list(results)
        finally:
            pool.close()
            pool.join()

        failed = done.count(False)
        if failed:
            logger.warning(f"{failed} chapter(s) of '{volume.title}' were not produced")

    def _process_chapter(self, task: Tuple[int, int, Chapter]) -> bool:
        volume_index, chapter_index, chapter = task
        if self.cancelled:
            return False
        try:
            page = self.fetcher.fetch_text(chapter.url)
            fragments = self.chapter_parser.parse(page)
            chapter.xhtml_path = self.renderer.render_chapter(
                chapter, fragments, volume_index, chapter_index
            )
            return True
        except (FetchError, ParseError) as e:
            logger.error(f"Err {chapter.url}: {e}")
            return False
        finally:
            self.cancel_event.wait(self.config.delay)


def convert_novel(
    novel_id: int,
    config: JobConfig,
    network: Optional[NetworkManager] = None,
) -> Tuple[Path, Novel]:
    """Fetches the listing page of ``novel_id`` and builds its EPUB.

    Fails before anything is written when the listing page or its title and
    author cannot be read.
    """
    network = network or NetworkManager(timeout=config.timeout)
    url = config.novel_url(novel_id)
    print(f"Fetching: {url}")
    page = network.fetch_text(url)
    novel = NovelInfoParser().parse(page, url, novel_id)

    job = ConversionJob(novel, config.work_dir(novel_id), network, config)
    epub_path = job.run()
    print(f"Created EPUB: {epub_path}")
    return epub_path, novel


def describe_novel(novel: Novel, preview: int = 3) -> str:
    lines = ["=== EPUB ===", f"Title: {novel.title}", f"Author: {novel.author}"]
    if novel.illustrator:
        lines.append(f"Illustrator: {novel.illustrator}")
    if novel.summary:
        lines.append(f"Summary: {novel.summary}")
    lines.append(f"Cover: {novel.cover_image_path or 'default cover'}")
    lines.append(f"Tags: {', '.join(novel.tags)}")

    if novel.volumes:
        lines.append("")
        lines.append("Contents:")
    for i, volume in enumerate(novel.volumes):
        lines.append(f"  ├── {volume.title} (Vol {i + 1})")
        chapters = volume.surviving_chapters
        for chapter in chapters[:preview]:
            marker = "[img]" if chapter.illustration_paths else "     "
            lines.append(f"  │   ├── {marker} {chapter.title}")
        if len(chapters) > preview:
            lines.append(f"  │   └── ... ({len(chapters) - preview} more chapters)")
        if i < len(novel.volumes) - 1:
            lines.append("  │")

    lines.append(f"URL: {novel.url}")
    return "\n".join(lines)
