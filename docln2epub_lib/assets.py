"""Maps remote media references to files inside the package working tree."""

import io
import logging
import os
from dataclasses import dataclass
from enum import Enum
from os.path import exists
from pathlib import Path
from typing import Optional

from PIL import Image

from .constants import IMAGE_FORMAT_EXTS, IMAGES_DIR, NOCOVER_MARKER
from .errors import AssetError, PackageError
from .utils import PathUtils, TextUtils

logger = logging.getLogger(__name__)


class AssetKind(Enum):
    NOVEL_COVER = "novel-cover"
    VOLUME_COVER = "volume-cover"
    ILLUSTRATION = "illustration"


@dataclass
class AssetContext:
    volume_index: int = 0
    chapter_index: int = 0
    sequence: int = 0
    volume_title: str = ""


class AssetResolver:
    """Downloads images through ``fetcher`` and stores them under ``oebps_dir``.

    Cover paths are returned relative to the OEBPS root (``images/...``).
    Illustration paths are returned relative to the content document that
    embeds them (``../../images/...``).
    """

    def __init__(self, oebps_dir: Path, fetcher):
        self.oebps_dir = Path(oebps_dir)
        self.fetcher = fetcher

    @staticmethod
    def is_placeholder(remote_url: str) -> bool:
        return NOCOVER_MARKER in remote_url

    @staticmethod
    def target_path(kind: AssetKind, context: AssetContext, ext: str) -> str:
        """OEBPS-relative location of an asset. Depends only on ``context``."""
        if kind is AssetKind.NOVEL_COVER:
            return f"{IMAGES_DIR}/cover.{ext}"
        if kind is AssetKind.VOLUME_COVER:
            basename = TextUtils.volume_cover_basename(context.volume_title)
            return f"{PathUtils.volume_image_dir(context.volume_index)}/{basename}.{ext}"
        return PathUtils.illustration_path(
            context.volume_index, context.chapter_index, context.sequence, ext
        )

    def resolve(
        self,
        remote_url: str,
        kind: AssetKind,
        context: Optional[AssetContext] = None,
    ) -> Optional[str]:
        """Returns the local reference for ``remote_url``, or None for the
        placeholder cover. Raises ``FetchError`` / ``AssetError`` when the
        image could not be retrieved."""
        if not remote_url:
            return None
        if self.is_placeholder(remote_url):
            logger.info(f"Placeholder image, skipping: {remote_url}")
            return None

        context = context or AssetContext()
        ext = PathUtils.extension_from_url(remote_url)
        rel_path = self.target_path(kind, context, ext)
        full_path = self.oebps_dir / rel_path

        # Illustration slots are numbered per chapter, not keyed by URL
        reusable = kind is not AssetKind.ILLUSTRATION
        if reusable and exists(full_path) and os.path.getsize(full_path) > 0:
            logger.debug(f"Already downloaded: {rel_path}")
        else:
            data = self.fetcher.fetch_bytes(remote_url)
            detected = self._check_image(remote_url, data)
            if detected and detected != ext:
                rel_path = self.target_path(kind, context, detected)
                full_path = self.oebps_dir / rel_path
            try:
                full_path.parent.mkdir(parents=True, exist_ok=True)
                full_path.write_bytes(data)
            except OSError as e:
                raise PackageError(f"Cannot write {full_path}: {e}") from e
            logger.info(f"Saved {kind.value}: {rel_path}")

        if kind is AssetKind.ILLUSTRATION:
            return PathUtils.from_text(rel_path)
        return rel_path

    def resolve_novel_cover(self, remote_url: str) -> Optional[str]:
        return self.resolve(remote_url, AssetKind.NOVEL_COVER)

    def resolve_volume_cover(
        self, remote_url: str, volume_index: int, volume_title: str
    ) -> Optional[str]:
        context = AssetContext(volume_index=volume_index, volume_title=volume_title)
        return self.resolve(remote_url, AssetKind.VOLUME_COVER, context)

    def resolve_illustration(
        self, remote_url: str, volume_index: int, chapter_index: int, sequence: int
    ) -> Optional[str]:
        context = AssetContext(
            volume_index=volume_index, chapter_index=chapter_index, sequence=sequence
        )
        return self.resolve(remote_url, AssetKind.ILLUSTRATION, context)

    @staticmethod
    def _check_image(remote_url: str, data: bytes) -> Optional[str]:
        """Returns the file extension of the decoded format, if it is one we ship."""
        try:
            with Image.open(io.BytesIO(data)) as img:
                fmt = img.format
                img.verify()
        except Exception as e:
            raise AssetError(remote_url, f"not a valid image ({e})") from e
        return IMAGE_FORMAT_EXTS.get(fmt)
