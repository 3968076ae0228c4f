"""Turns a scraped novel into the package model: units, manifest, spine and
navigation tree.

Reading order per volume is ``[volume cover] + [surviving chapters]``. The
volume cover takes the reserved sequence number 0, chapter ``i`` (0-based)
takes ``i + 1``, so ``chapter{volume}_{sequence}`` ids never collide.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional

from .models import (
    ManifestItem,
    NavPoint,
    Novel,
    PackageModel,
    PackageUnit,
    UnitKind,
    Volume,
)
from .utils import PathUtils

logger = logging.getLogger(__name__)


class StructureAssembler:
    def __init__(self, oebps_dir: Optional[Path] = None):
        # Used to discover illustrations already written to disk
        self.oebps_dir = Path(oebps_dir) if oebps_dir else None

    def assemble(self, novel: Novel) -> PackageModel:
        model = PackageModel(novel=novel)

        if novel.cover_image_path:
            model.cover_item = self._image_item("cover-image", novel.cover_image_path)

        volume_units = [
            self._volume_units(volume, i) for i, volume in enumerate(novel.volumes)
        ]
        for units in volume_units:
            model.units.extend(units)

        model.manifest = self._manifest(model, novel)
        model.spine = [unit.id for unit in model.units]
        model.navigation = [
            nav
            for nav in (
                self._volume_nav(volume, units)
                for volume, units in zip(novel.volumes, volume_units)
            )
            if nav is not None
        ]

        logger.info(
            f"Assembled {len(model.units)} units, {len(model.manifest)} manifest "
            f"items, {len(model.navigation)} volumes in navigation"
        )
        return model

    def _volume_units(self, volume: Volume, volume_index: int) -> List[PackageUnit]:
        units = []
        if volume.cover_image_path:
            units.append(
                PackageUnit(
                    id=PathUtils.unit_id(volume_index, 0),
                    href=PathUtils.volume_cover_href(volume_index),
                    title=volume.title,
                    kind=UnitKind.VOLUME_COVER,
                    volume_index=volume_index,
                    sequence=0,
                    cover_image_path=volume.cover_image_path,
                )
            )

        for chapter_index, chapter in enumerate(volume.chapters):
            if not chapter.xhtml_path:
                logger.warning(
                    f"Skipping chapter without content: {volume.title} / {chapter.title}"
                )
                continue
            expected = PathUtils.chapter_href(volume_index, chapter_index)
            if chapter.xhtml_path != expected:
                logger.warning(
                    f"Chapter '{chapter.title}' was written to {chapter.xhtml_path}, "
                    f"expected {expected}"
                )
            units.append(
                PackageUnit(
                    id=PathUtils.unit_id(volume_index, chapter_index + 1),
                    href=chapter.xhtml_path,
                    title=chapter.title,
                    kind=UnitKind.CHAPTER,
                    volume_index=volume_index,
                    sequence=chapter_index + 1,
                )
            )
        return units

    def _manifest(self, model: PackageModel, novel: Novel) -> List[ManifestItem]:
        items = []
        if model.cover_item:
            items.append(model.cover_item)

        for i, volume in enumerate(novel.volumes):
            if volume.cover_image_path:
                items.append(self._image_item(f"volume{i + 1}-cover", volume.cover_image_path))

        for i, volume in enumerate(novel.volumes):
            for j, chapter in enumerate(volume.chapters):
                if chapter.xhtml_path:
                    items.extend(self._illustration_items(i, j))

        items.extend(
            ManifestItem(id=unit.id, href=unit.href, media_type=unit.media_type)
            for unit in model.units
        )
        return items

    def _illustration_items(self, volume_index: int, chapter_index: int) -> List[ManifestItem]:
        if self.oebps_dir is None:
            return []
        rel_dir = PathUtils.illustration_dir(volume_index, chapter_index)
        full_dir = self.oebps_dir / rel_dir
        if not full_dir.is_dir():
            return []

        items = []
        for name in sorted(os.listdir(full_dir)):
            media_type = PathUtils.media_type_for(name)
            if media_type is None or not (full_dir / name).is_file():
                continue
            stem = os.path.splitext(name)[0]
            items.append(
                ManifestItem(
                    id=f"vol{volume_index + 1}_chap{chapter_index + 1}_img{stem}",
                    href=f"{rel_dir}/{name}",
                    media_type=media_type,
                )
            )
        return items

    @staticmethod
    def _image_item(item_id: str, href: str) -> ManifestItem:
        return ManifestItem(
            id=item_id,
            href=href,
            media_type=PathUtils.media_type_for(href) or "image/jpeg",
        )

    @staticmethod
    def _volume_nav(volume: Volume, units: List[PackageUnit]) -> Optional[NavPoint]:
        chapters = [u for u in units if u.kind is UnitKind.CHAPTER]
        # A volume without any surviving chapter stays out of the navigation,
        # even when it has a cover page.
        if not chapters:
            return None
        target = units[0].href
        return NavPoint(
            title=volume.title,
            href=target,
            children=[NavPoint(title=u.title, href=u.href) for u in chapters],
        )
