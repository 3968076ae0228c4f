import logging
import os
import shutil
import zipfile
from pathlib import Path

from .constants import ARCHIVE_PREFIX, EPUB_EXT, MIMETYPE_FILE, WORKDIR_PREFIX
from .errors import ArchiveError

logger = logging.getLogger(__name__)


class EpubArchiver:
    """Folds a package working tree into a single ``.epub`` file."""

    @staticmethod
    def archive_name(source_root: Path) -> str:
        name = Path(source_root).name
        if name.startswith(WORKDIR_PREFIX):
            name = name[len(WORKDIR_PREFIX):]
        return f"{ARCHIVE_PREFIX}{name}{EPUB_EXT}"

    def archive(self, source_root: Path) -> Path:
        source_root = Path(source_root)
        epub_path = source_root.parent / self.archive_name(source_root)
        mimetype_path = source_root / MIMETYPE_FILE

        if not mimetype_path.is_file():
            raise ArchiveError(f"Missing {MIMETYPE_FILE} in {source_root}")

        print(f"Compressing EPUB: {epub_path.name}")
        try:
            with zipfile.ZipFile(epub_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                zf.write(mimetype_path, MIMETYPE_FILE, compress_type=zipfile.ZIP_STORED)
                self._add_directory(zf, source_root, "")
        except (OSError, zipfile.BadZipFile) as e:
            logger.error(f"Archive failed, keeping {source_root}: {e}")
            if epub_path.exists():
                epub_path.unlink()
            raise ArchiveError(f"Cannot create {epub_path}: {e}") from e

        logger.info(f"Removing working tree: {source_root}")
        try:
            shutil.rmtree(source_root)
        except OSError as e:
            logger.error(f"Could not remove {source_root}: {e}")
        return epub_path

    def _add_directory(self, zf: zipfile.ZipFile, directory: Path, base: str):
        with os.scandir(directory) as entries:
            for entry in entries:
                member = f"{base}/{entry.name}" if base else entry.name
                if member == MIMETYPE_FILE:
                    continue
                if entry.is_dir():
                    self._add_directory(zf, Path(entry.path), member)
                else:
                    zf.write(entry.path, member)
                    logger.debug(f"Added: {member}")
