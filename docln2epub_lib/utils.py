import posixpath
import re
from typing import Optional
from urllib.parse import urlparse

from .constants import (
    BASE_URL,
    DEFAULT_IMAGE_EXT,
    DOMAINS,
    IMAGE_MEDIA_TYPES,
    IMAGES_DIR,
    TEXT_DIR,
)

STYLE_URL_RE = re.compile(r'url\([\'"]?([^\'"\)]+)[\'"]?\)')
# Characters XML 1.0 does not allow, even escaped
XML_INVALID_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


class TextUtils:
    @staticmethod
    def volume_cover_basename(title: str) -> str:
        """Keeps letters, digits and spaces; everything else becomes ``_``."""
        safe = "".join(c if c.isalnum() or c == " " else "_" for c in title)
        return safe.replace(" ", "_")

    @staticmethod
    def reformat_url(base_url: str, url: str) -> str:
        if url.startswith("http"):
            return url
        if url.startswith("//"):
            return "https:" + url
        domain = urlparse(BASE_URL).netloc
        for d in DOMAINS:
            if d in base_url:
                domain = d
                break
        return (
            f"https://{domain}{url}"
            if url.startswith("/")
            else f"https://{domain}/{url}"
        )

    @staticmethod
    def clean_text(text: str) -> str:
        return XML_INVALID_RE.sub("", text).strip()

    @staticmethod
    def extract_style_url(style: str) -> Optional[str]:
        """Pulls the image URL out of a ``background-image: url(...)`` style."""
        match = STYLE_URL_RE.search(style or "")
        return match.group(1) if match else None


class PathUtils:
    """Package layout. Indices are 0-based, names use 1-based ordinals."""

    @staticmethod
    def volume_dir(volume_index: int) -> str:
        return f"volume_{volume_index + 1:03d}"

    @staticmethod
    def chapter_name(sequence: int) -> str:
        return f"chapter_{sequence:03d}"

    @staticmethod
    def chapter_href(volume_index: int, chapter_index: int) -> str:
        return PathUtils.unit_href(volume_index, chapter_index + 1)

    @staticmethod
    def volume_cover_href(volume_index: int) -> str:
        return PathUtils.unit_href(volume_index, 0)

    @staticmethod
    def unit_href(volume_index: int, sequence: int) -> str:
        return (
            f"{TEXT_DIR}/{PathUtils.volume_dir(volume_index)}/"
            f"{PathUtils.chapter_name(sequence)}.xhtml"
        )

    @staticmethod
    def unit_id(volume_index: int, sequence: int) -> str:
        return f"chapter{volume_index + 1}_{sequence}"

    @staticmethod
    def volume_image_dir(volume_index: int) -> str:
        return f"{IMAGES_DIR}/{PathUtils.volume_dir(volume_index)}"

    @staticmethod
    def illustration_dir(volume_index: int, chapter_index: int) -> str:
        return (
            f"{PathUtils.volume_image_dir(volume_index)}/"
            f"{PathUtils.chapter_name(chapter_index + 1)}"
        )

    @staticmethod
    def illustration_path(
        volume_index: int, chapter_index: int, sequence: int, ext: str
    ) -> str:
        return f"{PathUtils.illustration_dir(volume_index, chapter_index)}/{sequence:03d}.{ext}"

    @staticmethod
    def from_text(href: str) -> str:
        """Rewrites an OEBPS-relative path for use inside ``text/volume_NNN/``."""
        return posixpath.join("..", "..", href)

    @staticmethod
    def extension_from_url(url: str) -> str:
        path = urlparse(url).path
        ext = posixpath.splitext(posixpath.basename(path))[1][1:].lower()
        return ext if ext in IMAGE_MEDIA_TYPES else DEFAULT_IMAGE_EXT

    @staticmethod
    def media_type_for(filename: str) -> Optional[str]:
        ext = posixpath.splitext(filename)[1].lower().lstrip(".")
        return IMAGE_MEDIA_TYPES.get(ext)
