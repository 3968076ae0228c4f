from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .constants import XHTML_MEDIA_TYPE

# --- Scraped hierarchy ---


@dataclass
class Chapter:
    title: str
    url: str
    has_illustrations: bool = False
    xhtml_path: Optional[str] = None
    illustration_paths: List[str] = field(default_factory=list)


@dataclass
class Volume:
    title: str = ""
    volume_id: str = ""
    cover_url: str = ""
    cover_image_path: Optional[str] = None
    chapters: List[Chapter] = field(default_factory=list)

    @property
    def surviving_chapters(self) -> List[Chapter]:
        return [c for c in self.chapters if c.xhtml_path]


@dataclass
class Novel:
    id: int
    url: str = ""
    title: str = ""
    author: str = ""
    illustrator: Optional[str] = None
    summary: str = ""
    tags: List[str] = field(default_factory=list)
    cover_url: str = ""
    cover_image_path: Optional[str] = None
    volumes: List[Volume] = field(default_factory=list)


# --- Package model ---


class UnitKind(Enum):
    VOLUME_COVER = "volume-cover"
    CHAPTER = "chapter"


@dataclass
class PackageUnit:
    """One content document of the package, in reading order."""

    id: str
    href: str
    title: str
    kind: UnitKind
    volume_index: int
    sequence: int
    media_type: str = XHTML_MEDIA_TYPE
    # Only set for volume-cover units
    cover_image_path: Optional[str] = None


@dataclass
class ManifestItem:
    id: str
    href: str
    media_type: str


@dataclass
class NavPoint:
    title: str
    href: str
    children: List["NavPoint"] = field(default_factory=list)


@dataclass
class PackageModel:
    novel: Novel
    units: List[PackageUnit] = field(default_factory=list)
    manifest: List[ManifestItem] = field(default_factory=list)
    spine: List[str] = field(default_factory=list)
    navigation: List[NavPoint] = field(default_factory=list)
    cover_item: Optional[ManifestItem] = None
