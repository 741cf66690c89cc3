"""
Data Models

Catalog, selection, world and install-job types shared by the clients,
the installer and the HTTP surface.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set

from .config import PACK_TYPES


class PackType(str, Enum):
    """Vanilla Tweaks pack families."""

    DATAPACKS = "datapacks"
    RESOURCEPACKS = "resourcepacks"
    CRAFTINGTWEAKS = "craftingtweaks"

    @classmethod
    def parse(cls, value: Optional[str]) -> "PackType":
        """Unknown or missing types fall back to datapacks."""
        try:
            return cls(value)
        except ValueError:
            return cls.DATAPACKS

    @property
    def prefix(self) -> str:
        return PACK_TYPES[self.value]["prefix"]

    @property
    def success_message(self) -> str:
        return PACK_TYPES[self.value]["success_message"]


def slugify_category(category: str) -> str:
    """
    Convert a category label to the slug the zip endpoint expects

    'Quality of Life' -> 'quality-of-life', 'Adventure/Utility' -> 'adventure-utility'
    """
    return category.replace("/", "-").replace(" ", "-").lower()


@dataclass(frozen=True)
class Pack:
    name: str
    display: Optional[str] = None
    version: Optional[str] = None
    description: Optional[str] = None
    incompatible: List[str] = field(default_factory=list)
    video: Optional[str] = None
    lastupdated: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict) -> "Pack":
        return cls(
            name=data["name"],
            display=data.get("display"),
            version=data.get("version"),
            description=data.get("description"),
            incompatible=list(data.get("incompatible") or []),
            video=data.get("video"),
            lastupdated=data.get("lastupdated"),
        )


@dataclass(frozen=True)
class Category:
    category_name: str
    packs: List[Pack] = field(default_factory=list)

    @property
    def slug(self) -> str:
        return slugify_category(self.category_name)

    @classmethod
    def from_dict(cls, data: Dict) -> "Category":
        # The picker JSON labels categories with either "category" or "name"
        name = data.get("category") or data.get("name") or ""
        packs = [Pack.from_dict(p) for p in data.get("packs", []) if "name" in p]
        return cls(category_name=name, packs=packs)

    def find(self, pack_name: str) -> Optional[Pack]:
        for pack in self.packs:
            if pack.name == pack_name:
                return pack
        return None


@dataclass(frozen=True)
class PackCatalog:
    categories: List[Category] = field(default_factory=list)
    version_name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> "PackCatalog":
        return cls(
            categories=[Category.from_dict(c) for c in data.get("categories", [])],
            version_name=data.get("versionName"),
        )

    def category(self, name: str) -> Optional[Category]:
        """Find a category by display name or slug."""
        slug = slugify_category(name)
        for category in self.categories:
            if category.category_name == name or category.slug == slug:
                return category
        return None

    def pack_count(self) -> int:
        return sum(len(c.packs) for c in self.categories)


class Selection:
    """Category -> set of selected pack names, with no empty categories"""

    def __init__(self, packs: Optional[Dict[str, Iterable[str]]] = None):
        self._packs: Dict[str, Set[str]] = {}
        for category, names in (packs or {}).items():
            for name in names:
                self.add(category, name)

    def add(self, category: str, pack_name: str) -> None:
        self._packs.setdefault(category, set()).add(pack_name)

    def remove(self, category: str, pack_name: str) -> None:
        names = self._packs.get(category)
        if names is None:
            return
        names.discard(pack_name)
        if not names:
            del self._packs[category]

    def toggle(self, category: str, pack_name: str) -> None:
        if pack_name in self._packs.get(category, ()):
            self.remove(category, pack_name)
        else:
            self.add(category, pack_name)

    def categories(self) -> List[str]:
        return list(self._packs)

    def packs_in(self, category: str) -> Set[str]:
        return set(self._packs.get(category, ()))

    def pack_count(self) -> int:
        return sum(len(names) for names in self._packs.values())

    def to_wire(self) -> Dict[str, List[str]]:
        """Slug-keyed mapping in the shape the zip endpoint expects."""
        merged: Dict[str, Set[str]] = {}
        for category, names in self._packs.items():
            merged.setdefault(slugify_category(category), set()).update(names)
        return {slug: sorted(names) for slug, names in merged.items()}

    def __bool__(self) -> bool:
        return bool(self._packs)

    def __len__(self) -> int:
        return len(self._packs)

    def __repr__(self) -> str:
        return f"Selection({self.to_wire()!r})"


@dataclass(frozen=True)
class World:
    name: str
    path: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "path": self.path}


@dataclass
class InstallJob:
    mc_version: str
    pack_type: PackType
    selection: Selection
    target_world: str

    @property
    def world_dir(self) -> str:
        return "/" + self.target_world.strip("/")

    @property
    def datapacks_dir(self) -> str:
        return f"{self.world_dir}/datapacks"


@dataclass
class InstallResult:
    success: bool
    message: str
    files_written: List[str] = field(default_factory=list)


def sanitize_version(mc_version: str) -> str:
    return re.sub(r"[^0-9A-Za-z\-_]+", "", str(mc_version))
