"""Remote listing entries and local file probing for asset folders."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath
from urllib.parse import unquote

logger = logging.getLogger(__name__)


class AssetFolder(str, Enum):
    """Asset folders kept in sync, in processing order."""

    MODS = "mods"
    RESOURCE_PACKS = "resourcepacks"
    SHADER_PACKS = "shaderpacks"


def decode_remote_name(raw: str) -> str:
    """Percent-decode a listing name.

    A literal ``+`` stays a plus sign; directory indexes encode spaces as
    ``%20`` and mod file names frequently contain ``+``.
    """
    return unquote(raw)


@dataclass(frozen=True)
class AssetEntry:
    """A file declared by the server for one asset folder."""

    name: str
    """Decoded remote file name"""

    folder: AssetFolder
    """Folder the entry belongs to"""

    @property
    def extension(self) -> str:
        """Suffix including the dot, case preserved (``""`` if none)."""
        return PurePosixPath(self.name).suffix

    @property
    def stem(self) -> str:
        return PurePosixPath(self.name).stem

    def local_path(self, local_base: Path) -> Path:
        return local_base / self.folder.value / self.name


def build_entries(folder: AssetFolder, raw_names: Iterable[str]) -> list[AssetEntry]:
    """Turn raw listing names into entries.

    Names starting with ``..`` are dropped before decoding so that a listing
    can never point outside the asset folder. Names that still contain a path
    separator after decoding are dropped as well.
    """
    entries: list[AssetEntry] = []
    for raw in raw_names:
        if raw.startswith(".."):
            logger.debug("Ignoring parent reference %r in %s", raw, folder.value)
            continue
        name = decode_remote_name(raw)
        if not name or "/" in name or "\\" in name or name.startswith(".."):
            logger.debug("Ignoring unsafe name %r in %s", raw, folder.value)
            continue
        entries.append(AssetEntry(name=name, folder=folder))
    return entries


@dataclass(frozen=True)
class LocalAssetState:
    """What the local filesystem holds at one path."""

    path: Path
    exists: bool
    length: int = 0
    """Size in bytes; only meaningful when ``exists`` is True"""

    @classmethod
    def probe(cls, path: Path) -> "LocalAssetState":
        """Inspect ``path`` on disk."""
        try:
            stat = path.stat()
        except FileNotFoundError:
            return cls(path=path, exists=False)
        if not path.is_file():
            return cls(path=path, exists=False)
        return cls(path=path, exists=True, length=stat.st_size)
