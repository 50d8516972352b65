"""Data models for profiles, server versions and the session context."""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional
from urllib.parse import quote

from packaging.version import InvalidVersion, Version

from .exceptions import UpdaterInvalidResponseError, UpdaterProfileError
from .utils import FABRIC_INSTALLER_URL, FORGE_INSTALLER_URL, parse_iso_timestamp

FORGE = "Forge"
FABRIC = "Fabric"
MINECRAFT = "Minecraft"
UPDATER = "Updater"


@dataclass
class Profile:
    """A launcher profile describing one game installation."""

    name: str
    """Display name of the profile"""

    last_version_id: str = ""
    """Installed version identifier, e.g. ``1.20.1-forge-47.1.0``"""

    game_dir: Optional[str] = None
    """Game directory override (None means the default .minecraft)"""

    created: Optional[datetime] = None
    """Creation time, used to order profiles sharing a name"""

    last_used: Optional[datetime] = None
    icon: Optional[str] = None
    type: Optional[str] = None

    @property
    def is_forge(self) -> bool:
        return "forge" in self.last_version_id

    @property
    def is_fabric(self) -> bool:
        return "fabric" in self.last_version_id

    @property
    def toolchain(self) -> str:
        """Mod loader family inferred from ``last_version_id``."""
        if self.is_forge:
            return FORGE
        if self.is_fabric:
            return FABRIC
        return ""

    @classmethod
    def from_launcher_dict(cls, data: Mapping[str, Any]) -> "Profile":
        """Create a Profile from a ``launcher_profiles.json`` entry."""
        return cls(
            name=data.get("name") or "",
            last_version_id=data.get("lastVersionId") or "",
            game_dir=data.get("gameDir") or None,
            created=parse_iso_timestamp(data.get("created")),
            last_used=parse_iso_timestamp(data.get("lastUsed")),
            icon=data.get("icon"),
            type=data.get("type"),
        )

    def to_dict(self) -> dict:
        """Convert to a JSON friendly dictionary."""
        return {
            "name": self.name,
            "last_version_id": self.last_version_id,
            "toolchain": self.toolchain,
            "game_dir": self.game_dir,
            "created": self.created.isoformat() if self.created else None,
            "last_used": self.last_used.isoformat() if self.last_used else None,
            "type": self.type,
        }


class VersionTable(Mapping[str, Version]):
    """Component versions published by the server for one profile.

    Keys are defined by the server and any of them may be absent. The raw
    strings are kept next to the parsed versions because remote paths are
    built from the text exactly as the server wrote it.
    """

    def __init__(self, raw: Optional[Mapping[str, str]] = None):
        self._raw: dict[str, str] = {}
        self._parsed: dict[str, Version] = {}
        for key, value in (raw or {}).items():
            text = str(value).strip()
            try:
                self._parsed[key] = Version(text)
            except InvalidVersion as e:
                raise UpdaterInvalidResponseError(
                    f"Invalid version for {key}: {value!r}"
                ) from e
            self._raw[key] = text

    @classmethod
    def from_json(cls, data: Any) -> "VersionTable":
        """Build a table from the decoded ``versions.json`` document."""
        if not isinstance(data, dict):
            raise UpdaterInvalidResponseError(
                "Version manifest must be a JSON object"
            )
        return cls({str(k): v for k, v in data.items()})

    def __getitem__(self, key: str) -> Version:
        return self._parsed[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._parsed)

    def __len__(self) -> int:
        return len(self._parsed)

    def text(self, key: str) -> Optional[str]:
        """Raw version string for ``key``, or None when absent."""
        return self._raw.get(key)

    def to_dict(self) -> dict[str, str]:
        return dict(self._raw)

    def loader_name(self) -> str:
        """Version id the local launcher profile is expected to carry."""
        minecraft = self.text(MINECRAFT) or ""
        name = ""
        if FABRIC in self:
            name = f"fabric-loader-{self.text(FABRIC)}-{minecraft}"
        if FORGE in self:
            name = f"{minecraft}-forge-{self.text(FORGE)}"
        return name.lower()

    def loader_download_url(self) -> Optional[str]:
        """Where to get the loader installer matching this table."""
        url = None
        if FABRIC in self:
            url = FABRIC_INSTALLER_URL
        if FORGE in self:
            url = FORGE_INSTALLER_URL.format(
                minecraft=self.text(MINECRAFT), forge=self.text(FORGE)
            )
        return url

    def version_path(self, profile: Profile) -> str:
        """Remote asset set key for ``profile``.

        Raises:
            UpdaterProfileError: If the profile has no toolchain or the
                table lacks a component needed to build the key
        """
        toolchain = profile.toolchain
        if not toolchain:
            raise UpdaterProfileError(
                f"Profile {profile.name!r} ({profile.last_version_id}) "
                "uses neither Forge nor Fabric"
            )
        minecraft = self.text(MINECRAFT)
        toolchain_version = self.text(toolchain)
        if minecraft is None or toolchain_version is None:
            raise UpdaterProfileError(
                f"Server does not publish {MINECRAFT} and {toolchain} versions"
            )
        return f"{minecraft}-{toolchain}-{toolchain_version}".lower()


@dataclass(frozen=True)
class SessionContext:
    """Server-side state resolved once at startup and shared read-only."""

    server: str
    """Base URL of the content server, always ending with a slash"""

    profile_name: str
    versions: VersionTable = field(default_factory=VersionTable)
    game_path: Optional[Path] = None
    motd: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.server.endswith("/"):
            object.__setattr__(self, "server", self.server + "/")

    @property
    def versions_url(self) -> str:
        return f"{self.server}minecraft/profiles/{self.profile_name}/versions.json"

    @property
    def motd_url(self) -> str:
        return f"{self.server}minecraft/profiles/{self.profile_name}/motd.txt"

    def file_url(self, version_path: str, filename: str) -> str:
        """URL of a file at the root of a remote asset set."""
        return (
            f"{self.server}minecraft/downloads/{self.profile_name}/"
            f"{version_path}/{quote(filename)}"
        )

    def folder_url(self, version_path: str, folder: str) -> str:
        """URL of the directory index for one asset folder."""
        return (
            f"{self.server}minecraft/downloads/{self.profile_name}/"
            f"{version_path}/{folder}"
        )

    def asset_url(self, version_path: str, folder: str, name: str) -> str:
        """Download URL of one asset."""
        return f"{self.folder_url(version_path, folder)}/{quote(name)}"
