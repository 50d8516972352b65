"""Reading launcher profiles from the local game directory."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from .exceptions import UpdaterProfileError
from .models import Profile

logger = logging.getLogger(__name__)

LAUNCHER_PROFILES = "launcher_profiles.json"
MICROSOFT_STORE_PROFILES = "launcher_profiles_microsoft_store.json"
TLAUNCHER_PROFILES = "TlauncherProfiles.json"
TLAUNCHER_ADDITIONAL = "TLauncherAdditional.json"

PROFILE_FILES = (LAUNCHER_PROFILES, MICROSOFT_STORE_PROFILES, TLAUNCHER_PROFILES)


def _read_json(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise UpdaterProfileError(f"Cannot read profile file {path}: {e}") from e


def find_profile_file(game_path: Path) -> Optional[Path]:
    """Return the first launcher profile file present in ``game_path``."""
    for name in PROFILE_FILES:
        candidate = game_path / name
        if candidate.is_file():
            return candidate
    return None


def parse_launcher_profiles(path: Path) -> dict[str, Profile]:
    """Parse an official launcher ``launcher_profiles*.json`` file.

    Args:
        path: Path to the profile file

    Returns:
        Dictionary mapping profile id to Profile
    """
    data = _read_json(path)
    entries = data.get("profiles") if isinstance(data, dict) else None
    if not isinstance(entries, dict):
        raise UpdaterProfileError(f"No profiles section in {path}")

    profiles: dict[str, Profile] = {}
    for key, entry in entries.items():
        if not isinstance(entry, dict):
            logger.debug("Skipping malformed profile %s in %s", key, path)
            continue
        profiles[key] = Profile.from_launcher_dict(entry)
    return profiles


def _tlauncher_version_id(version_type: str, version_name: str, jar: str) -> str:
    version_id = ""
    if "fabric" in version_type:
        version_id = f"fabric-loader-{version_name}-{jar}"
    if "forge" in version_type:
        version_id = f"{jar}-forge-{version_name}"
    return version_id.lower()


def parse_tlauncher_profiles(game_path: Path) -> dict[str, Profile]:
    """Synthesize profiles from TLauncher's per-version metadata files.

    TLauncher keeps no usable profile list, so every
    ``versions/*/TLauncherAdditional.json`` becomes one profile named after
    its modpack. These profiles only live for the current run.

    Args:
        game_path: The .minecraft directory

    Returns:
        Dictionary mapping profile name to Profile
    """
    versions_dir = game_path / "versions"
    profiles: dict[str, Profile] = {}
    if not versions_dir.is_dir():
        return profiles

    now = datetime.now().astimezone()
    for folder in sorted(p for p in versions_dir.iterdir() if p.is_dir()):
        additional = folder / TLAUNCHER_ADDITIONAL
        if not additional.is_file():
            continue

        try:
            data = _read_json(additional)
        except UpdaterProfileError as e:
            logger.warning(f"Skipping {additional}: {e}")
            continue

        try:
            modpack = data["modpack"]
            name = modpack["name"]
            jar = data["jar"]
            version = modpack["version"]
            version_type = version["minecraftVersionTypes"][0]["name"]
            version_name = version["minecraftVersionName"]["name"]
        except (KeyError, IndexError, TypeError) as e:
            logger.warning(f"Skipping {additional}: missing field {e}")
            continue

        profile = Profile(
            name=name,
            last_version_id=_tlauncher_version_id(version_type, version_name, jar),
            game_dir=str(folder),
            created=now,
            last_used=now,
            type="custom",
        )
        profiles[profile.name] = profile
    return profiles


def load_profiles(game_path: Path) -> dict[str, Profile]:
    """Load launcher profiles from the game directory.

    Raises:
        UpdaterProfileError: If no profile file exists or it holds no profile
    """
    path = find_profile_file(game_path)
    if path is None:
        raise UpdaterProfileError(f"No launcher profile file found in {game_path}")

    logger.debug("Reading profiles from %s", path)
    if path.name == TLAUNCHER_PROFILES:
        profiles = parse_tlauncher_profiles(game_path)
    else:
        profiles = parse_launcher_profiles(path)

    if not profiles:
        raise UpdaterProfileError(f"No profiles defined in {path}")
    return profiles


def select_profiles(profiles: dict[str, Profile], name: str) -> list[Profile]:
    """Return profiles named ``name`` (case-insensitive), newest first."""
    wanted = name.casefold()
    matches = [p for p in profiles.values() if p.name.casefold() == wanted]

    def sort_key(profile: Profile) -> tuple[bool, float]:
        if profile.created is None:
            return (False, 0.0)
        return (True, profile.created.timestamp())

    return sorted(matches, key=sort_key, reverse=True)
