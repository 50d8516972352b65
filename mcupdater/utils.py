"""Utility functions for mcupdater."""

import os
import sys
from datetime import datetime
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Optional

# =============================================================================
# Constants
# =============================================================================

# Connection attempts before the run is abandoned
DEFAULT_CONNECT_ATTEMPTS: int = 5

# Linear backoff step between connection attempts
DEFAULT_CONNECT_DELAY: float = 1.0  # seconds

# Request timeout for the content server
DEFAULT_TIMEOUT: float = 30.0  # seconds

# Chunk size used when streaming downloads to disk
DEFAULT_DOWNLOAD_CHUNK_SIZE: int = 64 * 1024

RELEASES_URL: str = "https://github.com/alpaka-gaming/minecraft-updater/releases"

FABRIC_INSTALLER_URL: str = (
    "https://maven.fabricmc.net/net/fabricmc/fabric-installer/0.11.2/"
    "fabric-installer-0.11.2.jar"
)

FORGE_INSTALLER_URL: str = (
    "https://maven.minecraftforge.net/net/minecraftforge/forge/"
    "{minecraft}-{forge}/forge-{minecraft}-{forge}-installer.jar"
)


# =============================================================================
# Path utilities
# =============================================================================


def default_game_path() -> Path:
    """Return the default .minecraft directory for this platform.

    Returns:
        ``%APPDATA%\\.minecraft`` on Windows, ``~/.minecraft`` elsewhere
    """
    if sys.platform == "win32":
        return Path(os.path.expandvars("%APPDATA%")) / ".minecraft"
    return Path.home() / ".minecraft"


def expand_path(value: str) -> Path:
    """Expand environment variables and ``~`` in a path string.

    Both ``$VAR`` and ``%VAR%`` forms are accepted, since launcher files
    written on Windows use the latter.

    Args:
        value: Raw path string

    Returns:
        Expanded path
    """
    expanded = os.path.expandvars(value)
    if "%" in expanded:
        for name, env_value in os.environ.items():
            expanded = expanded.replace(f"%{name}%", env_value)
    return Path(expanded).expanduser()


def change_extension(path: Path, extension: str) -> Path:
    """Replace the extension of ``path``, or append it when there is none."""
    return path.with_suffix(extension)


# =============================================================================
# Timestamp parsing utilities
# =============================================================================


def parse_iso_timestamp(timestamp_str: Optional[str]) -> Optional[datetime]:
    """Parse an ISO format timestamp as written by the Minecraft launcher.

    Args:
        timestamp_str: ISO format timestamp string (e.g., "2023-06-12T18:03:41.123Z")

    Returns:
        Timezone-aware datetime, or None if parsing fails
    """
    if not timestamp_str:
        return None

    try:
        # The 'Z' suffix indicates UTC time
        if timestamp_str.endswith("Z"):
            timestamp_str = timestamp_str[:-1] + "+00:00"

        try:
            dt = datetime.fromisoformat(timestamp_str)
        except ValueError:
            # Launcher writes milliseconds, older interpreters only accept
            # three or six fractional digits
            if "." not in timestamp_str:
                raise
            head, _, tail = timestamp_str.partition(".")
            offset = ""
            for sign in ("+", "-"):
                if sign in tail:
                    offset = sign + tail.split(sign, 1)[1]
                    break
            dt = datetime.fromisoformat(head + offset)

        if dt.tzinfo is None:
            dt = dt.astimezone()
        return dt
    except (ValueError, AttributeError, TypeError):
        return None


# =============================================================================
# Size formatting utilities
# =============================================================================


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"


def get_version() -> str:
    """Installed version of mcupdater ("0.0.0" when running from a checkout)."""
    try:
        return version("mcupdater")
    except PackageNotFoundError:
        return "0.0.0"
