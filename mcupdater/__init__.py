"""mcupdater - keep Minecraft mods, resource packs and shaders in sync with a server."""

from .api import UpdaterClient
from .exceptions import (
    UpdaterAPIError,
    UpdaterCancelledError,
    UpdaterConfigError,
    UpdaterConnectionError,
    UpdaterDownloadError,
    UpdaterError,
    UpdaterGamePathError,
    UpdaterInvalidResponseError,
    UpdaterNetworkError,
    UpdaterNotFoundError,
    UpdaterOutdatedError,
    UpdaterProfileError,
)
from .models import Profile, SessionContext, VersionTable
from .updater import Updater

__all__ = [
    "UpdaterClient",
    "Updater",
    "Profile",
    "SessionContext",
    "VersionTable",
    "UpdaterError",
    "UpdaterAPIError",
    "UpdaterCancelledError",
    "UpdaterConfigError",
    "UpdaterConnectionError",
    "UpdaterDownloadError",
    "UpdaterGamePathError",
    "UpdaterInvalidResponseError",
    "UpdaterNetworkError",
    "UpdaterNotFoundError",
    "UpdaterOutdatedError",
    "UpdaterProfileError",
]
