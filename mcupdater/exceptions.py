"""Exceptions raised by mcupdater."""


class UpdaterError(Exception):
    """Base exception for all updater errors."""


class UpdaterConfigError(UpdaterError):
    """Server or profile is not configured."""


class UpdaterAPIError(UpdaterError):
    """Request to the content server failed."""


class UpdaterNotFoundError(UpdaterAPIError):
    """Requested resource does not exist on the server."""


class UpdaterInvalidResponseError(UpdaterAPIError):
    """Server answered with something we cannot interpret."""


class UpdaterDownloadError(UpdaterAPIError):
    """A file could not be downloaded or written."""


class UpdaterNetworkError(UpdaterAPIError):
    """Transport level failure (DNS, refused connection, timeout)."""


class UpdaterConnectionError(UpdaterError):
    """Server stayed unreachable after all connection attempts."""


class UpdaterProfileError(UpdaterError):
    """Profile metadata is missing, empty or unusable."""


class UpdaterGamePathError(UpdaterError):
    """Local game directory does not exist."""


class UpdaterOutdatedError(UpdaterError):
    """The server requires a newer updater release."""


class UpdaterCancelledError(UpdaterError):
    """The run was cancelled between phases."""
