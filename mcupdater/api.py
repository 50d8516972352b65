"""HTTP client for the content server."""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Any, Callable
from urllib.parse import unquote, urlparse

import httpx
from bs4 import BeautifulSoup

from .exceptions import (
    UpdaterAPIError,
    UpdaterCancelledError,
    UpdaterDownloadError,
    UpdaterInvalidResponseError,
    UpdaterNetworkError,
    UpdaterNotFoundError,
)
from .models import VersionTable
from .utils import DEFAULT_DOWNLOAD_CHUNK_SIZE, DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

PART_SUFFIX = ".part"


class UpdaterClient:
    """Client for the content server's static download tree."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            timeout: Request timeout in seconds (default: 30.0)
            transport: Optional httpx transport, mainly for tests
        """
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> UpdaterClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _handle_http_error(self, e: httpx.HTTPStatusError) -> UpdaterAPIError:
        """Translate an HTTP status error into an updater exception."""
        status_code = e.response.status_code
        url = e.request.url
        if status_code == 404:
            return UpdaterNotFoundError(f"Resource not found: {url}")
        return UpdaterAPIError(f"Request to {url} failed with status {status_code}")

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request and raise for non-success status codes.

        Raises:
            UpdaterNotFoundError: On 404
            UpdaterAPIError: On any other HTTP error status
            UpdaterNetworkError: On transport failures
        """
        client = self._get_client()
        logger.debug("%s %s", method, url)
        try:
            response = client.request(method, url, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            raise self._handle_http_error(e) from e
        except httpx.RequestError as e:
            raise UpdaterNetworkError(f"Network error for {url}: {e}") from e

    def ping(self, url: str) -> bool:
        """Check whether the server answers at all.

        Any HTTP response, including error statuses, counts as reachable.

        Args:
            url: Server base URL

        Returns:
            True if the server responded, False on transport errors
        """
        try:
            self._get_client().head(url)
            return True
        except httpx.RequestError as e:
            logger.debug("Ping of %s failed: %s", url, e)
            return False

    def get_versions(self, url: str) -> VersionTable:
        """Fetch and parse the version manifest.

        Args:
            url: URL of ``versions.json``

        Returns:
            Parsed version table

        Raises:
            UpdaterInvalidResponseError: If the body is not a JSON object of
                version strings
        """
        response = self._request("GET", url)
        try:
            data = response.json()
        except ValueError as e:
            raise UpdaterInvalidResponseError(
                f"Version manifest at {url} is not valid JSON"
            ) from e
        return VersionTable.from_json(data)

    def get_text_lines(self, url: str) -> list[str]:
        """Fetch a plain text file and return its lines."""
        response = self._request("GET", url)
        return response.text.splitlines()

    def list_remote_files(self, url: str) -> list[str]:
        """List file names published in a directory index page.

        The page follows the common autoindex layout where every entry is an
        anchor inside ``<pre>``. Sort links (``?C=N;O=D``) and absolute links
        (parent directory) are dropped. Names are returned still
        percent-encoded.

        Args:
            url: URL of the directory index

        Returns:
            Raw ``href`` values in page order
        """
        response = self._request("GET", url)
        soup = BeautifulSoup(response.text, "html.parser")
        body = soup.body or soup

        names: list[str] = []
        for pre in body.find_all("pre", recursive=False):
            for anchor in pre.find_all("a", href=True):
                href = anchor["href"]
                if href.startswith("?") or href.startswith("/"):
                    continue
                names.append(href)
        logger.debug("Listing %s returned %d entries", url, len(names))
        return names

    def get_remote_length(self, url: str) -> int:
        """Get the size of a remote file from its ``Content-Length`` header.

        Raises:
            UpdaterInvalidResponseError: If the header is missing or invalid
        """
        response = self._request("HEAD", url)
        value = response.headers.get("Content-Length")
        if value is None:
            raise UpdaterInvalidResponseError(f"No Content-Length for {url}")
        try:
            return int(value)
        except ValueError as e:
            raise UpdaterInvalidResponseError(
                f"Invalid Content-Length {value!r} for {url}"
            ) from e

    def download_file(
        self,
        url: str,
        dest_dir: Path,
        filename: str | None = None,
        progress_callback: Callable[[int, int], None] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> Path:
        """Download a file into ``dest_dir``.

        The body is written to a ``.part`` file that replaces the destination
        only once the transfer completed. On failure or cancellation the
        partial file is removed and the destination is left untouched.

        Args:
            url: File URL
            dest_dir: Directory to write into (created if missing)
            filename: Destination file name (default: last URL path segment)
            progress_callback: Optional callback function(bytes_downloaded, total_bytes)
            cancel_event: Optional event; when set the transfer is aborted

        Returns:
            Path where the file was saved

        Raises:
            UpdaterDownloadError: If the download fails
            UpdaterNetworkError: On transport failures
            UpdaterCancelledError: If ``cancel_event`` was set
        """
        if filename is None:
            filename = unquote(urlparse(url).path.rsplit("/", 1)[-1])
        if not filename:
            raise UpdaterDownloadError(f"Cannot derive a file name from {url}")

        dest_dir = Path(dest_dir)
        save_path = dest_dir / filename
        part_path = save_path.with_name(save_path.name + PART_SUFFIX)
        client = self._get_client()

        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
            with client.stream("GET", url) as response:
                response.raise_for_status()

                total_size = int(response.headers.get("Content-Length", 0) or 0)
                bytes_downloaded = 0

                with open(part_path, "wb") as f:
                    for chunk in response.iter_bytes(
                        chunk_size=DEFAULT_DOWNLOAD_CHUNK_SIZE
                    ):
                        if cancel_event is not None and cancel_event.is_set():
                            raise UpdaterCancelledError(
                                f"Download of {filename} cancelled"
                            )
                        if chunk:
                            f.write(chunk)
                            bytes_downloaded += len(chunk)
                            if progress_callback:
                                progress_callback(bytes_downloaded, total_size)

            os.replace(part_path, save_path)
            logger.debug("Downloaded %s (%d bytes)", save_path, bytes_downloaded)
            return save_path

        except httpx.HTTPStatusError as e:
            self._discard(part_path)
            raise UpdaterDownloadError(f"Download of {url} failed: {e}") from e
        except httpx.RequestError as e:
            self._discard(part_path)
            raise UpdaterNetworkError(f"Network error during download: {e}") from e
        except OSError as e:
            self._discard(part_path)
            raise UpdaterDownloadError(f"Failed to write {save_path}: {e}") from e
        except UpdaterCancelledError:
            self._discard(part_path)
            raise

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
