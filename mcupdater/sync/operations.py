"""Filesystem and network side effects of reconciliation."""

from pathlib import Path
from typing import Callable, Optional

from ..api import UpdaterClient


class SyncOperations:
    """Effectful counterpart of the comparator's decisions."""

    def __init__(self, client: UpdaterClient):
        """Initialize sync operations.

        Args:
            client: Content server client
        """
        self.client = client

    def remote_length(self, url: str) -> int:
        """Size of the remote file at ``url`` in bytes."""
        return self.client.get_remote_length(url)

    def download_file(
        self,
        url: str,
        local_path: Path,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> Path:
        """Download ``url`` to ``local_path``.

        Args:
            url: Remote file URL
            local_path: Local path where file should be saved
            progress_callback: Optional progress callback
                function(bytes_downloaded, total_bytes)

        Returns:
            Path where file was saved
        """
        return self.client.download_file(
            url,
            local_path.parent,
            filename=local_path.name,
            progress_callback=progress_callback,
        )

    def delete_local(self, path: Path) -> None:
        """Delete a local file permanently."""
        path.unlink()
