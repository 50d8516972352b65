"""Tests for the sync engine."""

import tempfile
from pathlib import Path
from unittest.mock import Mock

import httpx
import pytest

from mcupdater.api import UpdaterClient
from mcupdater.exceptions import (
    UpdaterDownloadError,
    UpdaterInvalidResponseError,
    UpdaterNetworkError,
    UpdaterNotFoundError,
)
from mcupdater.models import SessionContext
from mcupdater.output import OutputFormatter
from mcupdater.sync import AssetFolder, SyncEngine

SERVER = "http://mc.example.org/"
VERSION_PATH = "1.20.1-forge-47.1.0"
MODS_URL = f"{SERVER}minecraft/downloads/survival/{VERSION_PATH}/mods"


def _fake_download(content: bytes = b"remote-bytes"):
    """Download side effect writing ``content`` into the destination."""

    def download(url, dest_dir, filename=None, progress_callback=None):
        dest_dir.mkdir(parents=True, exist_ok=True)
        path = dest_dir / filename
        path.write_bytes(content)
        return path

    return download


class TestSyncEngine:
    """Test SyncEngine functionality."""

    @pytest.fixture
    def mock_client(self):
        """Create a mock content server client."""
        client = Mock(spec=UpdaterClient)
        client.download_file.side_effect = _fake_download()
        client.get_remote_length.return_value = len(b"remote-bytes")
        return client

    @pytest.fixture
    def mock_output(self):
        """Create a mock output formatter."""
        output = Mock(spec=OutputFormatter)
        output.quiet = True  # Suppress output during tests
        return output

    @pytest.fixture
    def context(self):
        return SessionContext(server=SERVER, profile_name="survival")

    @pytest.fixture
    def temp_dir(self):
        """Create a temporary game directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            game = Path(tmpdir)
            (game / "mods").mkdir()
            yield game

    @pytest.fixture
    def sync_engine(self, mock_client, context, mock_output):
        """Create a sync engine instance."""
        return SyncEngine(mock_client, context, mock_output)

    def _reconcile(self, engine, names, game, dry_run=False):
        return engine.reconcile(AssetFolder.MODS, names, game, VERSION_PATH, dry_run)

    def test_create_sync_engine(self, mock_client, context, mock_output):
        """Test creating a sync engine."""
        engine = SyncEngine(mock_client, context, mock_output)
        assert engine.client == mock_client
        assert engine.context == context
        assert engine.output == mock_output
        assert engine.operations is not None

    def test_end_to_end_install_and_remove(
        self, sync_engine, mock_client, mock_output, temp_dir
    ):
        """One download and one retraction, reported once each."""
        (temp_dir / "mods" / "mod2.jar").write_bytes(b"old")

        stats = self._reconcile(sync_engine, ["mod1.jar", "mod2.rem"], temp_dir)

        assert (temp_dir / "mods" / "mod1.jar").read_bytes() == b"remote-bytes"
        assert not (temp_dir / "mods" / "mod2.jar").exists()
        mock_client.download_file.assert_called_once_with(
            f"{MODS_URL}/mod1.jar",
            temp_dir / "mods",
            filename="mod1.jar",
            progress_callback=None,
        )
        assert mock_output.success.call_count == 2
        assert mock_output.error.call_count == 0
        assert stats["downloads"] == 1
        assert stats["deletes_local"] == 1
        assert stats["errors"] == 0

    def test_second_run_changes_nothing(self, sync_engine, mock_client, temp_dir):
        """Reconciling an already reconciled folder performs no mutation."""
        (temp_dir / "mods" / "mod2.jar").write_bytes(b"old")
        names = ["mod1.jar", "mod2.rem"]
        self._reconcile(sync_engine, names, temp_dir)
        mock_client.download_file.reset_mock()

        stats = self._reconcile(sync_engine, names, temp_dir)

        mock_client.download_file.assert_not_called()
        assert stats["downloads"] == 0
        assert stats["deletes_local"] == 0
        assert stats["stale"] == 0
        assert stats["skips"] == 2

    def test_pinned_bak_survives(self, sync_engine, mock_client, temp_dir):
        """A .bak file blocks the .jar download and is never removed."""
        pinned = temp_dir / "mods" / "sodium.bak"
        pinned.write_bytes(b"pinned")

        stats = self._reconcile(sync_engine, ["sodium.jar", "sodium.rem"], temp_dir)

        mock_client.download_file.assert_not_called()
        assert pinned.read_bytes() == b"pinned"
        assert not (temp_dir / "mods" / "sodium.jar").exists()
        assert stats["skips"] == 2

    def test_retraction_deletes_jar_and_zip(self, sync_engine, temp_dir):
        (temp_dir / "mods" / "old.jar").write_bytes(b"x")
        (temp_dir / "mods" / "old.zip").write_bytes(b"x")

        stats = self._reconcile(sync_engine, ["old.rem"], temp_dir)

        assert not (temp_dir / "mods" / "old.jar").exists()
        assert not (temp_dir / "mods" / "old.zip").exists()
        assert stats["deletes_local"] == 1

    def test_stale_file_is_replaced(
        self, sync_engine, mock_client, mock_output, temp_dir
    ):
        """A local file whose size differs is deleted and downloaded again."""
        (temp_dir / "mods" / "mod1.jar").write_bytes(b"short")

        stats = self._reconcile(sync_engine, ["mod1.jar"], temp_dir)

        mock_client.get_remote_length.assert_called_once_with(f"{MODS_URL}/mod1.jar")
        assert (temp_dir / "mods" / "mod1.jar").read_bytes() == b"remote-bytes"
        assert stats["stale"] == 1
        assert stats["downloads"] == 1
        assert mock_output.success.call_count == 1

    def test_current_file_is_kept(self, sync_engine, mock_client, temp_dir):
        (temp_dir / "mods" / "mod1.jar").write_bytes(b"remote-bytes")

        stats = self._reconcile(sync_engine, ["mod1.jar"], temp_dir)

        mock_client.download_file.assert_not_called()
        assert stats["stale"] == 0
        assert stats["skips"] == 1

    @pytest.mark.parametrize(
        "error",
        [
            UpdaterNetworkError("timeout"),
            UpdaterNotFoundError("gone"),
            UpdaterInvalidResponseError("no length"),
        ],
    )
    def test_failed_length_probe_keeps_file(
        self, sync_engine, mock_client, mock_output, temp_dir, error
    ):
        """When the remote size is unknown the local file is left alone."""
        local = temp_dir / "mods" / "mod1.jar"
        local.write_bytes(b"short")
        mock_client.get_remote_length.side_effect = error

        stats = self._reconcile(sync_engine, ["mod1.jar"], temp_dir)

        assert local.read_bytes() == b"short"
        mock_client.download_file.assert_not_called()
        assert stats["skips"] == 1
        assert stats["errors"] == 0
        mock_output.error.assert_not_called()

    def test_unexpected_length_error_keeps_file(
        self, sync_engine, mock_client, mock_output, temp_dir
    ):
        local = temp_dir / "mods" / "mod1.jar"
        local.write_bytes(b"short")
        mock_client.get_remote_length.side_effect = httpx.InvalidURL("bad url")

        stats = self._reconcile(sync_engine, ["mod1.jar"], temp_dir)

        assert local.read_bytes() == b"short"
        assert stats["skips"] == 1
        assert stats["errors"] == 0
        mock_output.error.assert_not_called()

    def test_traversal_names_are_ignored(self, sync_engine, mock_client, temp_dir):
        """Listing names can never reach outside the asset folder."""
        stats = self._reconcile(
            sync_engine,
            ["../", "..%2Fevil.jar", "%2E%2E%2Fevil.jar", "x%2F..%2F..%2Fevil.jar"],
            temp_dir,
        )

        mock_client.download_file.assert_not_called()
        assert not (temp_dir / "evil.jar").exists()
        assert stats == {
            "downloads": 0,
            "deletes_local": 0,
            "stale": 0,
            "skips": 0,
            "errors": 0,
        }

    def test_ignored_extension(self, sync_engine, mock_client, temp_dir):
        stats = self._reconcile(sync_engine, ["readme.txt"], temp_dir)

        mock_client.download_file.assert_not_called()
        assert stats["skips"] == 1

    def test_entry_error_does_not_stop_folder(
        self, sync_engine, mock_client, mock_output, temp_dir
    ):
        """A failed download is reported and the next entry still runs."""
        download = _fake_download()

        def flaky(url, dest_dir, filename=None, progress_callback=None):
            if filename == "broken.jar":
                raise UpdaterDownloadError("HTTP 500")
            return download(url, dest_dir, filename=filename)

        mock_client.download_file.side_effect = flaky

        stats = self._reconcile(sync_engine, ["broken.jar", "good.jar"], temp_dir)

        assert (temp_dir / "mods" / "good.jar").exists()
        assert not (temp_dir / "mods" / "broken.jar").exists()
        assert stats["errors"] == 1
        assert stats["downloads"] == 1
        mock_output.error.assert_called_once()
        assert "broken.jar [Error]" in mock_output.error.call_args[0][0]

    def test_download_creates_missing_folder(self, sync_engine, temp_dir):
        stats = sync_engine.reconcile(
            AssetFolder.SHADER_PACKS, ["BSL%20v8.zip"], temp_dir, VERSION_PATH
        )

        assert (temp_dir / "shaderpacks" / "BSL v8.zip").exists()
        assert stats["downloads"] == 1

    def test_remote_name_is_quoted_in_url(self, sync_engine, mock_client, temp_dir):
        self._reconcile(sync_engine, ["fabric-api+1.20.jar"], temp_dir)

        url = mock_client.download_file.call_args[0][0]
        assert url == f"{MODS_URL}/fabric-api%2B1.20.jar"

    def test_dry_run_changes_nothing(
        self, sync_engine, mock_client, mock_output, temp_dir
    ):
        (temp_dir / "mods" / "mod2.jar").write_bytes(b"old")
        (temp_dir / "mods" / "mod3.jar").write_bytes(b"short")

        stats = self._reconcile(
            sync_engine, ["mod1.jar", "mod2.rem", "mod3.jar"], temp_dir, dry_run=True
        )

        mock_client.download_file.assert_not_called()
        assert (temp_dir / "mods" / "mod2.jar").exists()
        assert (temp_dir / "mods" / "mod3.jar").read_bytes() == b"short"
        # The stale mod3.jar is planned as a fresh install
        assert stats["downloads"] == 2
        assert stats["deletes_local"] == 1
        assert stats["stale"] == 1
        mock_output.success.assert_not_called()

    def test_sync_folder_lists_remote(self, sync_engine, mock_client, temp_dir):
        mock_client.list_remote_files.return_value = ["mod1.jar"]

        stats = sync_engine.sync_folder(AssetFolder.MODS, VERSION_PATH, temp_dir)

        mock_client.list_remote_files.assert_called_once_with(MODS_URL)
        assert stats["downloads"] == 1

    def test_sync_folder_listing_failure(
        self, sync_engine, mock_client, mock_output, temp_dir
    ):
        mock_client.list_remote_files.side_effect = UpdaterNotFoundError("404")

        stats = sync_engine.sync_folder(AssetFolder.MODS, VERSION_PATH, temp_dir)

        assert stats["errors"] == 1
        mock_output.error.assert_called_once()

    def test_sync_folder_unexpected_listing_error(
        self, sync_engine, mock_client, mock_output, temp_dir
    ):
        mock_client.list_remote_files.side_effect = httpx.InvalidURL("bad url")

        stats = sync_engine.sync_folder(AssetFolder.MODS, VERSION_PATH, temp_dir)

        assert stats["errors"] == 1
        mock_output.error.assert_called_once()

    def test_sync_all_continues_after_listing_failure(
        self, sync_engine, mock_client, temp_dir
    ):
        """Every folder is processed in order even when one listing fails."""
        listings = {
            "mods": UpdaterNetworkError("down"),
            "resourcepacks": ["Faithful.zip"],
            "shaderpacks": [],
        }

        def list_remote_files(url):
            result = listings[url.rsplit("/", 1)[-1]]
            if isinstance(result, Exception):
                raise result
            return result

        mock_client.list_remote_files.side_effect = list_remote_files

        stats = sync_engine.sync_all(VERSION_PATH, temp_dir)

        folders = [
            call[0][0].rsplit("/", 1)[-1]
            for call in mock_client.list_remote_files.call_args_list
        ]
        assert folders == ["mods", "resourcepacks", "shaderpacks"]
        assert (temp_dir / "resourcepacks" / "Faithful.zip").exists()
        assert stats["errors"] == 1
        assert stats["downloads"] == 1

    def test_sync_all_displays_summary(self, mock_client, context, temp_dir):
        output = Mock(spec=OutputFormatter)
        output.quiet = False
        mock_client.list_remote_files.return_value = []
        engine = SyncEngine(mock_client, context, output)

        engine.sync_all(VERSION_PATH, temp_dir)

        messages = [call[0][0] for call in output.info.call_args_list]
        assert "No changes needed - everything is in sync!" in messages
