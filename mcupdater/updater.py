"""Run orchestration: connect, resolve the profile, then reconcile."""

import dataclasses
import logging
import tempfile
import threading
import time
from pathlib import Path
from typing import Callable, Optional

from packaging.version import Version

from .api import UpdaterClient
from .exceptions import (
    UpdaterAPIError,
    UpdaterCancelledError,
    UpdaterConnectionError,
    UpdaterError,
    UpdaterGamePathError,
    UpdaterOutdatedError,
    UpdaterProfileError,
)
from .models import UPDATER, Profile, SessionContext
from .output import OutputFormatter
from .profiles import load_profiles, select_profiles
from .sync import SyncEngine, merge_settings
from .sync.engine import STAT_KEYS
from .utils import (
    DEFAULT_CONNECT_ATTEMPTS,
    DEFAULT_CONNECT_DELAY,
    RELEASES_URL,
    default_game_path,
    expand_path,
    get_version,
)

logger = logging.getLogger(__name__)

SERVERS_FILE = "servers.dat"
OPTIONS_FILE = "options.txt"


def _always_yes(question: str) -> bool:
    return True


class Updater:
    """Sequences one update run for a single server profile."""

    def __init__(
        self,
        server: str,
        profile_name: str,
        game_path: Optional[Path] = None,
        client: Optional[UpdaterClient] = None,
        output: Optional[OutputFormatter] = None,
        confirm: Optional[Callable[[str], bool]] = None,
        cancel_event: Optional[threading.Event] = None,
        max_attempts: int = DEFAULT_CONNECT_ATTEMPTS,
        retry_delay: float = DEFAULT_CONNECT_DELAY,
    ):
        """Initialize the updater.

        Args:
            server: Base URL of the content server
            profile_name: Server profile (and launcher profile name) to update
            game_path: Game directory (default: platform .minecraft)
            client: Content server client
            output: Output formatter for displaying progress/status
            confirm: Callback answering yes/no questions (default: always yes)
            cancel_event: Checked between phases; when set the run stops
            max_attempts: Connection attempts before giving up
            retry_delay: Backoff step; attempt n waits n * retry_delay seconds
        """
        self.server = server if server.endswith("/") else server + "/"
        self.profile_name = profile_name
        self.game_path = game_path or default_game_path()
        self.client = client or UpdaterClient()
        self.output = output or OutputFormatter()
        self.confirm = confirm or _always_yes
        self.cancel_event = cancel_event
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay

    def _check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise UpdaterCancelledError("Update cancelled")

    def run(self, dry_run: bool = False) -> dict:
        """Execute a full update run.

        Args:
            dry_run: If True, report what would change without touching files

        Returns:
            Dictionary with summed statistics of all processed profiles

        Raises:
            UpdaterError: On any fatal condition (see the subclasses)
        """
        self.connect()
        self._check_cancelled()

        context = self.load_session()
        self._check_cancelled()

        self.find_game(context)
        self.validate_version(context)
        self.print_motd(context)
        self._check_cancelled()

        profiles = select_profiles(
            load_profiles(context.game_path), context.profile_name
        )
        if not profiles:
            raise UpdaterProfileError(
                f"No launcher profile named {context.profile_name!r} found"
            )

        engine = SyncEngine(self.client, context, self.output)
        stats = {key: 0 for key in STAT_KEYS}
        stats["profiles"] = 0
        stats["mismatches"] = 0

        for profile in profiles:
            self._check_cancelled()
            # A mismatching profile ends the run; later profiles are not tried.
            if not self.check_profile(context, profile):
                stats["mismatches"] += 1
                break

            profile_stats = self.process_profile(engine, context, profile, dry_run)
            for key in STAT_KEYS:
                stats[key] += profile_stats[key]
            stats["profiles"] += 1

        return stats

    def connect(self) -> None:
        """Wait for the server to answer, with linear backoff.

        Raises:
            UpdaterConnectionError: If every attempt failed
        """
        for attempt in range(1, self.max_attempts + 1):
            if self.client.ping(self.server):
                self.output.success("Connecting: [Done]")
                return

            self.output.warning("Connecting: [Failed]")
            if attempt < self.max_attempts:
                delay = attempt * self.retry_delay
                self.output.info(f"Retrying in {delay:g} second(s)...")
                time.sleep(delay)

        raise UpdaterConnectionError(
            f"Unable to connect to {self.server} after {self.max_attempts} attempts"
        )

    def load_session(self) -> SessionContext:
        """Fetch the version manifest and MOTD and freeze them in a context.

        Raises:
            UpdaterProfileError: If the version manifest cannot be loaded
        """
        context = SessionContext(
            server=self.server,
            profile_name=self.profile_name,
            game_path=self.game_path,
        )
        try:
            versions = self.client.get_versions(context.versions_url)
        except UpdaterError as e:
            logger.error("Loading %s failed", context.versions_url, exc_info=True)
            raise UpdaterProfileError(
                f"Unable to get profile {self.profile_name!r}: {e}"
            ) from e
        self.output.success("Getting profile: [Done]")

        try:
            motd = tuple(self.client.get_text_lines(context.motd_url))
        except UpdaterAPIError as e:
            logger.warning("No message of the day: %s", e)
            motd = ()

        return dataclasses.replace(context, versions=versions, motd=motd)

    def find_game(self, context: SessionContext) -> None:
        """Ensure the game directory exists.

        Raises:
            UpdaterGamePathError: If it does not
        """
        if context.game_path is None or not context.game_path.is_dir():
            self.output.warning("Getting game path: [Failed]")
            raise UpdaterGamePathError(
                f"Unable to find the game directory {context.game_path}"
            )
        self.output.success("Getting game path: [Done]")

    def validate_version(self, context: SessionContext) -> None:
        """Refuse to run when the server asks for a newer updater.

        Raises:
            UpdaterOutdatedError: If this release is older than required
        """
        required = context.versions.get(UPDATER)
        if required is None:
            return
        if Version(get_version()) < required:
            raise UpdaterOutdatedError(
                f"This updater is outdated (version {required} required). "
                f"Download the latest release from\n{RELEASES_URL}"
            )

    def print_motd(self, context: SessionContext) -> None:
        self.output.print("")
        for line in context.motd:
            self.output.print(line)
        self.output.print("")

    def check_profile(self, context: SessionContext, profile: Profile) -> bool:
        """Verify the profile runs the loader the server expects.

        Returns:
            True if it matches; False after reporting the mismatch
        """
        expected = context.versions.loader_name()
        if profile.last_version_id == expected:
            return True

        self.output.error(
            f"Profile {context.profile_name!r} ({profile.name}) requires "
            f"{expected or 'an unknown loader'} but uses "
            f"{profile.last_version_id or 'no loader'}"
        )
        download_url = context.versions.loader_download_url()
        if download_url:
            self.output.error(f"Download the loader from {download_url}")
        return False

    def profile_game_path(self, context: SessionContext, profile: Profile) -> Path:
        """Game directory of ``profile``, falling back to the default one."""
        if profile.game_dir and profile.game_dir.strip():
            return expand_path(profile.game_dir)
        return context.game_path or self.game_path

    def process_profile(
        self,
        engine: SyncEngine,
        context: SessionContext,
        profile: Profile,
        dry_run: bool = False,
    ) -> dict:
        """Update one launcher profile.

        Returns:
            Statistics from the asset reconciliation
        """
        version_path = context.versions.version_path(profile)
        self.output.heading(
            f"Profile: {profile.name} ({profile.last_version_id})", style="yellow"
        )
        game_path = self.profile_game_path(context, profile)

        if not dry_run:
            self.replace_server_list(context, version_path, game_path)
            self.apply_recommended_options(context, version_path, game_path)

        self.output.print("")
        return engine.sync_all(version_path, game_path, dry_run)

    def replace_server_list(
        self, context: SessionContext, version_path: str, game_path: Path
    ) -> bool:
        """Replace ``servers.dat`` with the server's copy.

        An existing list is only replaced after confirmation. Failures are
        logged and otherwise ignored.

        Returns:
            True if the file was replaced
        """
        servers_file = game_path / SERVERS_FILE
        if servers_file.exists() and not self.confirm("Replace server list?"):
            return False

        url = context.file_url(version_path, SERVERS_FILE)
        try:
            self.client.download_file(
                url, game_path, filename=SERVERS_FILE, cancel_event=self.cancel_event
            )
        except UpdaterError as e:
            logger.debug("Server list not replaced: %s", e)
            return False
        self.output.success("Server list updated")
        return True

    def apply_recommended_options(
        self, context: SessionContext, version_path: str, game_path: Path
    ) -> bool:
        """Merge the server's recommended options into ``options.txt``.

        Only runs when the user already has an options file and agrees.
        Failures are logged and otherwise ignored.

        Returns:
            True if the options file changed
        """
        options_file = game_path / OPTIONS_FILE
        if not options_file.exists():
            return False
        if not self.confirm("Apply recommended options?"):
            return False

        url = context.file_url(version_path, OPTIONS_FILE)
        with tempfile.TemporaryDirectory(prefix="mcupdater-") as tmp:
            try:
                remote_file = self.client.download_file(
                    url, Path(tmp), filename=OPTIONS_FILE, cancel_event=self.cancel_event
                )
                changed = merge_settings(remote_file, options_file)
            except (UpdaterError, OSError, ValueError) as e:
                logger.debug("Recommended options not applied: %s", e)
                return False

        if changed:
            self.output.success("Recommended options applied")
        return changed
