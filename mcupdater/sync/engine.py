"""Core sync engine reconciling local asset folders with the server."""

import logging
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Optional

from ..api import UpdaterClient
from ..models import SessionContext
from ..output import OutputFormatter
from ..utils import format_size
from .comparator import AssetComparator, LocalSiblings, SyncAction, SyncDecision
from .operations import SyncOperations
from .scanner import AssetEntry, AssetFolder, build_entries

logger = logging.getLogger(__name__)

STAT_KEYS = ("downloads", "deletes_local", "stale", "skips", "errors")


class SyncEngine:
    """Makes local asset folders match what the server declares.

    Folders and entries are processed one at a time. Every action is
    idempotent, so an interrupted or partially failed run is repaired by
    running again.
    """

    def __init__(
        self,
        client: UpdaterClient,
        context: SessionContext,
        output: Optional[OutputFormatter] = None,
    ):
        """Initialize sync engine.

        Args:
            client: Content server client
            context: Session context used to build remote URLs
            output: Output formatter for displaying progress/status
        """
        self.client = client
        self.context = context
        self.output = output or OutputFormatter()
        self.operations = SyncOperations(client)
        self.comparator = AssetComparator()

    def sync_all(
        self, version_path: str, game_path: Path, dry_run: bool = False
    ) -> dict:
        """Reconcile every asset folder in order.

        Args:
            version_path: Remote asset set key
            game_path: Game directory holding the asset folders
            dry_run: If True, only show what would be done

        Returns:
            Dictionary with summed statistics
        """
        stats = self._create_empty_stats()
        for folder in AssetFolder:
            folder_stats = self.sync_folder(folder, version_path, game_path, dry_run)
            for key in STAT_KEYS:
                stats[key] += folder_stats[key]

        if not self.output.quiet:
            self._display_summary(stats, dry_run)
        return stats

    def sync_folder(
        self,
        folder: AssetFolder,
        version_path: str,
        game_path: Path,
        dry_run: bool = False,
    ) -> dict:
        """Fetch the remote listing for ``folder`` and reconcile it.

        A listing that cannot be fetched is reported and counted as one
        error; it never raises.
        """
        self.output.heading(f"=> Processing {folder.value}...")
        url = self.context.folder_url(version_path, folder.value)
        try:
            remote_names = self.client.list_remote_files(url)
        except Exception as e:
            logger.error("Listing %s failed: %s", url, e, exc_info=True)
            self.output.error(f"    Cannot list {folder.value}: {e}")
            stats = self._create_empty_stats()
            stats["errors"] = 1
            return stats

        return self.reconcile(folder, remote_names, game_path, version_path, dry_run)

    def reconcile(
        self,
        folder: AssetFolder,
        remote_names: Iterable[str],
        local_base: Path,
        version_path: str,
        dry_run: bool = False,
    ) -> dict:
        """Reconcile one local folder against a remote listing.

        Args:
            folder: Asset folder being processed
            remote_names: Raw (still percent-encoded) listing names
            local_base: Directory containing the asset folders
            version_path: Remote asset set key
            dry_run: If True, nothing is downloaded or deleted

        Returns:
            Dictionary with statistics for this folder
        """
        start_time = time.time()
        stats = self._create_empty_stats()
        entries = build_entries(folder, remote_names)
        logger.debug("Reconciling %d entries in %s", len(entries), folder.value)

        for entry in entries:
            self._reconcile_entry(entry, local_base, version_path, dry_run, stats)

        logger.debug(
            "Reconciled %s in %.2fs: %s", folder.value, time.time() - start_time, stats
        )
        return stats

    def _reconcile_entry(
        self,
        entry: AssetEntry,
        local_base: Path,
        version_path: str,
        dry_run: bool,
        stats: dict,
    ) -> None:
        """Probe, decide and act on a single entry, updating ``stats``.

        Any failure is reported and counted; it never propagates.
        """
        url = self.context.asset_url(version_path, entry.folder.value, entry.name)
        local_path = entry.local_path(local_base)
        try:
            siblings = LocalSiblings.probe(local_path)
            siblings = self._check_staleness(entry, url, siblings, dry_run, stats)

            decision = self.comparator.decide(entry, siblings)
            logger.debug(
                "%s: %s (%s)", entry.name, decision.action.value, decision.reason
            )
            if decision.action == SyncAction.SKIP:
                stats["skips"] += 1
                return

            self._execute_decision(decision, url, dry_run)
            if decision.action == SyncAction.DOWNLOAD:
                stats["downloads"] += 1
            elif decision.action == SyncAction.DELETE_LOCAL:
                stats["deletes_local"] += 1
        except Exception as e:
            stats["errors"] += 1
            logger.error("Failed to process %s: %s", entry.name, e, exc_info=True)
            self.output.error(f"    {entry.name} [Error] {e}")

    def _check_staleness(
        self,
        entry: AssetEntry,
        url: str,
        siblings: LocalSiblings,
        dry_run: bool,
        stats: dict,
    ) -> LocalSiblings:
        """Delete the local file when its size differs from the server's.

        When the remote size cannot be determined the local file is kept.

        Returns:
            Local state to base the decision on
        """
        if not siblings.local.exists:
            return siblings

        try:
            remote_length = self.operations.remote_length(url)
        except Exception as e:
            logger.warning("Cannot check %s for staleness: %s", entry.name, e)
            return siblings

        if not self.comparator.is_stale(siblings.local, remote_length):
            return siblings

        logger.debug(
            "%s is stale (local %s, remote %s)",
            entry.name,
            format_size(siblings.local.length),
            format_size(remote_length),
        )
        stats["stale"] += 1
        if dry_run:
            return siblings.without(siblings.local.path)

        self.operations.delete_local(siblings.local.path)
        return LocalSiblings.probe(siblings.local.path)

    def _execute_decision(
        self, decision: SyncDecision, url: str, dry_run: bool
    ) -> None:
        """Execute a single download or delete decision."""
        name = decision.entry.name

        if decision.action == SyncAction.DOWNLOAD:
            if dry_run:
                self.output.info(f"    Would install: {name}")
                return
            action_start = time.time()
            self.operations.download_file(url, decision.targets[0])
            logger.debug(
                "Download of %s took %.2fs", name, time.time() - action_start
            )
            self.output.success(f"    Installed: {name}")

        elif decision.action == SyncAction.DELETE_LOCAL:
            if dry_run:
                self.output.info(f"    Would delete: {decision.entry.stem}")
                return
            for target in decision.targets:
                self.operations.delete_local(target)
            self.output.success(f"    Deleted: {decision.entry.stem}")

    def _create_empty_stats(self) -> dict:
        """Create an empty statistics dictionary.

        Returns:
            Dictionary with zero counts for all stat categories
        """
        return {key: 0 for key in STAT_KEYS}

    def _display_summary(self, stats: dict, dry_run: bool) -> None:
        """Display sync summary.

        Args:
            stats: Statistics dictionary
            dry_run: Whether this was a dry run
        """
        self.output.print("")
        total_actions = stats["downloads"] + stats["deletes_local"]

        if total_actions > 0:
            verb = "Planned" if dry_run else "Total"
            self.output.info(f"{verb} actions: {total_actions}")
            if stats["downloads"] > 0:
                self.output.info(f"  Installed: {stats['downloads']}")
            if stats["deletes_local"] > 0:
                self.output.info(f"  Deleted: {stats['deletes_local']}")
        else:
            self.output.info("No changes needed - everything is in sync!")

        if stats["stale"] > 0:
            self.output.info(f"  Replaced outdated: {stats['stale']}")
        if stats["errors"] > 0:
            self.output.warning(f"  Errors: {stats['errors']}")
