"""Decision logic for asset reconciliation.

Nothing in this module touches the network or the filesystem: callers probe
the local state and the remote length, and the comparator turns those facts
into decisions.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from ..utils import change_extension
from .scanner import AssetEntry, LocalAssetState

JAR = ".jar"
ZIP = ".zip"
BAK = ".bak"
REM = ".rem"


class AssetIntent(str, Enum):
    """What the server wants done with an entry, derived from its extension."""

    INSTALL = "install"
    """Make sure the asset is present locally"""

    REMOVE = "remove"
    """Retract a previously distributed asset"""

    IGNORED = "ignored"
    """Unknown marker, nothing to do"""


_INTENTS = {
    JAR: AssetIntent.INSTALL,
    BAK: AssetIntent.INSTALL,
    ZIP: AssetIntent.INSTALL,
    REM: AssetIntent.REMOVE,
}


def intent_for_extension(extension: str) -> AssetIntent:
    """Map a file extension (case-sensitive, with dot) to an intent."""
    return _INTENTS.get(extension, AssetIntent.IGNORED)


class SyncAction(str, Enum):
    """Actions that can be taken during reconciliation."""

    DOWNLOAD = "download"
    """Download remote file to local"""

    DELETE_LOCAL = "delete_local"
    """Delete local file(s)"""

    SKIP = "skip"
    """Skip entry (no action needed)"""


@dataclass
class SyncDecision:
    """Represents a decision about one remote entry."""

    entry: AssetEntry
    """Remote entry the decision is about"""

    intent: AssetIntent
    """Intent derived from the entry's extension"""

    action: SyncAction
    """Action to take"""

    reason: str
    """Human-readable reason for this decision"""

    targets: list[Path] = field(default_factory=list)
    """Local files to delete (DELETE_LOCAL) or to create (DOWNLOAD)"""


@dataclass(frozen=True)
class LocalSiblings:
    """Local state of an entry's path and its extension variants."""

    local: LocalAssetState
    jar: LocalAssetState
    zip: LocalAssetState
    bak: LocalAssetState

    @classmethod
    def probe(cls, path: Path) -> "LocalSiblings":
        return cls(
            local=LocalAssetState.probe(path),
            jar=LocalAssetState.probe(change_extension(path, JAR)),
            zip=LocalAssetState.probe(change_extension(path, ZIP)),
            bak=LocalAssetState.probe(change_extension(path, BAK)),
        )

    def without(self, path: Path) -> "LocalSiblings":
        """Copy with ``path`` treated as absent (planned deletion)."""

        def clear(state: LocalAssetState) -> LocalAssetState:
            if state.path == path:
                return LocalAssetState(path=state.path, exists=False)
            return state

        return LocalSiblings(
            local=clear(self.local),
            jar=clear(self.jar),
            zip=clear(self.zip),
            bak=clear(self.bak),
        )


class AssetComparator:
    """Decides what to do with each remote entry."""

    @staticmethod
    def is_stale(local: LocalAssetState, remote_length: Optional[int]) -> bool:
        """Check whether an existing local file disagrees with the server.

        Args:
            local: Probed local state of the entry's path
            remote_length: Size reported by the server, None if unknown

        Returns:
            True if the local file exists and its size differs
        """
        if not local.exists or remote_length is None:
            return False
        return local.length != remote_length

    def decide(self, entry: AssetEntry, siblings: LocalSiblings) -> SyncDecision:
        """Determine the action for ``entry`` given the local state.

        Args:
            entry: Remote entry
            siblings: Local state after any staleness deletion

        Returns:
            SyncDecision for this entry
        """
        intent = intent_for_extension(entry.extension)

        if intent == AssetIntent.INSTALL:
            return self._handle_install(entry, siblings)
        if intent == AssetIntent.REMOVE:
            return self._handle_remove(entry, siblings)
        return SyncDecision(
            entry=entry,
            intent=intent,
            action=SyncAction.SKIP,
            reason=f"No action for extension {entry.extension or '(none)'}",
        )

    def _handle_install(
        self, entry: AssetEntry, siblings: LocalSiblings
    ) -> SyncDecision:
        """Install intent: download unless any variant is already present."""
        present = [
            s.path
            for s in (siblings.local, siblings.jar, siblings.zip, siblings.bak)
            if s.exists
        ]
        if present:
            return SyncDecision(
                entry=entry,
                intent=AssetIntent.INSTALL,
                action=SyncAction.SKIP,
                reason=f"Already present as {present[0].name}",
            )
        return SyncDecision(
            entry=entry,
            intent=AssetIntent.INSTALL,
            action=SyncAction.DOWNLOAD,
            reason="Missing locally",
            targets=[siblings.local.path],
        )

    def _handle_remove(
        self, entry: AssetEntry, siblings: LocalSiblings
    ) -> SyncDecision:
        """Removal intent: delete the installed .jar and/or .zip."""
        targets = [s.path for s in (siblings.jar, siblings.zip) if s.exists]
        if not targets:
            return SyncDecision(
                entry=entry,
                intent=AssetIntent.REMOVE,
                action=SyncAction.SKIP,
                reason="Nothing installed to remove",
            )
        return SyncDecision(
            entry=entry,
            intent=AssetIntent.REMOVE,
            action=SyncAction.DELETE_LOCAL,
            reason="Retracted by server",
            targets=targets,
        )
