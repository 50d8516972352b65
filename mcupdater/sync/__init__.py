"""Sync engine for mcupdater - asset folder reconciliation and options merge."""

from .comparator import (
    AssetComparator,
    AssetIntent,
    LocalSiblings,
    SyncAction,
    SyncDecision,
    intent_for_extension,
)
from .engine import SyncEngine
from .operations import SyncOperations
from .scanner import (
    AssetEntry,
    AssetFolder,
    LocalAssetState,
    build_entries,
    decode_remote_name,
)
from .settings import escape_non_ascii, merge_settings

__all__ = [
    "SyncEngine",
    "SyncOperations",
    "AssetComparator",
    "AssetIntent",
    "SyncAction",
    "SyncDecision",
    "LocalSiblings",
    "intent_for_extension",
    "AssetEntry",
    "AssetFolder",
    "LocalAssetState",
    "build_entries",
    "decode_remote_name",
    "escape_non_ascii",
    "merge_settings",
]
