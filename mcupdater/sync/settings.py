"""Merging recommended game options into the user's ``options.txt``.

The file is a list of ``key:value`` lines. Recommended values replace the
user's values for keys both sides define; every other local line is kept as
it is and in its place. The resource pack list is merged instead of replaced
so that packs the user enabled stay enabled.
"""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

RESOURCE_PACKS_KEY = "resourcePacks"


def escape_non_ascii(value: str) -> str:
    """Escape characters above 127 and ``&`` as ``\\uXXXX``.

    Examples:
        >>> escape_non_ascii("Faithful & Co")
        'Faithful \\\\u0026 Co'
        >>> escape_non_ascii("café")
        'caf\\\\u00e9'
    """
    escaped = []
    for c in value:
        if ord(c) <= 127 and c != "&":
            escaped.append(c)
            continue
        # One escape per UTF-16 code unit, so astral characters become a
        # surrogate pair
        units = c.encode("utf-16-be")
        for i in range(0, len(units), 2):
            code_unit = int.from_bytes(units[i : i + 2], "big")
            escaped.append(f"\\u{code_unit:04x}")
    return "".join(escaped)


def parse_settings(lines: list[str]) -> dict[str, str]:
    """Parse ``key:value`` lines into a mapping.

    The value is everything after the first colon. Lines without a colon
    are ignored.
    """
    values: dict[str, str] = {}
    for line in lines:
        key, sep, value = line.partition(":")
        if not sep or not key:
            continue
        values[key] = value
    return values


def _parse_pack_list(value: str) -> list[str]:
    packs = json.loads(value)
    if not isinstance(packs, list):
        raise ValueError(f"{RESOURCE_PACKS_KEY} is not a list: {value!r}")
    return [str(p) for p in packs]


def merge_pack_lists(local: list[str], remote: list[str]) -> list[str]:
    """Local packs first, then remote packs not already enabled."""
    merged = list(local)
    for pack in remote:
        if pack not in merged:
            merged.append(pack)
    return merged


def merge_lines(local_lines: list[str], remote: dict[str, str]) -> list[str]:
    """Apply recommended values to the user's lines.

    Args:
        local_lines: Lines of the user's file
        remote: Parsed recommended settings

    Returns:
        New list of lines, same length and order as ``local_lines``
    """
    merged: list[str] = []
    for line in local_lines:
        key, sep, value = line.partition(":")
        if not sep or key not in remote:
            merged.append(line)
            continue

        if key == RESOURCE_PACKS_KEY:
            local_packs = _parse_pack_list(value)
            union = merge_pack_lists(local_packs, _parse_pack_list(remote[key]))
            if len(union) == len(local_packs):
                merged.append(line)
                continue
            packs = ",".join(json.dumps(pack, ensure_ascii=False) for pack in union)
            merged.append(f"{key}:[{escape_non_ascii(packs)}]")
        else:
            merged.append(f"{key}:{escape_non_ascii(remote[key])}")
    return merged


def merge_settings(remote_file: Path, local_file: Path) -> bool:
    """Merge ``remote_file`` into ``local_file`` in place.

    Args:
        remote_file: Recommended options downloaded from the server
        local_file: The user's options file

    Returns:
        True if the local file content changed
    """
    remote = parse_settings(remote_file.read_text(encoding="utf-8").splitlines())

    with open(local_file, encoding="utf-8", newline="") as f:
        content = f.read()
    newline = "\r\n" if "\r\n" in content else "\n"
    local_lines = content.splitlines()

    merged = merge_lines(local_lines, remote)
    if merged == local_lines:
        logger.debug("%s already matches recommended options", local_file)
        return False

    with open(local_file, "w", encoding="utf-8", newline="") as f:
        f.write(newline.join(merged) + newline)
    logger.debug("Merged %d recommended options into %s", len(remote), local_file)
    return True
