"""Key/value text block utilities using the ValvePython vdf library

Steam's libraryfolders.vdf and appmanifest_*.acf files are nested
``"key" "value"`` blocks. The vdf library does the tokenizing (including
turning doubled backslashes in paths back into single ones); this module
adds the tolerant lookups the detectors need.
"""

import logging
from typing import Any, Dict, List, Optional

import vdf

logger = logging.getLogger(__name__)


class KVParseError(ValueError):
    """A key/value document could not be parsed."""


def parse_kv(text: str) -> Dict[str, Any]:
    """Parse key/value text into nested dicts.

    Raises:
        KVParseError: if the text is not a well-formed key/value document.
    """
    try:
        data = vdf.loads(text)
    except (SyntaxError, TypeError, ValueError) as e:
        raise KVParseError(str(e)) from e
    if not isinstance(data, dict):
        raise KVParseError("Top level is not a block")
    return data


def load_kv_file(path: str) -> Dict[str, Any]:
    """Read and parse a key/value file.

    FileNotFoundError and other OSErrors propagate; the caller decides
    whether a missing file means "not installed".
    """
    with open(path, 'r', encoding='utf-8', errors='ignore') as f:
        text = f.read()
    try:
        return parse_kv(text)
    except KVParseError as e:
        raise KVParseError(f"{path}: {e}") from e


def kv_get(block: Any, key: str, default: Any = None) -> Any:
    """Case-insensitive lookup in a parsed block (Steam is inconsistent about key case)."""
    if not isinstance(block, dict):
        return default
    if key in block:
        return block[key]
    lowered = key.lower()
    for k, v in block.items():
        if k.lower() == lowered:
            return v
    return default


def kv_root(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Return the named top-level block, or {} if it is missing or not a block."""
    block = kv_get(data, name, {})
    return block if isinstance(block, dict) else {}


def library_paths(data: Dict[str, Any]) -> List[str]:
    """Extract library roots from a parsed libraryfolders.vdf.

    Handles both layouts:
        "LibraryFolders" { "1" "D:\\\\SteamLibrary" }               (legacy)
        "libraryfolders" { "0" { "path" "C:\\\\Steam" "apps" {...} } }
    Entries that are not numbered libraries (e.g. "TimeNextStatsReport",
    "contentstatsid") are ignored.
    """
    root = kv_root(data, 'libraryfolders')
    paths: List[str] = []
    for key, value in root.items():
        if not key.isdigit():
            continue
        if isinstance(value, dict):
            path: Optional[str] = kv_get(value, 'path')
        else:
            path = value
        if isinstance(path, str) and path.strip():
            paths.append(path.strip())
        else:
            logger.debug(f"[KV] Library entry {key} has no path, skipping")
    return paths
