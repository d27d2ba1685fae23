"""JSON manifest reading for launchers that keep per-install JSON documents."""

import json
import logging
from typing import Any, Dict, Iterable, List, Tuple

logger = logging.getLogger(__name__)


class ManifestError(ValueError):
    """A manifest document was malformed or missing required fields."""


def read_json_manifest(path: str) -> Dict[str, Any]:
    """
    Read one JSON manifest.

    Raises:
        FileNotFoundError / OSError: the file could not be opened.
        ManifestError: the file is not a JSON object.
    """
    # utf-8-sig: some launchers write a BOM
    with open(path, 'r', encoding='utf-8-sig') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ManifestError(f"{path}: invalid JSON ({e})") from e
    if not isinstance(data, dict):
        raise ManifestError(f"{path}: expected an object, got {type(data).__name__}")
    return data


def require_fields(entry: Any, fields: Iterable[str], optional: Iterable[str] = ()) -> Dict[str, Any]:
    """
    Check that `entry` is an object with non-empty string values for `fields`.

    Fields named in `optional` may be absent or null, but must be strings
    when present.
    """
    if not isinstance(entry, dict):
        raise ManifestError(f"expected an object, got {type(entry).__name__}")
    fields = tuple(fields)
    missing = [name for name in fields if not entry.get(name)]
    if missing:
        raise ManifestError(f"missing fields: {', '.join(missing)}")
    wrong = [name for name in (*fields, *optional)
             if entry.get(name) is not None and not isinstance(entry[name], str)]
    if wrong:
        raise ManifestError(f"expected text for: {', '.join(wrong)}")
    return entry


def valid_entries(entries: Any, fields: Iterable[str], source: str = '',
                  optional: Iterable[str] = ()) -> Tuple[List[Dict[str, Any]], int]:
    """
    Filter a list of manifest entries down to the well-formed ones.

    Returns:
        (entries that have every field in `fields`, number skipped)
    """
    fields = tuple(fields)
    optional = tuple(optional)
    if not isinstance(entries, list):
        return [], 0
    good = []
    skipped = 0
    for index, entry in enumerate(entries):
        try:
            good.append(require_fields(entry, fields, optional))
        except ManifestError as e:
            skipped += 1
            logger.warning(f"[Manifest] Skipping entry {index} in {source or 'manifest'}: {e}")
    return good, skipped
