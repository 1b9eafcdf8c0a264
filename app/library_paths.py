"""
Library root paths persistence.

Roots are stored as a JSON list of {"path": ..., "type": "Movie"|"Series"}
in DATA_DIR/paths.json.
"""

import json
from pathlib import Path
from typing import List, Optional, Tuple

from app.config import ensure_data_dir, get_settings
from app.logs_utils import safe_push_log
from app.scan_utils import LibraryKind, MediaRoot
from app.validate_utils import is_absolute_path

_KIND_VALUES = {kind.value: kind for kind in LibraryKind}


def _paths_file(paths_file: Optional[Path] = None) -> Path:
    return paths_file or get_settings().PATHS_FILE


def read_paths(paths_file: Optional[Path] = None) -> List[MediaRoot]:
    """Read configured roots, ignoring a missing/malformed file or bad entries"""
    target = _paths_file(paths_file)
    try:
        data = json.loads(target.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return []
    except (OSError, json.JSONDecodeError) as e:
        safe_push_log(f"⚠️ Could not read library paths from {target}: {e}")
        return []

    if not isinstance(data, list):
        return []

    roots = []
    for entry in data:
        if not isinstance(entry, dict):
            continue
        path = entry.get("path")
        kind = _KIND_VALUES.get(entry.get("type"))
        if isinstance(path, str) and kind is not None:
            roots.append(MediaRoot(path=path, kind=kind))
    return roots


def write_paths(roots: List[MediaRoot], paths_file: Optional[Path] = None) -> Path:
    if paths_file is None:
        ensure_data_dir()
    target = _paths_file(paths_file)
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = [{"path": root.path, "type": root.kind.value} for root in roots]
    target.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return target


def validate_paths_input(data) -> Tuple[bool, List[str], List[MediaRoot]]:
    """
    Validate a user-supplied list of {path, type} objects.

    Returns:
        tuple: (ok, errors, valid_roots)
    """
    if not isinstance(data, list):
        return False, ["Body must be an array of { path, type }"], []

    errors: List[str] = []
    seen = set()
    roots: List[MediaRoot] = []
    for entry in data:
        entry = entry if isinstance(entry, dict) else {}
        path = str(entry.get("path") or "")
        type_value = str(entry.get("type") or "")
        kind = _KIND_VALUES.get(type_value)

        if not path:
            errors.append("path is required")
        elif not is_absolute_path(path):
            errors.append(f"path must be absolute: {path}")
        if kind is None:
            errors.append(f"invalid type for {path}: {type_value}")
        if path in seen:
            errors.append(f"duplicate path: {path}")
            continue
        seen.add(path)

        if path and is_absolute_path(path) and kind is not None:
            roots.append(MediaRoot(path=path, kind=kind))

    if not roots:
        errors.append("at least one valid path is required")
    return not errors, errors, roots


def roots_for(kind: LibraryKind, roots: Optional[List[MediaRoot]] = None) -> List[str]:
    """Root paths of a given library kind"""
    if roots is None:
        roots = read_paths()
    return [root.path for root in roots if root.kind == kind]
