"""File storage layer -- one JSON blob per storage key.

The local single-device analogue of browser localStorage. Files live under
`<home>/state/<key>.json` and are written atomically (temp file + rename).
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any

from core.errors import CorruptStateError, PersistenceError

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class Store:
    """Key -> JSON blob storage rooted at a home directory.

    All paths are relative to the home directory (~/.investlearn/).
    """

    def __init__(self, home: Path, subdir: str = "state") -> None:
        self._home = home
        self._dir = home / subdir

    @property
    def directory(self) -> Path:
        return self._dir

    def path_for(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._dir / f"{key}.json"

    # ------------------------------------------------------------------
    # Blob operations
    # ------------------------------------------------------------------

    def read_blob(self, key: str) -> Any | None:
        """Return the decoded blob for `key`, or None if nothing is stored.

        Raises PersistenceError if the file can't be read and
        CorruptStateError if it isn't valid UTF-8 JSON.
        """
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise PersistenceError(f"Failed to read {path}: {exc}") from exc
        try:
            return json.loads(raw.decode("utf-8"))
        except UnicodeDecodeError as exc:
            raise CorruptStateError(f"Invalid UTF-8 in {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise CorruptStateError(f"Invalid JSON in {path}: {exc}") from exc

    def write_blob(self, key: str, data: Any) -> Path:
        """Serialize `data` as JSON and atomically replace the stored blob."""
        path = self.path_for(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Failed to write {path}: {exc}") from exc
        logger.debug("Wrote %s", path)
        return path

    def delete_blob(self, key: str) -> bool:
        """Delete a blob. Returns True if it existed."""
        path = self.path_for(key)
        try:
            if path.exists():
                path.unlink()
                return True
        except OSError as exc:
            raise PersistenceError(f"Failed to delete {path}: {exc}") from exc
        return False

    def exists(self, key: str) -> bool:
        return self.path_for(key).exists()
