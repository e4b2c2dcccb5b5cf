"""Key-value storage substrates.

A substrate holds string blobs under string keys with no transactions and no
partial updates. The file-backed substrate keeps one ``<key>.json`` file per
key in the data directory.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Protocol

logger = logging.getLogger("trailmark.kvstore")

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


def validate_key(key: str) -> str:
    """Check that a key can be stored as a file name.

    Raises:
        ValueError: If the key contains path separators or other
            unsupported characters.
    """
    if not isinstance(key, str) or not _KEY_PATTERN.match(key):
        raise ValueError(f"Invalid storage key: {key!r}")
    return key


class KeyValueStore(Protocol):
    """Single-key get/set/delete interface over string blobs."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """In-process substrate, lost when the process exits."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.items: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.items.get(key)

    def set(self, key: str, value: str) -> None:
        self.items[key] = value

    def delete(self, key: str) -> None:
        self.items.pop(key, None)


class FileKeyValueStore:
    """Substrate storing each key as a file in a directory."""

    def __init__(self, directory: Path) -> None:
        """Initialize the store.

        Args:
            directory: Directory holding the key files. Created on first write.
        """
        self.directory = directory

    def path_for(self, key: str) -> Path:
        """Get the file path for a key.

        Args:
            key: Storage key.

        Returns:
            Path to the key file.

        Raises:
            ValueError: If the key is not a valid storage key.
        """
        return self.directory / f"{validate_key(key)}.json"

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        self.directory.mkdir(parents=True, exist_ok=True)

        # Write to a sibling file first so a failed write keeps the old value
        tmp_path = path.with_suffix(".json.tmp")
        try:
            tmp_path.write_text(value, encoding="utf-8")
            tmp_path.replace(path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise
        logger.debug("Wrote %d bytes to %s", len(value), path)

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        path.unlink(missing_ok=True)
        logger.debug("Deleted %s", path)
