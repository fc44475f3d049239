"""
File-based local key/value store.

Each logical key is kept in its own `<key>.json` file inside the data
directory, written in full after every change.
"""

from pathlib import Path
from typing import Optional

from household_ledger.services.storage.interface import (
    LocalStateBackend,
    StorageError,
)


class JsonFileBackend(LocalStateBackend):
    """Stores every key as a UTF-8 JSON file in one directory."""

    def __init__(self, directory: Path):
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def get_path(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        target = self.get_path(key)
        if not target.exists():
            return None
        try:
            return target.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            # Unreadable is treated like absent; the store falls back to defaults
            return None

    def set(self, key: str, value: str) -> None:
        target = self.get_path(key)
        tmp = target.with_suffix(".json.tmp")
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            tmp.write_text(value, encoding="utf-8")
            tmp.replace(target)
        except OSError as e:
            raise StorageError(f"Failed to write '{key}': {e}")
