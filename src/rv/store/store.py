"""Activation store for per-directory profile state.

Handles:
- Loading the metadata.json document (missing file = empty store)
- Record lookup, insertion and removal in memory
- Atomic rewrite of the whole document on save

Document format, keyed by the directory's rv.toml path:

    {
        "/home/me/project/rv.toml": {"name": "work.staging", "variables": ["API_URL"]},
        "/home/me/other/rv.toml": {"name": "dev", "variables": null}
    }
"""
import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Optional

from ..config.settings import get_data_dir

logger = logging.getLogger(__name__)

METADATA_FILENAME = "metadata.json"


def default_store_path() -> Path:
    """Location of metadata.json for the invoking user."""
    return get_data_dir() / METADATA_FILENAME


class StoreCorruptError(Exception):
    """The persisted store exists but cannot be parsed."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Activation store {path} is corrupt: {reason}")


@dataclass
class ActivationRecord:
    """Last known activation state of one directory.

    exported_keys is None until the profile has been resolved once;
    an empty list means it resolved to zero variables.
    """
    profile: str
    exported_keys: Optional[list[str]] = None

    @property
    def resolved(self) -> bool:
        return self.exported_keys is not None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.profile, "variables": self.exported_keys}

    @classmethod
    def from_dict(cls, data: Any) -> "ActivationRecord":
        """Parse a stored record, raising ValueError on a bad shape."""
        if not isinstance(data, dict):
            raise ValueError(f"record must be an object, got {type(data).__name__}")

        name = data.get("name")
        if not isinstance(name, str):
            raise ValueError("record 'name' must be a string")

        variables = data.get("variables")
        if variables is not None:
            if not isinstance(variables, list) or not all(
                isinstance(v, str) for v in variables
            ):
                raise ValueError("record 'variables' must be a list of strings or null")
            variables = list(variables)

        return cls(profile=name, exported_keys=variables)


class ActivationStore:
    """
    In-memory view of metadata.json.

    Load once per invocation, mutate, then save once. There is no locking:
    two shells saving concurrently means the last writer wins.
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        records: Optional[dict[str, ActivationRecord]] = None,
    ):
        self.path = Path(path) if path else default_store_path()
        self._records: dict[str, ActivationRecord] = dict(records or {})
        self.dirty = False

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "ActivationStore":
        """
        Load the store from disk.

        Returns an empty store if the document does not exist yet.

        Raises:
            StoreCorruptError: If the document is not valid JSON or has
                the wrong structure
        """
        store = cls(path)

        if not store.path.exists():
            logger.debug(f"No activation store at {store.path}, starting empty")
            return store

        try:
            content = store.path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise StoreCorruptError(store.path, str(e)) from e

        if not content.strip():
            return store

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise StoreCorruptError(store.path, str(e)) from e

        if not isinstance(data, dict):
            raise StoreCorruptError(store.path, "top level must be an object")

        for key, value in data.items():
            try:
                store._records[key] = ActivationRecord.from_dict(value)
            except ValueError as e:
                raise StoreCorruptError(store.path, f"{key}: {e}") from e

        logger.debug(f"Loaded {len(store._records)} activation records from {store.path}")
        return store

    def get(self, key: str) -> Optional[ActivationRecord]:
        """Look up the record for a directory key."""
        return self._records.get(key)

    def set(self, key: str, record: ActivationRecord) -> None:
        """Insert or replace the record for a directory key."""
        self._records[key] = record
        self.dirty = True

    def remove(self, key: str) -> bool:
        """Delete the record for a key. Returns False if there was none."""
        if self._records.pop(key, None) is None:
            return False
        self.dirty = True
        return True

    def keys(self) -> list[str]:
        return list(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def to_dict(self) -> dict[str, Any]:
        return {key: record.to_dict() for key, record in self._records.items()}

    def save(self) -> None:
        """Write the whole document atomically (temp file + rename)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(self.to_dict(), indent=2)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=str(self.path.parent))
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()

        self.dirty = False
        logger.debug(f"Saved {len(self._records)} activation records to {self.path}")
