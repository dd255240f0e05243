"""Activation store package for per-directory profile state.

This package provides:
- ActivationStore: load/get/set/remove/save over metadata.json
- ActivationRecord: selected profile plus the keys it last exported
- StoreCorruptError: raised when the persisted document is unreadable

Default location:
    ~/.local/share/rv/
    ├── metadata.json     # activation records keyed by rv.toml path
    └── rv.log            # rotating debug log
"""

from .store import (
    ActivationStore,
    ActivationRecord,
    StoreCorruptError,
    METADATA_FILENAME,
    default_store_path,
)

__all__ = [
    "ActivationStore",
    "ActivationRecord",
    "StoreCorruptError",
    "METADATA_FILENAME",
    "default_store_path",
]
