"""rv - directory-scoped environment variable profiles.

Each directory may hold an rv.toml whose tables are profiles. `rv set`
selects one, and the shell hook exports its variables while the shell is
inside that directory and unsets them again when it leaves.
"""
from .config import ConfigParseError, ProfileNotFoundError, load_tree, resolve_variables
from .engine import DiffEngine, Directive, DiffResult, ShellGenerator, TransitionController
from .store import ActivationRecord, ActivationStore, StoreCorruptError

__version__ = "0.4.0"

__all__ = [
    "ConfigParseError",
    "ProfileNotFoundError",
    "load_tree",
    "resolve_variables",
    "DiffEngine",
    "Directive",
    "DiffResult",
    "ShellGenerator",
    "TransitionController",
    "ActivationRecord",
    "ActivationStore",
    "StoreCorruptError",
]
