"""Environment engine - directory-scoped profile activation.

The engine turns a directory's resolved profile into shell directives:
- Classify each variable against the live environment
- Export only what is missing or different
- Remember every owned key so leaving the directory unsets it

Usage:
    from rv.engine import TransitionController
    from rv.store import ActivationStore

    store = ActivationStore.load()
    controller = TransitionController(store)
    report = controller.change_directory(old_pwd, cwd, os.environ, check=True)
    store.save()
"""

from .transition import TransitionController
from .schema import (
    ChangeType,
    Directive,
    DirectiveKind,
    KeyChange,
    DiffResult,
    TransitionReport,
)
from .diff import DiffEngine, summarize_diff
from .generator import ShellGenerator, HOOKS

__all__ = [
    # Main controller
    "TransitionController",
    # Schema classes
    "ChangeType",
    "Directive",
    "DirectiveKind",
    "KeyChange",
    "DiffResult",
    "TransitionReport",
    # Components
    "DiffEngine",
    "summarize_diff",
    "ShellGenerator",
    "HOOKS",
]
