"""Schema definitions for the environment diff engine.

Defines change classifications, shell directives and result containers.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ChangeType(str, Enum):
    """Classification of a variable relative to the live environment."""
    ADDED = "added"          # Not in the environment yet
    CHANGED = "changed"      # In the environment with another value
    UNCHANGED = "unchanged"  # Already matches, still owned
    REMOVED = "removed"      # Previously owned, now unset


class DirectiveKind(str, Enum):
    """Shell operation to perform."""
    EXPORT = "export"
    UNSET = "unset"


@dataclass(frozen=True)
class Directive:
    """A single export or unset instruction for the shell."""
    kind: DirectiveKind
    key: str
    value: Optional[str] = None

    @classmethod
    def export(cls, key: str, value: str) -> "Directive":
        return cls(DirectiveKind.EXPORT, key, value)

    @classmethod
    def unset(cls, key: str) -> "Directive":
        return cls(DirectiveKind.UNSET, key)


@dataclass
class KeyChange:
    """Classification of one variable."""
    key: str
    change_type: ChangeType
    value: Optional[str] = None
    previous_value: Optional[str] = None


@dataclass
class DiffResult:
    """Result of diffing resolved variables against the environment."""
    changes: list[KeyChange] = field(default_factory=list)
    directives: list[Directive] = field(default_factory=list)
    # Full key set owned after this diff; None when nothing was resolved
    exported_keys: Optional[list[str]] = None

    @property
    def no_change(self) -> bool:
        """Check if there are any directives to emit."""
        return len(self.directives) == 0

    def keys_of(self, change_type: ChangeType) -> list[str]:
        """Keys with the given classification, in emission order."""
        return [c.key for c in self.changes if c.change_type == change_type]

    @property
    def added(self) -> list[str]:
        return self.keys_of(ChangeType.ADDED)

    @property
    def changed(self) -> list[str]:
        return self.keys_of(ChangeType.CHANGED)

    @property
    def unchanged(self) -> list[str]:
        return self.keys_of(ChangeType.UNCHANGED)

    @property
    def removed(self) -> list[str]:
        return self.keys_of(ChangeType.REMOVED)


@dataclass
class TransitionReport:
    """Outcome of one directory-change event."""
    previous_dir: Optional[str] = None
    current_dir: Optional[str] = None
    previous_profile: str = ""
    current_profile: str = ""
    exited: DiffResult = field(default_factory=DiffResult)
    entered: DiffResult = field(default_factory=DiffResult)

    @property
    def directives(self) -> list[Directive]:
        """Exit directives followed by enter directives."""
        return self.exited.directives + self.entered.directives

    @property
    def no_change(self) -> bool:
        return self.exited.no_change and self.entered.no_change
