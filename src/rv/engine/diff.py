"""Diff engine for calculating shell changes between resolved and live state.

Computes the minimal set of export/unset directives needed so the shell's
environment matches a directory's resolved profile.
"""
from typing import Mapping, Optional, Sequence

from .schema import (
    ChangeType,
    Directive,
    DiffResult,
    KeyChange,
)


class DiffEngine:
    """Calculate directives between resolved variables and the environment."""

    def __init__(self, sort_keys: bool = False):
        """
        Args:
            sort_keys: Emit directives in sorted key order instead of
                the resolved map's insertion order
        """
        self.sort_keys = sort_keys

    def _ordered(self, keys):
        return sorted(keys) if self.sort_keys else list(keys)

    def calculate(
        self,
        previous_keys: Optional[Sequence[str]],
        resolved: Mapping[str, str],
        live_env: Mapping[str, str],
    ) -> DiffResult:
        """
        Calculate the entry diff for a directory.

        Args:
            previous_keys: Keys this directory exported last time (or None)
            resolved: Freshly resolved variables for the current profile
            live_env: The invoking shell's environment

        Returns:
            DiffResult whose exported_keys is every resolved key,
            including ones that already matched
        """
        result = DiffResult(exported_keys=list(resolved))

        for key in self._ordered(resolved):
            value = resolved[key]
            current = live_env.get(key)

            if current is None:
                change_type = ChangeType.ADDED
            elif current != value:
                change_type = ChangeType.CHANGED
            else:
                # Still owned, so a later exit unsets it
                change_type = ChangeType.UNCHANGED

            result.changes.append(KeyChange(key, change_type, value, current))
            if change_type != ChangeType.UNCHANGED:
                result.directives.append(Directive.export(key, value))

        # Keys dropped from the profile since the last resolution
        if previous_keys is not None:
            stale = [k for k in previous_keys if k not in resolved]
            for key in self._ordered(dict.fromkeys(stale)):
                result.changes.append(
                    KeyChange(key, ChangeType.REMOVED, previous_value=live_env.get(key))
                )
                result.directives.append(Directive.unset(key))

        return result

    def release(self, previous_keys: Optional[Sequence[str]]) -> DiffResult:
        """
        Calculate the exit diff for a directory.

        Every owned key is unset, whether or not the live value still
        matches what was exported.
        """
        result = DiffResult()
        if not previous_keys:
            return result

        for key in self._ordered(dict.fromkeys(previous_keys)):
            result.changes.append(KeyChange(key, ChangeType.REMOVED))
            result.directives.append(Directive.unset(key))

        return result


def summarize_diff(diff: DiffResult) -> str:
    """
    Create a human-readable summary of a diff.

    Useful for debug logging.
    """
    if diff.no_change:
        return "No changes needed - environment matches profile"

    lines = [f"Changes to apply ({len(diff.directives)} total):"]

    for change in diff.changes:
        if change.change_type == ChangeType.ADDED:
            lines.append(f"  [+] {change.key}")
        elif change.change_type == ChangeType.CHANGED:
            lines.append(f"  [~] {change.key}")
        elif change.change_type == ChangeType.REMOVED:
            lines.append(f"  [-] {change.key}")

    if diff.unchanged:
        lines.append(f"  ({len(diff.unchanged)} unchanged: {', '.join(diff.unchanged)})")

    return "\n".join(lines)
