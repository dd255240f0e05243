"""Shell generator for turning directives into evaluable shell text.

Generates `export`/`unset` lines plus optional colored `echo` summaries.
The output of `rv precmd` and `rv clear` is meant to be passed to `eval`.
"""
import shlex
from pathlib import Path
from typing import Optional, Sequence

from ..config.settings import Format, Settings
from ..store.store import ActivationRecord
from .schema import (
    ChangeType,
    Directive,
    DirectiveKind,
    DiffResult,
    TransitionReport,
)

CHECK_VARIABLE = "RV_CHECK"

ZSH_HOOK = """\
_rv_chpwd() {
  eval "$(command rv chpwd)"
}
_rv_precmd() {
  eval "$(command rv precmd)"
}
rv() {
  if [ "$1" = "clear" ]; then
    eval "$(command rv "$@")"
  else
    command rv "$@"
  fi
}
autoload -Uz add-zsh-hook
add-zsh-hook chpwd _rv_chpwd
add-zsh-hook precmd _rv_precmd
"""

BASH_HOOK = """\
_rv_precmd() {
  if [ -n "${_RV_LAST_PWD:-}" ] && [ "$PWD" != "$_RV_LAST_PWD" ]; then
    eval "$(RV_CHECK=1 command rv precmd --previous "$_RV_LAST_PWD")"
  else
    eval "$(command rv precmd)"
  fi
  _RV_LAST_PWD="$PWD"
}
rv() {
  if [ "$1" = "clear" ]; then
    eval "$(command rv "$@")"
  else
    command rv "$@"
  fi
}
if [[ ";${PROMPT_COMMAND:-};" != *";_rv_precmd;"* ]]; then
  PROMPT_COMMAND="_rv_precmd${PROMPT_COMMAND:+;$PROMPT_COMMAND}"
fi
"""

HOOKS = {
    "zsh": ZSH_HOOK,
    "bash": BASH_HOOK,
}


class ShellGenerator:
    """Render directives and summaries for POSIX shells."""

    def __init__(self, settings: Optional[Settings] = None, home: Optional[Path] = None):
        self.settings = settings or Settings()
        self.home = str(home if home is not None else Path.home())

    def command(self, directive: Directive) -> str:
        """Render one directive as a shell statement."""
        if directive.kind == DirectiveKind.EXPORT:
            return f"export {directive.key}={shlex.quote(directive.value or '')}"
        return f"unset {directive.key}"

    def commands(self, directives: Sequence[Directive]) -> list[str]:
        return [self.command(d) for d in directives]

    def shorten(self, path: str) -> str:
        """Replace the home directory prefix with ~."""
        if path == self.home:
            return "~"
        if self.home and path.startswith(self.home.rstrip("/") + "/"):
            return "~" + path[len(self.home.rstrip("/")):]
        return path

    def _painted_keys(self, diff: DiffResult) -> str:
        styles = {
            ChangeType.ADDED: self.settings.added,
            ChangeType.CHANGED: self.settings.changed,
            ChangeType.REMOVED: self.settings.removed,
        }
        return "".join(
            styles[c.change_type].paint(c.key)
            for c in diff.changes
            if c.change_type in styles
        )

    @staticmethod
    def _echo(text: str) -> str:
        return f"echo {shlex.quote(text)}"

    def _summary(self, header: Format, dir_format: Format, label: str, pad: int, keys: str) -> str:
        return self._echo(f"{header.paint('')}{dir_format.paint(label)}{' ' * pad}{keys}")

    def transition_summary(self, report: TransitionReport) -> list[str]:
        """
        Build the echo lines announcing a transition.

        The exit and enter lines are padded so their key lists line up.
        """
        previous_label = f"{self.shorten(report.previous_dir or '')}:{report.previous_profile}"
        current_label = f"{self.shorten(report.current_dir or '')}:{report.current_profile}"

        width = max(len(previous_label), len(current_label))
        lines = []

        if not report.exited.no_change:
            lines.append(self._summary(
                self.settings.deactivated,
                self.settings.deactivated_dir,
                previous_label,
                width - len(previous_label),
                self._painted_keys(report.exited),
            ))

        if not report.entered.no_change:
            lines.append(self._summary(
                self.settings.activated,
                self.settings.activated_dir,
                current_label,
                width - len(current_label),
                self._painted_keys(report.entered),
            ))

        return lines

    def precmd(self, report: TransitionReport, summary: bool = True) -> str:
        """Full output of a prompt hook invocation."""
        lines = self.transition_summary(report) if summary else []
        lines.append(f"unset {CHECK_VARIABLE}")
        lines.extend(self.commands(report.directives))
        return "\n".join(lines)

    def clear(self, directory: str, diff: DiffResult, summary: bool = True) -> str:
        """Output of deactivating a directory's profile."""
        lines = []
        if summary and not diff.no_change:
            lines.append(self._summary(
                self.settings.deactivated,
                self.settings.deactivated_dir,
                self.shorten(directory),
                0,
                self._painted_keys(diff),
            ))
        lines.extend(self.commands(diff.directives))
        return "\n".join(lines)

    def show(self, record: ActivationRecord) -> str:
        """One-line description of an active record."""
        keys = Format(style=self.settings.added.style).paint(" ".join(record.exported_keys or []))
        return (
            f"{self.settings.activated.paint('')}"
            f"{self.settings.activated_dir.paint(record.profile)} {keys}"
        )
