#!/usr/bin/env python3
"""rv command line interface.

Usage:
    rv set PROFILE              Activate a profile for the current directory
    rv show                     Show the active profile and its variables
    rv list [--json|--toml|--yaml|--env|--envrc] [--profile P] [--case C]
    rv get KEY                  Print one variable of the active profile
    rv clear                    Deactivate the current directory's profile
    rv hook zsh|bash            Print the shell hook to eval in your rc file

Hidden hook commands (called by the shell hook):
    rv chpwd                    Flag a directory change
    rv precmd [--previous DIR]  Emit export/unset statements for eval
"""
import argparse
import json
import logging
import os
import shlex
import sys
from pathlib import Path
from typing import Optional

import tomli_w
import yaml

from .config.case import CASES, get_transform
from .config.settings import Settings, SettingsError
from .config.tree import ConfigParseError, ProfileNotFoundError, config_path
from .engine.generator import CHECK_VARIABLE, HOOKS, ShellGenerator
from .engine.transition import TransitionController
from .store.store import ActivationStore, StoreCorruptError
from .utils.logging_config import setup_logging, timed_section

logger = logging.getLogger(__name__)

LIST_FORMATS = ("json", "toml", "yaml", "env", "envrc")

# Errors surfaced to the user; none of them write to stdout or save state
USER_ERRORS = (
    ProfileNotFoundError,
    ConfigParseError,
    StoreCorruptError,
    SettingsError,
)


def format_variables(variables: dict[str, str], fmt: str) -> str:
    """Render resolved variables in one of LIST_FORMATS."""
    if fmt == "toml":
        return tomli_w.dumps(variables).rstrip("\n")
    if fmt == "yaml":
        return yaml.safe_dump(variables, default_flow_style=False, sort_keys=False).rstrip("\n")
    if fmt == "env":
        return "\n".join(f"{k}={v}" for k, v in variables.items())
    if fmt == "envrc":
        return "\n".join(f"export {k}={shlex.quote(v)}" for k, v in variables.items())
    return json.dumps(variables, indent=2)


def save_store(store: ActivationStore) -> None:
    if not store.dirty:
        return
    with timed_section("store_save", path=store.path):
        store.save()


def cmd_set(args: argparse.Namespace, controller: TransitionController) -> str:
    directory = args.directory
    if config_path(directory).is_file():
        # Fail now rather than on every prompt
        controller.resolve(directory, profile=args.profile)
    else:
        logger.warning(f"No rv.toml in {directory}; profile will apply once it exists")

    controller.activate(directory, args.profile)
    save_store(controller.store)
    return ""


def cmd_show(args: argparse.Namespace, controller: TransitionController) -> str:
    record = controller.record_for(args.directory)
    if record is None or not record.resolved:
        return ""
    return ShellGenerator(Settings.load()).show(record)


def cmd_list(args: argparse.Namespace, controller: TransitionController) -> str:
    variables = controller.resolve(
        args.directory,
        profile=args.profile,
        transform=get_transform(args.case),
    )
    if variables is None:
        return ""
    return format_variables(variables, args.format or "json")


def cmd_get(args: argparse.Namespace, controller: TransitionController) -> str:
    variables = controller.resolve(args.directory, profile=args.profile)
    if variables is None:
        return ""
    return variables.get(args.key, "null")


def cmd_clear(args: argparse.Namespace, controller: TransitionController) -> str:
    generator = ShellGenerator(Settings.load())
    diff = controller.deactivate(args.directory)
    save_store(controller.store)
    return generator.clear(str(args.directory), diff, summary=not args.quiet)


def cmd_chpwd(args: argparse.Namespace, controller: Optional[TransitionController]) -> str:
    return f"export {CHECK_VARIABLE}=1"


def cmd_precmd(args: argparse.Namespace, controller: TransitionController) -> str:
    generator = ShellGenerator(Settings.load())
    previous = args.previous or os.environ.get("OLDPWD")
    check = bool(os.environ.get(CHECK_VARIABLE))

    report = controller.change_directory(previous, args.directory, dict(os.environ), check=check)
    save_store(controller.store)
    return generator.precmd(report, summary=not args.quiet)


def cmd_hook(args: argparse.Namespace, controller: Optional[TransitionController]) -> str:
    return HOOKS[args.shell].rstrip("\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rv",
        description="Directory-scoped environment variable profiles",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Enable the hook (zsh)
    eval "$(rv hook zsh)"

    # Activate the [work.staging] table of ./rv.toml
    rv set work.staging

    # Export the current profile for another tool
    rv list --envrc > .envrc

Environment:
    RV_DATA_DIR      Where metadata.json and logs live
    RV_CONFIG_DIR    Where config.toml (summary styles) lives
    RV_LOG_LEVEL     Console log level (default: WARNING)
""",
    )
    parser.add_argument(
        "-C", "--directory",
        type=Path,
        default=None,
        help="Run as if started in this directory (default: current directory)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")

    p = subparsers.add_parser("set", help="Activates a profile")
    p.add_argument("profile", help="Dotted profile path, e.g. work.staging")
    p.set_defaults(handler=cmd_set)

    p = subparsers.add_parser("show", help="Shows the variables of the current profile")
    p.set_defaults(handler=cmd_show)

    p = subparsers.add_parser(
        "list",
        help="Outputs the variables and values of the current profile (default format is JSON)",
    )
    group = p.add_mutually_exclusive_group()
    for fmt in LIST_FORMATS:
        group.add_argument(
            f"--{fmt}",
            dest="format",
            action="store_const",
            const=fmt,
            help=f"Output as {fmt}",
        )
    p.add_argument("--profile", help="Resolve this profile instead of the active one")
    p.add_argument("--case", choices=list(CASES), help="Convert variable names to this case")
    p.set_defaults(handler=cmd_list)

    p = subparsers.add_parser("get", help="Outputs the value of a variable in the current profile")
    p.add_argument("key", help="Variable name")
    p.add_argument("--profile", help="Resolve this profile instead of the active one")
    p.set_defaults(handler=cmd_get)

    p = subparsers.add_parser("clear", help="Deactivates the current profile")
    p.add_argument("-q", "--quiet", action="store_true", help="Skip the summary line")
    p.set_defaults(handler=cmd_clear)

    p = subparsers.add_parser("hook", help="Prints the shell integration script")
    p.add_argument("shell", choices=sorted(HOOKS))
    p.set_defaults(handler=cmd_hook)

    # Called from the shell hook, not listed in help
    p = subparsers.add_parser("chpwd")
    p.set_defaults(handler=cmd_chpwd)

    p = subparsers.add_parser("precmd")
    p.add_argument("--previous", help="Previous directory (default: $OLDPWD)")
    p.add_argument("-q", "--quiet", action="store_true", help="Skip the summary lines")
    p.set_defaults(handler=cmd_precmd)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the rv CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    args.directory = Path(os.path.abspath(args.directory or Path.cwd()))

    setup_logging(verbose=args.verbose)

    try:
        if args.handler in (cmd_hook, cmd_chpwd):
            output = args.handler(args, None)
        else:
            controller = TransitionController(ActivationStore.load())
            output = args.handler(args, controller)
    except USER_ERRORS as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.exception(f"rv {args.command} failed: {e}")
        return 1

    if output:
        print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
