"""Transition controller - orchestrates directory activation state.

Provides a single entry point per shell event:
1. activate / deactivate a directory's profile (rv set / rv clear)
2. exit the previous directory (unset what it exported)
3. enter the current directory (resolve, diff, export)

The controller only mutates the in-memory ActivationStore. Callers save
the store once, and only when no error was raised.
"""
import logging
from pathlib import Path
from typing import Callable, Mapping, Optional, Union

from ..config.case import KeyTransform
from ..config.tree import Table, config_path, load_tree, resolve_variables
from ..store.store import ActivationRecord, ActivationStore
from ..utils.logging_config import timed
from .diff import DiffEngine, summarize_diff
from .schema import DiffResult, TransitionReport

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
TreeLoader = Callable[[PathLike], Optional[Table]]


class TransitionController:
    """
    Drives the Inactive/Active state machine for each directory.

    Usage:
        store = ActivationStore.load()
        controller = TransitionController(store)
        report = controller.change_directory(old, cwd, os.environ, check=True)
        store.save()
    """

    def __init__(
        self,
        store: ActivationStore,
        diff_engine: Optional[DiffEngine] = None,
        loader: TreeLoader = load_tree,
    ):
        """
        Args:
            store: Loaded activation store, mutated in place
            diff_engine: Engine used for classification (default: insertion order)
            loader: Returns a directory's config tree, or None without rv.toml
        """
        self.store = store
        self.diff_engine = diff_engine or DiffEngine()
        self.loader = loader

    @staticmethod
    def directory_key(directory: PathLike) -> str:
        """Store key for a directory: its normalized rv.toml path."""
        return str(config_path(directory))

    def record_for(self, directory: PathLike) -> Optional[ActivationRecord]:
        return self.store.get(self.directory_key(directory))

    def activate(self, directory: PathLike, profile: str) -> ActivationRecord:
        """Select a profile for a directory; resolution waits for the next enter."""
        record = ActivationRecord(profile=profile, exported_keys=None)
        self.store.set(self.directory_key(directory), record)
        logger.info(f"Activated profile '{profile}' for {directory}")
        return record

    def enter(
        self,
        directory: PathLike,
        live_env: Mapping[str, str],
        owned: bool = True,
    ) -> DiffResult:
        """
        Export the directory's profile variables.

        Returns an empty result if the directory has no record or no rv.toml.
        With owned set, keys exported last time but no longer resolved are
        unset. Clear it when the directory was exited after its last enter.

        Raises:
            ProfileNotFoundError: If the recorded profile does not resolve
            ConfigParseError: If rv.toml is invalid
        """
        key = self.directory_key(directory)
        record = self.store.get(key)
        if record is None:
            return DiffResult()

        tree = self.loader(directory)
        if tree is None:
            logger.debug(f"No config for {directory}, skipping enter")
            return DiffResult()

        resolved = resolve_variables(tree, record.profile)
        previous_keys = record.exported_keys if owned else None
        diff = self.diff_engine.calculate(previous_keys, resolved, live_env)

        if diff.exported_keys != record.exported_keys:
            self.store.set(key, ActivationRecord(record.profile, diff.exported_keys))

        logger.debug(f"Enter {directory} [{record.profile}]: {summarize_diff(diff)}")
        return diff

    def exit(self, directory: PathLike) -> DiffResult:
        """Unset everything the directory last exported. The record is kept."""
        record = self.record_for(directory)
        if record is None or not record.resolved:
            return DiffResult()

        diff = self.diff_engine.release(record.exported_keys)
        logger.debug(f"Exit {directory} [{record.profile}]: {summarize_diff(diff)}")
        return diff

    def deactivate(self, directory: PathLike) -> DiffResult:
        """Unset the directory's variables and forget its profile."""
        key = self.directory_key(directory)
        record = self.store.get(key)
        if record is None:
            return DiffResult()

        diff = self.diff_engine.release(record.exported_keys)
        self.store.remove(key)
        logger.info(f"Deactivated profile '{record.profile}' for {directory}")
        return diff

    @timed("directory_change")
    def change_directory(
        self,
        previous: Optional[PathLike],
        current: PathLike,
        live_env: Mapping[str, str],
        check: bool = True,
    ) -> TransitionReport:
        """
        Handle a prompt after a possible directory change.

        With check set, the previous directory is exited before the current
        one is entered. The enter half sees the environment without the
        exited keys, so a variable shared by both directories is unset and
        exported again. Keys the current directory exported on its last visit
        were released when it was left, so they are not unset a second time.
        Without check only the enter half runs.
        """
        report = TransitionReport(
            previous_dir=str(previous) if previous is not None else None,
            current_dir=str(current),
        )

        exited = check and previous is not None
        if exited:
            previous_record = self.record_for(previous)
            if previous_record is not None:
                report.previous_profile = previous_record.profile
            report.exited = self.exit(previous)

        env = live_env
        if report.exited.directives:
            released = {d.key for d in report.exited.directives}
            env = {k: v for k, v in live_env.items() if k not in released}

        report.entered = self.enter(current, env, owned=not exited)
        current_record = self.record_for(current)
        if current_record is not None:
            report.current_profile = current_record.profile

        return report

    def resolve(
        self,
        directory: PathLike,
        profile: Optional[str] = None,
        transform: Optional[KeyTransform] = None,
    ) -> Optional[dict[str, str]]:
        """
        Resolve a directory's variables without touching the store.

        Args:
            directory: Directory holding rv.toml
            profile: Profile to use instead of the recorded one
            transform: Optional key case transform

        Returns:
            The variable map, or None when there is no rv.toml or no profile
        """
        if profile is None:
            record = self.record_for(directory)
            if record is None:
                return None
            profile = record.profile

        tree = self.loader(directory)
        if tree is None:
            return None

        return resolve_variables(tree, profile, transform)
