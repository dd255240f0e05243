"""Configuration tree for a directory's rv.toml.

Converts the parsed TOML document into a tagged Table/Leaf tree and
flattens it into environment variables:

    API_URL = "https://example.com"     # global, always active

    [work]
    USER = "me"

    [work.staging]
    API_URL = "https://staging.example.com"

Selecting "work.staging" yields the global leaves overwritten by the
flattened "work.staging" subtree. Only string leaves become variables.
"""
import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from .case import KeyTransform

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "rv.toml"


class ConfigParseError(Exception):
    """The rv.toml file exists but is not valid TOML."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to parse {path}: {reason}")


class ProfileNotFoundError(Exception):
    """A profile selector segment does not resolve to a table."""

    def __init__(self, segment: str, consumed: list[str]):
        self.segment = segment
        self.consumed = list(consumed)
        where = ".".join(self.consumed) if self.consumed else "<root>"
        super().__init__(
            f"Profile segment '{segment}' not found under '{where}'"
        )


@dataclass
class Leaf:
    """A non-table value. Only str values are exportable."""
    value: Any


@dataclass
class Table:
    """A TOML table; children keep file order."""
    children: dict[str, "Node"] = field(default_factory=dict)

    def get(self, key: str) -> Optional["Node"]:
        return self.children.get(key)


Node = Union[Table, Leaf]


def build_tree(document: dict[str, Any]) -> Table:
    """Convert a parsed TOML mapping into a Table node."""
    table = Table()
    for key, value in document.items():
        if isinstance(value, dict):
            table.children[key] = build_tree(value)
        else:
            table.children[key] = Leaf(value)
    return table


def config_path(directory: Union[str, Path]) -> Path:
    """Absolute, normalized path of a directory's rv.toml."""
    return Path(os.path.abspath(directory)) / CONFIG_FILENAME


def load_tree(directory: Union[str, Path]) -> Optional[Table]:
    """
    Load the configuration tree for a directory.

    Returns None if the directory has no rv.toml.

    Raises:
        ConfigParseError: If the file cannot be parsed
    """
    path = config_path(directory)
    if not path.is_file():
        return None

    try:
        with open(path, "rb") as f:
            document = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(path, str(e)) from e

    logger.debug(f"Loaded {path} ({len(document)} top-level entries)")
    return build_tree(document)


def flatten(
    node: Node,
    into: dict[str, str],
    key: Optional[str] = None,
    transform: Optional[KeyTransform] = None,
) -> dict[str, str]:
    """
    Flatten a node into `into`, returning it.

    Tables recurse into each child under the child's own key. String leaves
    are inserted, every other leaf type is skipped.
    """
    if isinstance(node, Table):
        for child_key, child in node.children.items():
            flatten(child, into, child_key, transform)
    elif isinstance(node.value, str) and key is not None:
        into[transform(key) if transform else key] = node.value
    return into


def select(tree: Table, selector: str) -> Table:
    """
    Walk a dotted selector from the tree root.

    Raises:
        ProfileNotFoundError: If a segment is missing or not a table
    """
    node: Node = tree
    consumed: list[str] = []
    for segment in selector.split("."):
        child = node.get(segment) if segment else None
        if not isinstance(child, Table):
            raise ProfileNotFoundError(segment, consumed)
        node = child
        consumed.append(segment)
    return node


def resolve(
    tree: Table,
    selector: str,
    transform: Optional[KeyTransform] = None,
) -> tuple[dict[str, str], dict[str, str]]:
    """
    Resolve a profile selector.

    Returns:
        (global_map, scoped_map): top-level string leaves, and the
        flattened leaves of the selected subtree
    """
    global_map: dict[str, str] = {}
    for key, child in tree.children.items():
        if isinstance(child, Leaf):
            flatten(child, global_map, key, transform)

    scoped_map = flatten(select(tree, selector), {}, transform=transform)
    return global_map, scoped_map


def merge(global_map: dict[str, str], scoped_map: dict[str, str]) -> dict[str, str]:
    """Merge global and profile variables; the profile wins."""
    merged = dict(global_map)
    merged.update(scoped_map)
    return merged


def resolve_variables(
    tree: Table,
    selector: str,
    transform: Optional[KeyTransform] = None,
) -> dict[str, str]:
    """Resolve a selector into the final variable set."""
    return merge(*resolve(tree, selector, transform))
