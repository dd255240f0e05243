"""Directory configuration: rv.toml trees, key casing and user settings."""
from .case import CASES, get_transform
from .settings import Settings, Format, SettingsError, get_config_dir, get_data_dir
from .tree import (
    CONFIG_FILENAME,
    ConfigParseError,
    Leaf,
    ProfileNotFoundError,
    Table,
    build_tree,
    config_path,
    flatten,
    load_tree,
    merge,
    resolve,
    resolve_variables,
    select,
)

__all__ = [
    "CASES",
    "get_transform",
    "Settings",
    "Format",
    "SettingsError",
    "get_config_dir",
    "get_data_dir",
    "CONFIG_FILENAME",
    "ConfigParseError",
    "Leaf",
    "ProfileNotFoundError",
    "Table",
    "build_tree",
    "config_path",
    "flatten",
    "load_tree",
    "merge",
    "resolve",
    "resolve_variables",
    "select",
]
