"""User settings: data/config locations and summary styles.

Environment Variables:
    RV_DATA_DIR: Directory for metadata.json and logs
                 (default: $XDG_DATA_HOME/rv or ~/.local/share/rv)
    RV_CONFIG_DIR: Directory holding config.toml
                   (default: $XDG_CONFIG_HOME/rv or ~/.config/rv)

config.toml example:

    [activated]
    symbol = "rv ↑ "
    style = "green bold"

    [changed]
    style = "208 bold"
"""
import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from rich.color import Color, ColorParseError
from rich.style import Style

logger = logging.getLogger(__name__)

# Palette names accepted in style strings, mapped to rich color names
COLOR_NAMES = {
    "black": "black",
    "darkgray": "bright_black",
    "red": "red",
    "lightred": "bright_red",
    "green": "green",
    "lightgreen": "bright_green",
    "yellow": "yellow",
    "lightyellow": "bright_yellow",
    "blue": "blue",
    "lightblue": "bright_blue",
    "purple": "magenta",
    "lightpurple": "bright_magenta",
    "magenta": "magenta",
    "lightmagenta": "bright_magenta",
    "cyan": "cyan",
    "lightcyan": "bright_cyan",
    "white": "bright_white",
    "lightgray": "white",
    "default": "default",
}

ATTRIBUTES = {
    "bold": "bold",
    "dimmed": "dim",
    "italic": "italic",
    "underline": "underline",
    "blink": "blink",
    "reverse": "reverse",
    "hidden": "conceal",
    "strikethrough": "strike",
}


class SettingsError(Exception):
    """The user settings file is invalid."""
    pass


def _xdg_dir(override_var: str, xdg_var: str, fallback: Path) -> Path:
    override = os.environ.get(override_var)
    if override:
        return Path(override)
    xdg = os.environ.get(xdg_var)
    if xdg:
        return Path(xdg) / "rv"
    return fallback


def get_data_dir() -> Path:
    """Directory for the activation store and logs."""
    return _xdg_dir(
        "RV_DATA_DIR", "XDG_DATA_HOME", Path.home() / ".local" / "share" / "rv"
    )


def get_config_dir() -> Path:
    """Directory holding the user's config.toml."""
    return _xdg_dir("RV_CONFIG_DIR", "XDG_CONFIG_HOME", Path.home() / ".config" / "rv")


def parse_style(spec: Optional[str]) -> Optional[Style]:
    """
    Parse a style string like "lightred bold underline".

    The first word is the color: a palette name, a 0-255 number or "r,g,b".
    Remaining words are attributes; unknown attributes are ignored.

    Raises:
        SettingsError: If the color cannot be parsed
    """
    if spec is None:
        return None
    words = spec.split()
    if not words:
        return None

    color_word, attrs = words[0], words[1:]
    try:
        if color_word in COLOR_NAMES:
            color = Color.parse(COLOR_NAMES[color_word])
        elif color_word.isdigit():
            number = int(color_word)
            if number > 255:
                raise ValueError("palette number must be 0-255")
            color = Color.from_ansi(number)
        else:
            r, g, b = (int(part) for part in color_word.split(","))
            color = Color.from_rgb(r, g, b)
    except (ValueError, ColorParseError) as e:
        raise SettingsError(f"Invalid color '{color_word}': {e}") from e

    flags = {ATTRIBUTES[a]: True for a in attrs if a in ATTRIBUTES}
    return Style(color=color, **flags)


@dataclass
class Format:
    """A symbol prefix plus the style used to paint it."""
    symbol: str = ""
    style: Optional[Style] = None

    def paint(self, text: str) -> str:
        """Render symbol + text with ANSI codes."""
        if self.style is None:
            return f"{self.symbol}{text}"
        return self.style.render(self.symbol) + self.style.render(text)

    @classmethod
    def from_dict(cls, data: dict[str, Any], default: "Format") -> "Format":
        symbol = data.get("symbol", default.symbol)
        if not isinstance(symbol, str):
            raise SettingsError(f"symbol must be a string, got {symbol!r}")
        style = default.style
        if "style" in data:
            if not isinstance(data["style"], str):
                raise SettingsError(f"style must be a string, got {data['style']!r}")
            style = parse_style(data["style"])
        return cls(symbol=symbol, style=style)


def _fmt(symbol: str, style: str) -> Format:
    return Format(symbol=symbol, style=parse_style(style))


@dataclass
class Settings:
    """Summary formats shown when variables are exported or unset."""
    activated: Format = field(default_factory=lambda: _fmt("rv ↑ ", "green bold"))
    activated_dir: Format = field(default_factory=lambda: _fmt("", "white"))
    deactivated: Format = field(default_factory=lambda: _fmt("rv ↓ ", "red bold"))
    deactivated_dir: Format = field(default_factory=lambda: _fmt("", "white"))
    added: Format = field(default_factory=lambda: _fmt("  ", "green bold"))
    removed: Format = field(default_factory=lambda: _fmt("  ", "red bold"))
    changed: Format = field(default_factory=lambda: _fmt("  ", "208 bold"))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        """Build settings from a parsed config.toml, filling in defaults."""
        settings = cls()
        for name in settings.__dataclass_fields__:
            section = data.get(name)
            if section is None:
                continue
            if not isinstance(section, dict):
                raise SettingsError(f"[{name}] must be a table")
            setattr(settings, name, Format.from_dict(section, getattr(settings, name)))
        return settings

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Settings":
        """
        Load settings from config.toml.

        A missing file yields the defaults.

        Raises:
            SettingsError: If the file is not valid TOML or has bad values
        """
        path = path or get_config_dir() / "config.toml"
        if not path.exists():
            return cls()

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise SettingsError(f"Failed to parse {path}: {e}") from e

        logger.debug(f"Loaded settings from {path}")
        return cls.from_dict(data)
