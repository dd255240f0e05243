"""Key case conversion for resolved variable names.

Supported transforms:
    lower, upper             change letter case only, separators kept
    camel, upper-camel       myVar, MyVar
    snake, upper-snake       my_var, MY_VAR
    kebab, upper-kebab       my-var, MY-VAR
    flat, upper-flat         myvar, MYVAR

lower and upper do not split the key into words, so "my var" is never
produced: "my_var" becomes "MY_VAR". Every other transform rebuilds the
key from split_words.
"""
import re
from typing import Callable, Optional

KeyTransform = Callable[[str], str]

# Splits "myHTTPServer_port-2" into ["my", "HTTP", "Server", "port", "2"]
_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")


def split_words(key: str) -> list[str]:
    """Split a key into words on separators and case boundaries."""
    return _WORD_RE.findall(key)


def to_camel(key: str) -> str:
    words = split_words(key)
    if not words:
        return key
    return words[0].lower() + "".join(w.capitalize() for w in words[1:])


def to_upper_camel(key: str) -> str:
    return "".join(w.capitalize() for w in split_words(key)) or key


def to_snake(key: str) -> str:
    return "_".join(w.lower() for w in split_words(key)) or key


def to_kebab(key: str) -> str:
    return "-".join(w.lower() for w in split_words(key)) or key


def to_flat(key: str) -> str:
    return "".join(w.lower() for w in split_words(key)) or key


CASES: dict[str, KeyTransform] = {
    "lower": str.lower,
    "upper": str.upper,
    "camel": to_camel,
    "upper-camel": to_upper_camel,
    "snake": to_snake,
    "upper-snake": lambda key: to_snake(key).upper(),
    "kebab": to_kebab,
    "upper-kebab": lambda key: to_kebab(key).upper(),
    "flat": to_flat,
    "upper-flat": lambda key: to_flat(key).upper(),
}


def get_transform(name: Optional[str]) -> Optional[KeyTransform]:
    """Look up a transform by name.

    Returns None when no name is given. Raises ValueError for unknown names.
    """
    if name is None:
        return None
    try:
        return CASES[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown case '{name}'. Choose from: {', '.join(CASES)}"
        ) from None
