"""
modelgen - Utility Functions & Helpers
=======================================
String transformation, literal quoting, import-block assembly, and file I/O
helpers used throughout the generation pipeline.

All naming transforms are cached with ``@lru_cache(maxsize=None)``: the
generator asks for the same class and attribute names many times while
rendering relations.
"""

from __future__ import annotations

import functools
import keyword
import logging
import os
import re
import shutil
import tempfile
import time
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Set, Tuple

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelgen.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

_CAMEL_TO_SNAKE_RE1: re.Pattern[str] = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_TO_SNAKE_RE2: re.Pattern[str] = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALPHANUM_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9]")
_NON_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9_]")
_MULTI_UNDERSCORE_RE: re.Pattern[str] = re.compile(r"_{2,}")
_LEADING_TRAILING_UNDERSCORE_RE: re.Pattern[str] = re.compile(r"^_+|_+$")
_SPLIT_WORDS_RE: re.Pattern[str] = re.compile(
    r"[A-Z]?[a-z]+|[A-Z]+(?=[A-Z][a-z]|\d|\b)|[A-Z]|\d+"
)

# Names that would shadow the declarative machinery on a mapped class
_RESERVED_ATTRIBUTES: FrozenSet[str] = frozenset({
    "metadata", "registry", "query",
})


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def to_snake_case(name: str) -> str:
    """
    Convert any string to snake_case.

    Examples:
        >>> to_snake_case("UserProfile")
        'user_profile'
        >>> to_snake_case("getHTTPResponse")
        'get_http_response'
        >>> to_snake_case("already_snake")
        'already_snake'
    """
    if not name:
        return ""
    s: str = _CAMEL_TO_SNAKE_RE1.sub(r"\1_\2", name)
    s = _CAMEL_TO_SNAKE_RE2.sub(r"\1_\2", s)
    s = _NON_ALPHANUM_RE.sub("_", s)
    s = _MULTI_UNDERSCORE_RE.sub("_", s)
    s = _LEADING_TRAILING_UNDERSCORE_RE.sub("", s)
    return s.lower()


@functools.lru_cache(maxsize=None)
def to_pascal_case(name: str) -> str:
    """
    Convert any string to PascalCase.

    Examples:
        >>> to_pascal_case("user_profile")
        'UserProfile'
        >>> to_pascal_case("http_response")
        'HttpResponse'
    """
    if not name:
        return ""
    words: Tuple[str, ...] = _extract_words(name)
    return "".join(word.capitalize() for word in words)


@functools.lru_cache(maxsize=None)
def to_camel_case(name: str) -> str:
    """
    Convert any string to camelCase.

    Examples:
        >>> to_camel_case("user_profile")
        'userProfile'
        >>> to_camel_case("HTTPResponse")
        'httpResponse'
    """
    if not name:
        return ""
    words: Tuple[str, ...] = _extract_words(name)
    if not words:
        return ""
    first: str = words[0].lower()
    rest: str = "".join(w.capitalize() for w in words[1:])
    return first + rest


@functools.lru_cache(maxsize=None)
def to_plural(name: str) -> str:
    """
    Naive English pluralisation sufficient for relation names.

    Only the trailing word is inflected, so ``order_item`` becomes
    ``order_items``.
    """
    if not name:
        return ""

    lower: str = name.lower()

    irregulars: Dict[str, str] = {
        "person": "people",
        "child": "children",
        "man": "men",
        "woman": "women",
        "mouse": "mice",
        "goose": "geese",
        "tooth": "teeth",
        "foot": "feet",
        "datum": "data",
        "index": "indices",
        "matrix": "matrices",
        "vertex": "vertices",
        "axis": "axes",
        "crisis": "crises",
        "analysis": "analyses",
        "status": "statuses",
        "address": "addresses",
    }

    stem, last = _split_last_word(name)
    if last.lower() in irregulars:
        plural: str = irregulars[last.lower()]
        if last[0].isupper():
            plural = plural[0].upper() + plural[1:]
        return stem + plural

    if lower.endswith("s") and not lower.endswith("ss"):
        return name

    if lower.endswith(("sh", "ch", "x", "z", "ss")):
        return name + "es"
    if lower.endswith("y") and len(name) > 1 and lower[-2] not in "aeiou":
        return name[:-1] + "ies"
    if lower.endswith("fe"):
        return name[:-2] + "ves"
    if lower.endswith("f") and not lower.endswith("ff"):
        return name[:-1] + "ves"
    if lower.endswith("o") and len(name) > 1 and lower[-2] not in "aeiou":
        return name + "es"

    return name + "s"


@functools.lru_cache(maxsize=None)
def to_singular(name: str) -> str:
    """
    Naive English singularisation (reverse of to_plural).

    Examples:
        >>> to_singular("categories")
        'category'
        >>> to_singular("order_items")
        'order_item'
        >>> to_singular("status")
        'status'
    """
    if not name:
        return ""

    lower: str = name.lower()

    reverse_irregulars: Dict[str, str] = {
        "people": "person",
        "children": "child",
        "men": "man",
        "mice": "mouse",
        "geese": "goose",
        "teeth": "tooth",
        "feet": "foot",
        "data": "datum",
        "indices": "index",
        "matrices": "matrix",
        "vertices": "vertex",
        "axes": "axis",
        "crises": "crisis",
        "analyses": "analysis",
        "statuses": "status",
        "addresses": "address",
        "movies": "movie",
        "cookies": "cookie",
        "calories": "calorie",
        "zombies": "zombie",
        "rookies": "rookie",
        "pies": "pie",
        "ties": "tie",
    }

    stem, last = _split_last_word(name)
    if last.lower() in reverse_irregulars:
        singular: str = reverse_irregulars[last.lower()]
        if last[0].isupper():
            singular = singular[0].upper() + singular[1:]
        return stem + singular

    # Words that merely look plural
    if lower.endswith(("ss", "us", "is", "news", "series", "species")):
        return name

    if lower.endswith("ies") and len(name) > 3:
        return name[:-3] + "y"
    if lower.endswith("ves"):
        return name[:-3] + "f"
    if lower.endswith("oes") and len(name) > 3:
        return name[:-2]
    if lower.endswith(("sses", "xes", "zes", "ches", "shes")):
        return name[:-2]
    if lower.endswith("s"):
        return name[:-1]

    return name


def _split_last_word(name: str) -> Tuple[str, str]:
    """Split ``order_item`` into ``("order_", "item")`` and ``OrderItem`` into ``("Order", "Item")``."""
    if "_" in name:
        head, _, last = name.rpartition("_")
        return head + "_", last
    match: Optional[re.Match[str]] = re.search(r"[A-Z][a-z0-9]*$", name)
    if match and match.start() > 0:
        return name[: match.start()], match.group(0)
    return "", name


@functools.lru_cache(maxsize=None)
def _extract_words(name: str) -> Tuple[str, ...]:
    """
    Extract individual words from any casing style.

    Returns a tuple (hashable for the LRU cache) of lowercase words.
    """
    cleaned: str = _NON_ALPHANUM_RE.sub(" ", name)
    words: List[str] = _SPLIT_WORDS_RE.findall(cleaned)
    return tuple(w.lower() for w in words if w)


@functools.lru_cache(maxsize=None)
def apply_naming(name: str, convention: str) -> str:
    """
    Apply a naming convention value (see ``models.NamingConvention``).

    ``o`` keeps the name untouched.
    """
    if convention == "snake_case":
        return to_snake_case(name)
    if convention == "camelCase":
        return to_camel_case(name)
    if convention == "PascalCase":
        return to_pascal_case(name)
    if convention == "lower":
        return name.lower()
    if convention == "UPPER":
        return name.upper()
    return name


@functools.lru_cache(maxsize=None)
def safe_identifier(name: str) -> str:
    """
    Make *name* usable as a Python attribute without renaming it more than
    necessary.

    - Non-identifier characters become underscores
    - A leading digit gets an underscore prefix
    - Python keywords and declarative reserved names get an underscore suffix
    """
    result: str = _NON_IDENTIFIER_RE.sub("_", name)
    if not result:
        return "_unnamed"

    if result[0].isdigit():
        result = f"_{result}"

    if keyword.iskeyword(result) or result in _RESERVED_ATTRIBUTES:
        result = f"{result}_"

    return result


@functools.lru_cache(maxsize=None)
def safe_class_name(name: str) -> str:
    """Like :func:`safe_identifier`, but never returns an empty class name."""
    result: str = safe_identifier(name)
    if result == "_unnamed":
        return "Model"
    return result


# ---------------------------------------------------------------------------
# Code formatting helpers
# ---------------------------------------------------------------------------


def quote_string(value: str) -> str:
    """
    Render *value* as a Python string literal.

    Double quotes are preferred. Single quotes are used when the value
    contains double quotes and no single quotes, so messages such as
    ``Field "email" ...`` keep their text readable in generated code.
    """
    if '"' in value and "'" not in value:
        quote: str = "'"
    else:
        quote = '"'
    escaped: str = (
        value.replace("\\", "\\\\")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    if quote == '"':
        escaped = escaped.replace('"', '\\"')
    return f"{quote}{escaped}{quote}"


def format_literal(value: object) -> str:
    """
    Render a JSON-like value (dict / list / str / int / float / bool / None)
    as Python source. Dict insertion order is preserved.
    """
    if isinstance(value, str):
        return quote_string(value)
    if isinstance(value, bool) or value is None:
        return repr(value)
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, dict):
        inner: str = ", ".join(
            f"{format_literal(k)}: {format_literal(v)}" for k, v in value.items()
        )
        return "{" + inner + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(format_literal(v) for v in value) + "]"
    raise TypeError(f"Cannot render {type(value).__name__} as a literal.")


# ---------------------------------------------------------------------------
# Import statement builder
# ---------------------------------------------------------------------------


def build_import_block(imports: Dict[str, Set[str]]) -> str:
    """
    Build a sorted, de-duplicated import block from a mapping of
    module -> set of names. Stdlib-style modules sort before ``sqlalchemy``
    simply by name; relative modules (leading dot) go last.

    Example:
        >>> build_import_block({"typing": {"List", "Optional"}, "datetime": {"datetime"}})
        'from datetime import datetime\\nfrom typing import List, Optional'
    """
    absolute: List[str] = sorted(m for m in imports if not m.startswith("."))
    relative: List[str] = sorted(m for m in imports if m.startswith("."))

    lines: List[str] = []
    for module in absolute + relative:
        names: List[str] = sorted(imports[module])
        if names:
            lines.append(f"from {module} import {', '.join(names)}")
        else:
            lines.append(f"import {module}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create directory (and parents) if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write *content* to *path*.

    When *atomic* is True, writes to a temporary file first then renames,
    so a crash never leaves a half-written model behind.

    Returns the number of bytes written.
    """
    ensure_directory(path.parent)

    encoded: bytes = content.encode("utf-8")

    if atomic:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(encoded)
            shutil.move(tmp_path, str(path))
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    else:
        path.write_bytes(encoded)

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)


def count_lines(content: str) -> int:
    """Count the number of lines in a string."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Simple context-manager timer for profiling pipeline steps.

    Usage:
        with Timer("introspection") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.info("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "to_snake_case",
    "to_pascal_case",
    "to_camel_case",
    "to_plural",
    "to_singular",
    "apply_naming",
    "safe_identifier",
    "safe_class_name",
    "quote_string",
    "format_literal",
    "build_import_block",
    "ensure_directory",
    "write_file",
    "count_lines",
    "Timer",
]

logger.debug("modelgen.utils loaded — %d public symbols.", len(__all__))
