"""
modelgen - Diagnostics & Errors
================================
Two classes of problems exist during a generation run:

* **Configuration errors** are fatal. An unsupported dialect, a malformed
  validation rule or invalid options raise :class:`ConfigurationError`
  before any synthesis work begins.
* **Per-table / per-column issues** (unclassifiable types, dangling
  foreign keys, unknown message placeholders) degrade gracefully. They are
  recorded as :class:`Diagnostic` entries in a :class:`Diagnostics`
  accumulator and logged, and generation continues.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelgen.diagnostics")


# ---------------------------------------------------------------------------
# Fatal errors
# ---------------------------------------------------------------------------


class ModelgenError(Exception):
    """Base class for errors raised by modelgen. ``code`` is machine-readable."""

    def __init__(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class ConfigurationError(ModelgenError):
    """Unsupported dialect, malformed validation rule, or invalid options."""


class IntrospectionError(ModelgenError):
    """The live database could not be read by the builder."""


# ---------------------------------------------------------------------------
# Non-fatal diagnostics
# ---------------------------------------------------------------------------


class Diagnostic:
    """Lightweight issue descriptor (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "warning" | "info"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class Diagnostics:
    """
    Accumulates :class:`Diagnostic` entries produced during a run.

    Every warning is also emitted on the ``modelgen`` logger hierarchy so
    that callers which never inspect the accumulator still see it.
    """

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[Diagnostic] = []

    # -- Mutation -----------------------------------------------------------

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(Diagnostic("warning", code, message, context))
        logger.warning("%s: %s", code, message)

    def add_info(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(Diagnostic("info", code, message, context))
        logger.info("%s: %s", code, message)

    def merge(self, other: "Diagnostics") -> None:
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self._items if d.is_warning]

    @property
    def all_items(self) -> List[Diagnostic]:
        return list(self._items)

    @property
    def has_warnings(self) -> bool:
        return any(d.is_warning for d in self._items)

    def codes(self) -> List[str]:
        return [d.code for d in self._items]

    def contains(self, code: str, context: Optional[Dict[str, Any]] = None) -> bool:
        """True when an entry with *code* (and exactly *context*, if given) exists."""
        return any(
            d.code == code and (context is None or d.context == context) for d in self._items
        )

    def summary(self) -> str:
        return (
            f"Diagnostics: {len(self.warnings)} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<Diagnostics {self.summary()}>"

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self, include_info: bool = False) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            if not include_info and item.level == "info":
                continue
            prefix: str = "⚠️" if item.is_warning else "ℹ️"
            lines.append(f"  {prefix} [{item.code}] {item.message}")
            for k, v in item.context.items():
                lines.append(f"       {k}: {v}")
        return "\n".join(lines)


__all__: List[str] = [
    "ModelgenError",
    "ConfigurationError",
    "IntrospectionError",
    "Diagnostic",
    "Diagnostics",
]
