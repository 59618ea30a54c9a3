"""
modelgen - Model Exporter
==========================
Writes generated model texts into a Python package directory:

    <directory>/
        __init__.py      imports every model so relationship() strings resolve
        base.py          ``class Base(DeclarativeBase)`` (default base module only)
        <table>.py       one module per table, named by ``case_file``

Each file is written atomically (temp file + rename). A failed write is
recorded in the result and the remaining files are still written.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Set, Tuple, Union

from modelgen.models import GenerationOptions
from modelgen.utils import (
    Timer,
    apply_naming,
    count_lines,
    ensure_directory,
    safe_identifier,
    write_file,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelgen.exporters")

_DEFAULT_BASE_MODULE: str = ".base"
_RESERVED_MODULES: Set[str] = {"__init__", "base"}

_BASE_MODULE_TEXT: str = '''"""
Declarative base shared by the generated models.
Generated by modelgen; manual edits will be overwritten.
"""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
'''


# ---------------------------------------------------------------------------
# Result data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single exported file."""

    relative_path: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=False, slots=True)
class ExportResult:
    """Outcome of ``ModelExporter.export()``."""

    directory: str = ""
    files: List[FileRecord] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def total_bytes(self) -> int:
        return sum(f.size_bytes for f in self.files)


def module_name_for(table_key: str, convention: str) -> str:
    """``public.user_accounts`` → ``public_user_accounts`` (under *convention*)."""
    return safe_identifier(apply_naming(table_key.replace(".", "_"), convention))


class ModelExporter:
    """
    Writes generated model texts to *directory*.

    Usage::

        exporter = ModelExporter(Path("./models"), options)
        result = exporter.export(texts, generator.class_names)
    """

    def __init__(
        self,
        directory: Union[str, Path],
        options: Optional[GenerationOptions] = None,
    ) -> None:
        self._directory: Path = Path(directory).resolve()
        self._options: GenerationOptions = options or GenerationOptions()

    def module_names(self, table_keys: List[str]) -> Dict[str, str]:
        """Unique module name per table key, in the given order."""
        taken: Set[str] = set(_RESERVED_MODULES)
        names: Dict[str, str] = {}
        for key in table_keys:
            base: str = module_name_for(key, self._options.case_file)
            candidate: str = base
            counter: int = 2
            while candidate in taken:
                candidate = f"{base}_{counter}"
                counter += 1
            taken.add(candidate)
            names[key] = candidate
        return names

    def export(
        self,
        texts: Mapping[str, str],
        class_names: Optional[Mapping[str, str]] = None,
    ) -> ExportResult:
        """
        Write every text plus the package support files.

        *class_names* maps table keys to model class names; when given,
        ``__init__.py`` re-exports the classes, otherwise it only imports
        the modules.
        """
        result: ExportResult = ExportResult(directory=str(self._directory))
        modules: Dict[str, str] = self.module_names(list(texts))

        with Timer("export") as timer:
            try:
                ensure_directory(self._directory)
            except OSError as exc:
                result.errors.append(f"Cannot create {self._directory}: {exc}")
                logger.error("Cannot create output directory %s: %s", self._directory, exc)
                return result

            files: List[Tuple[str, str]] = [
                (f"{modules[key]}.py", text) for key, text in texts.items()
            ]
            if self._options.base_module == _DEFAULT_BASE_MODULE:
                files.append(("base.py", _BASE_MODULE_TEXT))
            files.append(("__init__.py", self._render_init(modules, class_names)))

            for relative_path, content in files:
                self._write(relative_path, content, result)

        result.elapsed_seconds = timer.elapsed
        if result.success:
            logger.info(
                "Exported %d file(s), %d bytes to %s.",
                len(result.files),
                result.total_bytes,
                self._directory,
            )
        else:
            logger.error("Export finished with %d error(s).", len(result.errors))
        return result

    def _write(self, relative_path: str, content: str, result: ExportResult) -> None:
        try:
            size: int = write_file(self._directory / relative_path, content)
        except OSError as exc:
            message: str = f"Failed to write {relative_path}: {exc}"
            result.errors.append(message)
            logger.error(message)
            return
        result.files.append(
            FileRecord(
                relative_path=relative_path,
                size_bytes=size,
                line_count=count_lines(content),
                sha256=hashlib.sha256(content.encode("utf-8")).hexdigest(),
            )
        )

    def _render_init(
        self, modules: Dict[str, str], class_names: Optional[Mapping[str, str]]
    ) -> str:
        lines: List[str] = [
            '"""Generated models package. Generated by modelgen."""',
            "",
        ]
        exported: List[str] = []
        if self._options.base_module == _DEFAULT_BASE_MODULE:
            lines.append("from .base import Base")
            exported.append("Base")
        for key, module in modules.items():
            class_name: Optional[str] = (class_names or {}).get(key)
            if class_name:
                lines.append(f"from .{module} import {class_name}")
                exported.append(class_name)
            else:
                lines.append(f"from . import {module}")
        if exported:
            lines.append("")
            lines.append("__all__ = [")
            lines.extend(f'    "{name}",' for name in exported)
            lines.append("]")
        lines.append("")
        return "\n".join(lines)


__all__: List[str] = ["ModelExporter", "ExportResult", "FileRecord", "module_name_for"]
