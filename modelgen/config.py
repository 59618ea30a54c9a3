"""
modelgen - Configuration File Loader
=====================================
Reads generation options from a YAML or JSON file. The result is a plain
mapping; validation happens in ``GenerationOptions.load``.

Example ``modelgen.yaml``::

    dialect: postgres
    schema: public
    singularize: true
    validation_rules:
      - type: string_length_check
        error_message_template: "{tableName}.{fieldName} is limited to {maxBound} characters"
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from modelgen.diagnostics import ConfigurationError
from modelgen.models import GenerationOptions

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modelgen.config")


def _load_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(
            "INVALID_CONFIG_FILE", f"Invalid JSON in {path}: {exc}", {"path": str(path)}
        ) from exc


def _load_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationError(
            "INVALID_CONFIG_FILE", f"Invalid YAML in {path}: {exc}", {"path": str(path)}
        ) from exc


def load_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a configuration file into a dict.

    Dispatches on the extension; anything that is not ``.json`` is parsed
    as YAML (a superset of JSON). An empty file yields ``{}``.

    Raises:
        ConfigurationError: missing file, parse error, or a top level that
            is not a mapping.
    """
    config_path: Path = Path(path)
    if not config_path.is_file():
        raise ConfigurationError(
            "CONFIG_NOT_FOUND",
            f"Configuration file not found: {config_path}",
            {"path": str(config_path)},
        )

    if config_path.suffix.lower() == ".json":
        data: Any = _load_json(config_path)
    else:
        data = _load_yaml(config_path)

    if data is None:
        logger.info("Configuration file %s is empty; using defaults.", config_path)
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            "INVALID_CONFIG_FILE",
            f"Expected a mapping at the top level of {config_path}, "
            f"got {type(data).__name__}.",
            {"path": str(config_path)},
        )
    logger.debug("Loaded %d option(s) from %s.", len(data), config_path)
    return data


def build_options(
    path: Optional[Union[str, Path]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> GenerationOptions:
    """File options (if any) with *overrides* applied on top, validated."""
    data: Dict[str, Any] = load_config_file(path) if path is not None else {}
    for key, value in (overrides or {}).items():
        if value is not None:
            data[key] = value
    return GenerationOptions.load(data)


__all__: List[str] = ["load_config_file", "build_options"]
