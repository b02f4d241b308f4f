"""Helpers for loading sync configuration from TOML/JSON sources.

This module provides a single entry point `load_sync_config` that accepts
various configuration sources:

* None -> default SyncConfig
* dict -> SyncConfig.from_dict
* Path / path-like string -> load .toml/.json from filesystem
* Inline JSON/TOML strings
"""

from __future__ import annotations

import json
import logging
import re
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional, Union

from l10nsync.config import SyncConfig

logger = logging.getLogger("l10nsync.runtime.config_loader")

ConfigSource = Union[str, Path, Dict[str, Any], None]


# A first line like "[ios]" or "[[x]]" is a TOML table header, not a JSON array.
_TOML_TABLE = re.compile(r"^\[{1,2}[\w.\-\" ]+\]{1,2}\s*$")


def _detect_format(text: str) -> str:
    stripped = text.lstrip()
    if stripped.startswith("{"):
        return "json"
    if stripped.startswith("["):
        first_line = stripped.splitlines()[0]
        return "toml" if _TOML_TABLE.match(first_line) else "json"
    return "toml"


def load_sync_config(source: ConfigSource) -> SyncConfig:
    """Load SyncConfig from various configuration sources.

    Args:
        source: One of:
            * None: returns SyncConfig.default()
            * dict: treated as already-parsed configuration mapping
            * str/Path: either a filesystem path to a .toml/.json file,
              or an inline TOML/JSON string (auto-detected)

    Returns:
        SyncConfig instance.

    Raises:
        ValueError: If the source does not decode to a mapping.
        pydantic.ValidationError: If the configuration is invalid.
    """
    if source is None:
        logger.debug("No config source provided; using default SyncConfig")
        return SyncConfig.default()

    if isinstance(source, dict):
        logger.debug("Loading SyncConfig from provided dict")
        return SyncConfig.from_dict(source)

    if isinstance(source, (str, Path)):
        path = Path(source)
        text: Optional[str] = None
        fmt: Optional[str] = None

        try:
            is_file = isinstance(source, Path) or path.is_file()
        except OSError:
            # Inline strings can exceed the platform path length limit.
            is_file = False

        if is_file:
            text = path.read_text(encoding="utf-8")
            suffix = path.suffix.lower()
            if suffix in {".toml", ".tml"}:
                fmt = "toml"
            elif suffix == ".json":
                fmt = "json"
            else:
                fmt = _detect_format(text)
            logger.info("Loading configuration from file: %s (fmt=%s)", path, fmt)
        else:
            text = str(source)
            fmt = _detect_format(text)
            logger.info("Loading configuration from inline %s string", fmt)

        if fmt == "json":
            data = json.loads(text)
        else:
            data = tomllib.loads(text)

        if not isinstance(data, dict):
            raise ValueError("Top-level configuration must be a mapping/dict")

        return SyncConfig.from_dict(data)

    raise TypeError(f"Unsupported config source type: {type(source)!r}")


__all__ = ["load_sync_config"]
