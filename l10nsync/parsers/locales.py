"""Locale configuration discovery.

Each ``<locale>.json`` file of the localizations directory holds one
mapping per platform::

    {
        "android": {"app_name": "Appli"},
        "ios": {"CFBundleDisplayName": "Appli"}
    }

Files are read with json5, so comments and trailing commas are accepted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import json5

from l10nsync.parsers.base import ConfigParseError

logger = logging.getLogger("l10nsync.parsers.locales")

PLATFORMS = ("android", "ios")


@dataclass
class LocaleConfig:
    """Translations of one locale, split per platform."""

    locale: str
    path: Path
    platforms: Dict[str, Dict[str, str]] = field(default_factory=dict)

    def strings_for(self, platform: str) -> Optional[Dict[str, str]]:
        """Return the key/value map for ``platform``, or None when absent."""
        return self.platforms.get(platform)


def _coerce_strings(path: Path, platform: str, section: Any) -> Dict[str, str]:
    if not isinstance(section, dict):
        raise ConfigParseError(
            path, f"'{platform}' must be a mapping, got {type(section).__name__}"
        )
    strings: Dict[str, str] = {}
    for key, value in section.items():
        if isinstance(value, str):
            strings[str(key)] = value
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            strings[str(key)] = str(value)
        else:
            logger.warning(
                "%s: value of '%s.%s' is not a string, skipping", path.name, platform, key
            )
    return strings


def parse_locale_file(path: Path) -> LocaleConfig:
    """Parse one locale configuration file.

    Args:
        path: Path to ``<locale>.json``.

    Returns:
        LocaleConfig: Parsed configuration.

    Raises:
        ConfigParseError: If the file cannot be read or is not a mapping.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json5.load(f)
    except (OSError, ValueError) as exc:
        raise ConfigParseError(path, str(exc)) from exc

    if not isinstance(data, dict):
        raise ConfigParseError(path, "top-level value must be a mapping")

    config = LocaleConfig(locale=path.stem, path=path)
    for platform in PLATFORMS:
        if platform in data:
            config.platforms[platform] = _coerce_strings(path, platform, data[platform])
    return config


def discover_locale_configs(
    localizations_dir: Path,
) -> Tuple[List[LocaleConfig], List[ConfigParseError]]:
    """Load every ``*.json`` file of the localizations directory.

    A file that fails to parse is logged and reported, the others are still
    loaded.

    Args:
        localizations_dir: Directory holding one file per locale.

    Returns:
        Tuple of (parsed configs sorted by locale, parse errors).

    Raises:
        FileNotFoundError: If the directory does not exist.
    """
    if not localizations_dir.is_dir():
        raise FileNotFoundError(f"Localizations directory not found: {localizations_dir}")

    configs: List[LocaleConfig] = []
    errors: List[ConfigParseError] = []
    for path in sorted(localizations_dir.glob("*.json")):
        if not path.is_file():
            continue
        try:
            configs.append(parse_locale_file(path))
        except ConfigParseError as err:
            logger.warning("%s", err)
            errors.append(err)

    logger.info(
        "Discovered %d locale file(s) in %s%s",
        len(configs),
        localizations_dir,
        f" ({len(errors)} skipped)" if errors else "",
    )
    return configs, errors


def locale_set(configs: List[LocaleConfig], platform: str) -> List[str]:
    """Locales that carry a section for ``platform``, in sorted order."""
    return sorted({c.locale for c in configs if c.strings_for(platform) is not None})
