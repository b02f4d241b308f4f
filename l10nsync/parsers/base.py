"""Error taxonomy and the shared merge contract for resource bundles.

Every resource format (Android ``strings.xml``, iOS ``.strings``) merges
new translations into an existing bundle the same way: new keys overwrite
existing keys of the same name, all other existing keys are kept untouched.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Mapping, Optional

from l10nsync.utils.fs import atomic_write_text

logger = logging.getLogger("l10nsync.parsers.base")


# =============================================================================
# Custom Exception Hierarchy
# =============================================================================

class RecoverableError(Exception):
    """Base class for recoverable business errors.

    These errors indicate expected failure conditions that can be handled
    gracefully by skipping the current item and continuing processing.
    """
    pass


class ConfigParseError(RecoverableError):
    """A locale configuration file is not valid structured data.

    The file is skipped; the other locale files are still processed.
    """

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Could not parse {path}: {reason}")
        self.path = path
        self.reason = reason


class MissingTargetError(RecoverableError):
    """The native project directory for a platform does not exist.

    The whole platform step is skipped.
    """

    def __init__(self, platform: str, hint: str) -> None:
        super().__init__(hint)
        self.platform = platform


class ResourceParseError(RecoverableError):
    """An existing resource file cannot be parsed.

    The file is left untouched rather than overwritten with partial content.
    """

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Could not parse existing resource {path}: {reason}")
        self.path = path
        self.reason = reason


class KeyNotFoundWarning(RecoverableError):
    """A localized key has no slot in the target property list.

    Only that key is skipped.
    """

    def __init__(self, key: str, target: str, locale: Optional[str] = None) -> None:
        message = f'Key "{key}" not found in {target}, skipping'
        if locale:
            message = f"{message} (locale {locale})"
        super().__init__(message)
        self.key = key
        self.target = target
        self.locale = locale


def merge_entries(
    existing: Mapping[str, str], new: Mapping[str, str]
) -> Dict[str, str]:
    """Right-biased merge of two key/value maps.

    Existing key order is kept; keys only present in ``new`` are appended in
    their own order. On collision the value from ``new`` wins.
    """
    merged: Dict[str, str] = dict(existing)
    for key, value in new.items():
        merged[key] = value
    return merged


class ResourceBundle(ABC):
    """A flat key/value resource file of one locale."""

    def __init__(self, path: Path) -> None:
        self.path = path

    @property
    @abstractmethod
    def entries(self) -> Dict[str, str]:
        """Current key/value content."""

    @abstractmethod
    def update(self, new: Mapping[str, str]) -> None:
        """Merge ``new`` into this bundle following ``merge_entries``."""

    @abstractmethod
    def render(self) -> str:
        """Serialize the bundle in its native format."""

    def write(self) -> None:
        """Write the bundle to ``self.path``, creating parent directories."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        atomic_write_text(self.path, self.render())
        logger.debug("Wrote %s (%d entries)", self.path, len(self.entries))
