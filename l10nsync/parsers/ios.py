"""iOS localization resources: ``InfoPlist.strings`` and ``Info.plist``."""

from __future__ import annotations

import logging
import plistlib
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
from xml.parsers.expat import ExpatError

from l10nsync.parsers.base import (
    KeyNotFoundWarning,
    ResourceBundle,
    ResourceParseError,
    merge_entries,
)
from l10nsync.utils.fs import atomic_write_bytes

logger = logging.getLogger("l10nsync.parsers.ios")

INFO_PLIST_MODES = ("overwrite", "token", "keep")

_QUOTED = r'"((?:[^"\\]|\\.)*)"'
_ENTRY = re.compile(
    r'\s*(?:' + _QUOTED + r'|([A-Za-z0-9_.\-]+))\s*=\s*' + _QUOTED + r'\s*;',
    re.DOTALL,
)
_COMMENT = re.compile(r"\s*(?://[^\n]*(?:\n|$)|/\*.*?\*/)", re.DOTALL)
_BARE_KEY = re.compile(r"^[A-Za-z0-9_.\-]+$")
_UNESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "\\": "\\", "'": "'"}


def escape_strings_value(value: str) -> str:
    """Escape a value for a ``.strings`` file (backslash, quote, newline)."""
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def unescape_strings_value(value: str) -> str:
    """Inverse of :func:`escape_strings_value`, also accepting ``\\t``, ``\\r`` and ``\\U``."""
    out: List[str] = []
    index = 0
    while index < len(value):
        char = value[index]
        if char != "\\" or index + 1 >= len(value):
            out.append(char)
            index += 1
            continue
        code = value[index + 1]
        if code in _UNESCAPES:
            out.append(_UNESCAPES[code])
            index += 2
        elif code in "Uu" and re.match(r"[0-9A-Fa-f]{4}", value[index + 2 : index + 6]):
            out.append(chr(int(value[index + 2 : index + 6], 16)))
            index += 6
        else:
            out.append(code)
            index += 2
    return "".join(out)


def parse_strings(text: str) -> Dict[str, str]:
    """Parse ``.strings`` text into an ordered key/value map.

    Raises:
        ValueError: On content that is neither an entry nor a comment.
    """
    entries: Dict[str, str] = {}
    pos = 0
    while pos < len(text):
        comment = _COMMENT.match(text, pos)
        if comment:
            pos = comment.end()
            continue
        if not text[pos:].strip():
            break
        match = _ENTRY.match(text, pos)
        if not match:
            offset = len(text) - len(text[pos:].lstrip())
            line = text.count("\n", 0, offset) + 1
            raise ValueError(f"unexpected content at line {line}")
        quoted_key, bare_key, value = match.groups()
        key = unescape_strings_value(quoted_key) if quoted_key is not None else bare_key
        entries[key] = unescape_strings_value(value)
        pos = match.end()
    return entries


def _decode(raw: bytes) -> str:
    if raw.startswith((b"\xff\xfe", b"\xfe\xff")):
        return raw.decode("utf-16")
    return raw.decode("utf-8-sig")


class StringsFile(ResourceBundle):
    """A ``<locale>.lproj/*.strings`` file."""

    def __init__(self, path: Path, entries: Optional[Dict[str, str]] = None) -> None:
        super().__init__(path)
        self._entries: Dict[str, str] = dict(entries or {})

    @classmethod
    def load(cls, path: Path) -> "StringsFile":
        """Load an existing file; a missing file yields an empty bundle.

        Raises:
            ResourceParseError: If the file exists but cannot be parsed.
        """
        if not path.exists():
            return cls(path)
        try:
            entries = parse_strings(_decode(path.read_bytes()))
        except (OSError, UnicodeDecodeError, ValueError) as exc:
            raise ResourceParseError(path, str(exc)) from exc
        return cls(path, entries)

    @property
    def entries(self) -> Dict[str, str]:
        return dict(self._entries)

    def update(self, new: Mapping[str, str]) -> None:
        self._entries = merge_entries(self._entries, new)

    def render(self) -> str:
        lines = []
        for key, value in self._entries.items():
            rendered_key = key if _BARE_KEY.match(key) else f'"{escape_strings_value(key)}"'
            lines.append(f'{rendered_key} = "{escape_strings_value(value)}";')
        return "".join(f"{line}\n" for line in lines)


class InfoPlist:
    """The application's ``Info.plist``."""

    DEVELOPMENT_REGION_KEY = "CFBundleDevelopmentRegion"
    LOCALIZATIONS_KEY = "CFBundleLocalizations"

    def __init__(self, path: Path, data: Dict[str, Any]) -> None:
        self.path = path
        self.data = data
        self.modified = False

    @classmethod
    def load(cls, path: Path) -> "InfoPlist":
        """Load and parse ``Info.plist``.

        Raises:
            ResourceParseError: If the file cannot be read or is not a dictionary.
        """
        try:
            with open(path, "rb") as f:
                data = plistlib.load(f, dict_type=dict)
        except (OSError, plistlib.InvalidFileException, ValueError, ExpatError) as exc:
            raise ResourceParseError(path, str(exc)) from exc
        if not isinstance(data, dict):
            raise ResourceParseError(path, "top-level value must be a dictionary")
        return cls(path, data)

    @property
    def development_region(self) -> Optional[str]:
        value = self.data.get(self.DEVELOPMENT_REGION_KEY)
        return value if isinstance(value, str) else None

    def select_keys(
        self, strings: Mapping[str, str], locale: Optional[str] = None
    ) -> Tuple[Dict[str, str], List[KeyNotFoundWarning]]:
        """Split ``strings`` into keys present in the plist and warnings for the rest."""
        accepted: Dict[str, str] = {}
        warnings: List[KeyNotFoundWarning] = []
        for key, value in strings.items():
            if key in self.data:
                accepted[key] = value
            else:
                warning = KeyNotFoundWarning(key, self.path.name, locale)
                logger.warning("%s", warning)
                warnings.append(warning)
        return accepted, warnings

    def apply_development_values(self, strings: Mapping[str, str], mode: str) -> None:
        """Reflect the development-region translations in the plist itself.

        Args:
            strings: Keys already known to exist in the plist.
            mode: ``overwrite`` writes the value in place, ``token`` replaces
                it with a ``$(KEY)`` variable reference, ``keep`` leaves it.
        """
        if mode not in INFO_PLIST_MODES:
            raise ValueError(f"Unknown Info.plist mode: {mode}")
        if mode == "keep":
            return
        for key, value in strings.items():
            replacement = value if mode == "overwrite" else f"$({key})"
            if self.data.get(key) != replacement:
                self.data[key] = replacement
                self.modified = True

    def add_localizations(self, locales: Iterable[str]) -> None:
        """Union ``locales`` into ``CFBundleLocalizations``, keeping order."""
        current = self.data.get(self.LOCALIZATIONS_KEY)
        merged: List[str] = list(current) if isinstance(current, list) else []
        for locale in locales:
            if locale not in merged:
                merged.append(locale)
        if merged != current:
            self.data[self.LOCALIZATIONS_KEY] = merged
            self.modified = True

    def render(self) -> bytes:
        return plistlib.dumps(self.data, fmt=plistlib.FMT_XML, sort_keys=False)

    def write(self) -> None:
        atomic_write_bytes(self.path, self.render())
        self.modified = False
        logger.debug("Wrote %s", self.path)
