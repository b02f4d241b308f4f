"""Android ``strings.xml`` resources.

Existing files are merged, not regenerated: ``<string>`` entries that are
not being updated keep their attributes and inner markup, and every other
resource (``plurals``, ``string-array``, comments) is carried over as-is.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

from l10nsync.parsers.base import ResourceBundle, ResourceParseError, merge_entries

logger = logging.getLogger("l10nsync.parsers.android")

DEFAULT_LANGUAGE_MAPPINGS: Dict[str, List[str]] = {
    "zh-Hans": ["zh-rCN"],
    "zh-Hant": ["zh-rHK", "zh-rTW", "zh-rMO"],
}

NAMESPACES = {
    "tools": "http://schemas.android.com/tools",
    "xliff": "urn:oasis:names:tc:xliff:document:1.2",
}
for _prefix, _uri in NAMESPACES.items():
    ET.register_namespace(_prefix, _uri)

INDENT = "    "


def values_folders(
    locale: str,
    default_locale: str = "en",
    mappings: Optional[Mapping[str, List[str]]] = None,
) -> List[str]:
    """Return the ``values*`` resource folders for a locale.

    Args:
        locale: Locale identifier of the configuration file.
        default_locale: Locale stored in the unqualified ``values`` folder.
        mappings: Locale -> Android qualifiers overrides.

    Returns:
        List[str]: Folder names, e.g. ``["values-fr"]``.
    """
    table = DEFAULT_LANGUAGE_MAPPINGS if mappings is None else mappings
    if locale in table:
        return [f"values-{qualifier}" for qualifier in table[locale]]
    if locale == default_locale:
        return ["values"]
    return [f"values-{locale}"]


def escape_xml(value: str) -> str:
    """Escape the five XML special characters."""
    return (
        value.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def _qualified(name: str) -> str:
    """Turn ``{uri}local`` back into ``prefix:local``."""
    if name.startswith("{"):
        uri, _, local = name[1:].partition("}")
        for prefix, known in NAMESPACES.items():
            if known == uri:
                return f"{prefix}:{local}"
    return name


def _outer_xml(element: ET.Element) -> str:
    tail = element.tail
    element.tail = None
    try:
        return ET.tostring(element, encoding="unicode")
    finally:
        element.tail = tail


def _inner_xml(element: ET.Element) -> str:
    parts = [escape_xml(element.text or "")]
    for child in element:
        parts.append(ET.tostring(child, encoding="unicode"))
    return "".join(parts)


@dataclass
class StringResource:
    """One ``<string>`` element."""

    name: str
    value: str
    attrs: Dict[str, str] = field(default_factory=dict)
    # Inner markup of an untouched entry, written back verbatim.
    raw: Optional[str] = None

    def render(self) -> str:
        attrs = [f'name="{escape_xml(self.name)}"']
        attrs.extend(f'{k}="{escape_xml(v)}"' for k, v in self.attrs.items())
        body = self.raw if self.raw is not None else escape_xml(self.value)
        return f"<string {' '.join(attrs)}>{body}</string>"


class AndroidStringsFile(ResourceBundle):
    """A ``values*/strings.xml`` resource file."""

    def __init__(self, path: Path) -> None:
        super().__init__(path)
        self.root_attrs: Dict[str, str] = {}
        # Either a StringResource or the raw XML of any other node.
        self._items: List[Union[StringResource, str]] = []
        self._index: Dict[str, StringResource] = {}

    @classmethod
    def load(cls, path: Path) -> "AndroidStringsFile":
        """Load an existing file; a missing file yields an empty bundle.

        Raises:
            ResourceParseError: If the file exists but is not a resources document.
        """
        bundle = cls(path)
        if not path.exists():
            return bundle

        parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
        try:
            root = ET.parse(path, parser=parser).getroot()
        except (OSError, ET.ParseError) as exc:
            raise ResourceParseError(path, str(exc)) from exc
        if root.tag != "resources":
            raise ResourceParseError(path, f"root element is <{root.tag}>, expected <resources>")

        bundle.root_attrs = {_qualified(k): v for k, v in root.attrib.items()}
        for child in root:
            name = child.get("name") if child.tag == "string" else None
            if not name:
                bundle._items.append(_outer_xml(child))
                continue
            attrs = {_qualified(k): v for k, v in child.attrib.items() if k != "name"}
            entry = StringResource(
                name=name,
                value="".join(child.itertext()),
                attrs=attrs,
                raw=_inner_xml(child) if len(child) else None,
            )
            bundle._add(entry)
        logger.debug("Loaded %d string(s) from %s", len(bundle._index), path)
        return bundle

    def _add(self, entry: StringResource) -> None:
        if entry.name in self._index:
            # Duplicate names: the last one wins, as for aapt.
            self._items.remove(self._index[entry.name])
        self._items.append(entry)
        self._index[entry.name] = entry

    @property
    def entries(self) -> Dict[str, str]:
        return {name: entry.value for name, entry in self._index.items()}

    def update(self, new: Mapping[str, str]) -> None:
        merged = merge_entries(self.entries, new)
        for name in new:
            value = merged[name]
            existing = self._index.get(name)
            if existing is not None:
                existing.value = value
                existing.raw = None
            else:
                self._add(StringResource(name=name, value=value))

    def render(self) -> str:
        root_attrs = dict(self.root_attrs)
        used = " ".join(
            " ".join(item.attrs) if isinstance(item, StringResource) else ""
            for item in self._items
        )
        for prefix, uri in NAMESPACES.items():
            if f"{prefix}:" in used or any(k.startswith(f"{prefix}:") for k in root_attrs):
                root_attrs.setdefault(f"xmlns:{prefix}", uri)

        opening = "<resources"
        for key, value in root_attrs.items():
            opening += f' {key}="{escape_xml(value)}"'
        lines = ['<?xml version="1.0" encoding="utf-8"?>', opening + ">"]
        for item in self._items:
            text = item.render() if isinstance(item, StringResource) else item
            lines.append(INDENT + text)
        lines.append("</resources>")
        return "\n".join(lines) + "\n"
