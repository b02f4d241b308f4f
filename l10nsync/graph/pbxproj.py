"""Loader and serializer for Xcode ``project.pbxproj`` files.

The file is an old-style ASCII property list: dictionaries ``{ k = v; }``,
arrays ``( a, b, )`` and quoted or bare strings. Xcode annotates object IDs
with block comments (``ID /* Name */``); those annotations are collected as
labels on load and written back on save, so objects the synchronizer never
touches come back out the way Xcode wrote them.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from l10nsync.graph.schema import REFERENCE_KEYS

logger = logging.getLogger("l10nsync.graph.pbxproj")

HEADER = "// !$*UTF8*$!"

# Objects Xcode writes on a single line.
INLINE_KINDS = frozenset({"PBXBuildFile", "PBXFileReference"})

_BARE_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_$+/:.-@~"
)
_BARE_OUT = re.compile(r"^[A-Za-z0-9_$/:.]+$")
_ANNOTATED_KEYS = REFERENCE_KEYS | {"rootObject"}

_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    '"': '"',
    "'": "'",
    "\\": "\\",
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "v": "\v",
}


class PbxprojSyntaxError(ValueError):
    """The manifest text is not a well-formed ASCII property list."""

    def __init__(self, message: str, line: int) -> None:
        super().__init__(f"line {line}: {message}")
        self.line = line


@dataclass
class PbxprojDocument:
    """Parsed manifest: the root mapping plus the ID annotations seen."""

    root: Dict[str, Any]
    labels: Dict[str, str] = field(default_factory=dict)


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.end = len(text)
        self.labels: Dict[str, str] = {}

    def error(self, message: str) -> PbxprojSyntaxError:
        line = self.text.count("\n", 0, self.pos) + 1
        return PbxprojSyntaxError(message, line)

    def skip(self) -> None:
        text = self.text
        while self.pos < self.end:
            char = text[self.pos]
            if char.isspace():
                self.pos += 1
            elif text.startswith("//", self.pos):
                newline = text.find("\n", self.pos)
                self.pos = self.end if newline == -1 else newline + 1
            elif text.startswith("/*", self.pos):
                close = text.find("*/", self.pos + 2)
                if close == -1:
                    raise self.error("unterminated comment")
                self.pos = close + 2
            else:
                break

    def peek(self) -> str:
        self.skip()
        if self.pos >= self.end:
            raise self.error("unexpected end of input")
        return self.text[self.pos]

    def expect(self, char: str) -> None:
        if self.peek() != char:
            raise self.error(f"expected {char!r}, found {self.text[self.pos]!r}")
        self.pos += 1

    def trailing_comment(self) -> Optional[str]:
        """Consume a ``/* ... */`` annotation on the same line, if any."""
        scan = self.pos
        while scan < self.end and self.text[scan] in " \t":
            scan += 1
        if not self.text.startswith("/*", scan):
            return None
        close = self.text.find("*/", scan + 2)
        if close == -1:
            raise self.error("unterminated comment")
        self.pos = close + 2
        return self.text[scan + 2 : close].strip()

    def parse_document(self) -> Dict[str, Any]:
        if self.peek() != "{":
            raise self.error("manifest must start with a dictionary")
        root = self.parse_dict()
        self.skip()
        if self.pos != self.end:
            raise self.error("trailing content after root dictionary")
        return root

    def parse_value(self) -> Any:
        char = self.peek()
        if char == "{":
            return self.parse_dict()
        if char == "(":
            return self.parse_array()
        return self.parse_string()

    def parse_string(self) -> str:
        char = self.peek()
        if char == '"':
            value = self.parse_quoted()
        else:
            value = self.parse_bare()
        comment = self.trailing_comment()
        if comment:
            self.labels.setdefault(value, comment)
        return value

    def parse_bare(self) -> str:
        start = self.pos
        text = self.text
        while self.pos < self.end and text[self.pos] in _BARE_CHARS:
            if text.startswith("//", self.pos) or text.startswith("/*", self.pos):
                break
            self.pos += 1
        if self.pos == start:
            raise self.error(f"unexpected character {text[self.pos]!r}")
        return text[start : self.pos]

    def parse_quoted(self) -> str:
        self.pos += 1
        chunks: List[str] = []
        text = self.text
        while True:
            if self.pos >= self.end:
                raise self.error("unterminated string")
            char = text[self.pos]
            if char == '"':
                self.pos += 1
                return "".join(chunks)
            if char != "\\":
                chunks.append(char)
                self.pos += 1
                continue
            self.pos += 1
            if self.pos >= self.end:
                raise self.error("unterminated escape")
            code = text[self.pos]
            if code in _ESCAPES:
                chunks.append(_ESCAPES[code])
                self.pos += 1
            elif code == "U":
                digits = text[self.pos + 1 : self.pos + 5]
                try:
                    chunks.append(chr(int(digits, 16)))
                except ValueError as exc:
                    raise self.error(f"bad unicode escape {digits!r}") from exc
                self.pos += 5
            elif code in "01234567":
                end = self.pos + 1
                while end < min(self.pos + 3, self.end) and text[end] in "01234567":
                    end += 1
                chunks.append(chr(int(text[self.pos : end], 8)))
                self.pos = end
            else:
                chunks.append(code)
                self.pos += 1

    def parse_dict(self) -> Dict[str, Any]:
        self.expect("{")
        result: Dict[str, Any] = {}
        while True:
            if self.peek() == "}":
                self.pos += 1
                return result
            key = self.parse_string()
            self.expect("=")
            result[key] = self.parse_value()
            self.expect(";")

    def parse_array(self) -> List[Any]:
        self.expect("(")
        items: List[Any] = []
        while True:
            if self.peek() == ")":
                self.pos += 1
                return items
            items.append(self.parse_value())
            char = self.peek()
            if char == ",":
                self.pos += 1
            elif char != ")":
                raise self.error(f"expected ',' or ')', found {char!r}")


def loads(text: str) -> PbxprojDocument:
    """Parse manifest text.

    Args:
        text: Contents of a ``project.pbxproj`` file.

    Returns:
        PbxprojDocument: Root mapping and collected ID labels.

    Raises:
        PbxprojSyntaxError: If the text is malformed.
    """
    parser = _Parser(text)
    root = parser.parse_document()
    logger.debug("Parsed manifest with %d annotated IDs", len(parser.labels))
    return PbxprojDocument(root=root, labels=parser.labels)


def quote(value: str) -> str:
    """Render a string the way Xcode does: bare when safe, quoted otherwise."""
    if value and _BARE_OUT.match(value) and "//" not in value and "/*" not in value:
        return value
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


class _Writer:
    def __init__(
        self,
        objects: Mapping[str, Any],
        label_for: Callable[[str], Optional[str]],
    ) -> None:
        self.objects = objects
        self.label_for = label_for

    def reference(self, value: str) -> str:
        rendered = quote(value)
        if value in self.objects:
            label = self.label_for(value)
            if label:
                rendered += f" /* {label} */"
        return rendered

    def value(self, value: Any, indent: int, key: Optional[str], inline: bool) -> str:
        annotate = key in _ANNOTATED_KEYS
        if isinstance(value, str):
            return self.reference(value) if annotate else quote(value)
        if isinstance(value, list):
            rendered = [
                self.value(item, indent + 1, key if annotate else None, inline)
                for item in value
            ]
            if inline:
                return "(" + "".join(f"{item}, " for item in rendered) + ")"
            pad = "\t" * (indent + 1)
            body = "".join(f"{pad}{item},\n" for item in rendered)
            return "(\n" + body + "\t" * indent + ")"
        if isinstance(value, Mapping):
            return self.mapping(value, indent, inline)
        raise TypeError(f"Unsupported manifest value type: {type(value)!r}")

    def mapping(self, value: Mapping[str, Any], indent: int, inline: bool) -> str:
        pairs = [
            (quote(str(k)), self.value(v, indent + 1, str(k), inline))
            for k, v in value.items()
        ]
        if inline:
            return "{" + "".join(f"{k} = {v}; " for k, v in pairs) + "}"
        pad = "\t" * (indent + 1)
        body = "".join(f"{pad}{k} = {v};\n" for k, v in pairs)
        return "{\n" + body + "\t" * indent + "}"

    def objects_table(self) -> str:
        sections: Dict[str, List[str]] = {}
        for object_id, attrs in self.objects.items():
            isa = attrs.get("isa", "") if isinstance(attrs, Mapping) else ""
            sections.setdefault(str(isa), []).append(object_id)

        chunks = ["{\n"]
        for isa in sorted(sections):
            chunks.append(f"\n/* Begin {isa} section */\n")
            inline = isa in INLINE_KINDS
            for object_id in sorted(sections[isa]):
                attrs = self.objects[object_id]
                rendered = self.value(attrs, 2, None, inline)
                chunks.append(f"\t\t{self.reference(object_id)} = {rendered};\n")
            chunks.append(f"/* End {isa} section */\n")
        chunks.append("\t}")
        return "".join(chunks)

    def document(self, root: Mapping[str, Any]) -> str:
        lines = [HEADER, "{"]
        for key, value in root.items():
            if key == "objects" and isinstance(value, Mapping):
                rendered = self.objects_table()
            else:
                rendered = self.value(value, 1, key, False)
            lines.append(f"\t{quote(key)} = {rendered};")
        lines.append("}")
        return "\n".join(lines) + "\n"


def dumps(
    root: Mapping[str, Any],
    label_for: Optional[Callable[[str], Optional[str]]] = None,
) -> str:
    """Serialize a manifest root mapping back to pbxproj text.

    Args:
        root: Root mapping (``archiveVersion``, ``objects``, ``rootObject``...).
        label_for: Returns the annotation for an object ID, or None.

    Returns:
        str: Manifest text in Xcode's layout.
    """
    objects = root.get("objects")
    if not isinstance(objects, Mapping):
        objects = {}
    writer = _Writer(objects, label_for or (lambda _id: None))
    return writer.document(root)
