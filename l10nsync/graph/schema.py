"""Typed node records for the Xcode project manifest graph.

The serialized project keeps every object in one table keyed by an opaque
identifier, with an ``isa`` attribute naming the object kind. Each kind the
synchronizer reads or writes has one record class here; the records accept
unknown attributes so that fields owned by Xcode survive a load/save cycle.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger("l10nsync.graph.schema")

GROUP_SOURCE_TREE = "<group>"
STRINGS_FILE_TYPE = "text.plist.strings"


class GraphIntegrityError(Exception):
    """The manifest graph lacks a structurally required node.

    Fatal for one platform's synchronization: the manifest is not written
    back when this is raised.
    """

    pass


class NodeKind(str, Enum):
    """Object kinds (``isa`` values) understood by the synchronizer."""

    BUILD_FILE = "PBXBuildFile"
    FILE_REFERENCE = "PBXFileReference"
    GROUP = "PBXGroup"
    VARIANT_GROUP = "PBXVariantGroup"
    RESOURCES_BUILD_PHASE = "PBXResourcesBuildPhase"
    NATIVE_TARGET = "PBXNativeTarget"
    PROJECT = "PBXProject"


def _id_list(value: Any) -> List[str]:
    """Coerce a raw reference list, dropping anything that is not an ID."""
    if not isinstance(value, list):
        if value is not None:
            logger.debug("Expected a reference list, got %r; treating as empty", value)
        return []
    return [item for item in value if isinstance(item, str) and item]


class PBXNode(BaseModel):
    """Base record for one object of the manifest table."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    KIND: ClassVar[NodeKind]

    isa: str

    @field_validator("isa")
    @classmethod
    def _check_isa(cls, value: str) -> str:
        expected = getattr(cls, "KIND", None)
        if expected is not None and value != expected.value:
            raise ValueError(f"expected isa {expected.value}, got {value}")
        return value

    @classmethod
    def create(cls, **fields: Any) -> "PBXNode":
        """Build a fresh record of this kind."""
        return cls(isa=cls.KIND.value, **fields)

    def to_attrs(self) -> Dict[str, Any]:
        """Serialize back to a raw attribute mapping.

        Keys follow Xcode's ordering: ``isa`` first, the rest sorted.
        """
        payload = self.model_dump(by_alias=True, exclude_none=True)
        isa = payload.pop("isa")
        ordered: Dict[str, Any] = {"isa": isa}
        for key in sorted(payload):
            ordered[key] = payload[key]
        return ordered


class FileReference(PBXNode):
    """One physical file, e.g. ``fr.lproj/InfoPlist.strings``."""

    KIND: ClassVar[NodeKind] = NodeKind.FILE_REFERENCE

    last_known_file_type: Optional[str] = Field(default=None, alias="lastKnownFileType")
    name: Optional[str] = None
    path: Optional[str] = None
    source_tree: Optional[str] = Field(default=None, alias="sourceTree")


class BuildFile(PBXNode):
    """Inclusion of a file (or variant group) in a build phase."""

    KIND: ClassVar[NodeKind] = NodeKind.BUILD_FILE

    file_ref: Optional[str] = Field(default=None, alias="fileRef")


class Group(PBXNode):
    """A folder of the project navigator."""

    KIND: ClassVar[NodeKind] = NodeKind.GROUP

    children: List[str] = Field(default_factory=list)
    name: Optional[str] = None
    path: Optional[str] = None
    source_tree: Optional[str] = Field(default=None, alias="sourceTree")

    @field_validator("children", mode="before")
    @classmethod
    def _coerce_children(cls, value: Any) -> List[str]:
        return _id_list(value)

    @property
    def display_name(self) -> Optional[str]:
        return self.name or self.path


class VariantGroup(Group):
    """Locale variants of one logical resource file."""

    KIND: ClassVar[NodeKind] = NodeKind.VARIANT_GROUP


class ResourcesBuildPhase(PBXNode):
    """Files copied into the application bundle."""

    KIND: ClassVar[NodeKind] = NodeKind.RESOURCES_BUILD_PHASE

    files: List[str] = Field(default_factory=list)

    @field_validator("files", mode="before")
    @classmethod
    def _coerce_files(cls, value: Any) -> List[str]:
        return _id_list(value)


class NativeTarget(PBXNode):
    KIND: ClassVar[NodeKind] = NodeKind.NATIVE_TARGET

    name: Optional[str] = None
    build_phases: List[str] = Field(default_factory=list, alias="buildPhases")

    @field_validator("build_phases", mode="before")
    @classmethod
    def _coerce_phases(cls, value: Any) -> List[str]:
        return _id_list(value)


class Project(PBXNode):
    """The project root object referenced by ``rootObject``."""

    KIND: ClassVar[NodeKind] = NodeKind.PROJECT

    main_group: str = Field(alias="mainGroup")
    known_regions: Optional[List[str]] = Field(default=None, alias="knownRegions")
    development_region: Optional[str] = Field(default=None, alias="developmentRegion")
    targets: List[str] = Field(default_factory=list)

    @field_validator("known_regions", mode="before")
    @classmethod
    def _coerce_regions(cls, value: Any) -> Optional[List[str]]:
        if value is None:
            return None
        if not isinstance(value, list):
            logger.debug("knownRegions is not a list (%r); treating as absent", value)
            return None
        return [str(item) for item in value if isinstance(item, str)]

    @field_validator("targets", mode="before")
    @classmethod
    def _coerce_targets(cls, value: Any) -> List[str]:
        return _id_list(value)


RECORD_TYPES: Dict[NodeKind, type] = {
    NodeKind.BUILD_FILE: BuildFile,
    NodeKind.FILE_REFERENCE: FileReference,
    NodeKind.GROUP: Group,
    NodeKind.VARIANT_GROUP: VariantGroup,
    NodeKind.RESOURCES_BUILD_PHASE: ResourcesBuildPhase,
    NodeKind.NATIVE_TARGET: NativeTarget,
    NodeKind.PROJECT: Project,
}


# Object attributes that hold references to other objects. Used by the
# reference index and by the serializer to decide where annotations go.
REFERENCE_KEYS = frozenset(
    {
        "buildConfigurationList",
        "buildConfigurations",
        "buildPhases",
        "buildRules",
        "children",
        "containerPortal",
        "dependencies",
        "fileRef",
        "files",
        "mainGroup",
        "packageProductDependencies",
        "packageReferences",
        "productRefGroup",
        "productReference",
        "productRef",
        "target",
        "targetProxy",
        "targets",
    }
)
