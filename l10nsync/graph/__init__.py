"""Public graph API surface."""

from l10nsync.graph.backend import ReferenceIndex
from l10nsync.graph.ids import IdGenerator
from l10nsync.graph.manager import ProjectGraph
from l10nsync.graph.pbxproj import PbxprojDocument, PbxprojSyntaxError, dumps, loads
from l10nsync.graph.schema import (
    BuildFile,
    FileReference,
    GraphIntegrityError,
    Group,
    NativeTarget,
    NodeKind,
    PBXNode,
    Project,
    ResourcesBuildPhase,
    VariantGroup,
)
from l10nsync.graph.synchronizer import ManifestSynchronizer, SyncReport, synchronize

__all__ = [
    "BuildFile",
    "FileReference",
    "GraphIntegrityError",
    "Group",
    "IdGenerator",
    "ManifestSynchronizer",
    "NativeTarget",
    "NodeKind",
    "PBXNode",
    "PbxprojDocument",
    "PbxprojSyntaxError",
    "Project",
    "ProjectGraph",
    "ReferenceIndex",
    "ResourcesBuildPhase",
    "SyncReport",
    "VariantGroup",
    "dumps",
    "loads",
    "synchronize",
]
