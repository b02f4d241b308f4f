"""In-memory project manifest graph.

ProjectGraph owns the object table of one loaded ``project.pbxproj`` for
the duration of a run. Callers go through typed accessors that validate the
object kind before handing out a record; writes go back through ``add`` and
``update`` so the raw table always stays serializable.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Set, Tuple, Type, TypeVar, Union

from pydantic import ValidationError

from l10nsync.graph import pbxproj
from l10nsync.graph.backend import ReferenceIndex
from l10nsync.graph.ids import IdGenerator
from l10nsync.graph.schema import (
    BuildFile,
    GraphIntegrityError,
    NativeTarget,
    NodeKind,
    PBXNode,
    Project,
    ResourcesBuildPhase,
)

logger = logging.getLogger("l10nsync.graph.manager")

N = TypeVar("N", bound=PBXNode)

_PHASE_LABELS = {
    "PBXResourcesBuildPhase": "Resources",
    "PBXSourcesBuildPhase": "Sources",
    "PBXFrameworksBuildPhase": "Frameworks",
    "PBXHeadersBuildPhase": "Headers",
    "PBXCopyFilesBuildPhase": "CopyFiles",
    "PBXShellScriptBuildPhase": "ShellScript",
}


class ProjectGraph:
    """Typed view over a manifest object table.

    Each graph is loaded fresh for one run, mutated in memory, and
    serialized back at the end of that run.
    """

    def __init__(
        self,
        root: Dict[str, Any],
        labels: Optional[Dict[str, str]] = None,
        id_generator: Optional[IdGenerator] = None,
    ) -> None:
        """Initialize the graph.

        Args:
            root: Parsed root mapping of the manifest.
            labels: Annotation comments keyed by object ID.
            id_generator: Generator used for new object IDs.

        Raises:
            GraphIntegrityError: If the root has no object table.
        """
        objects = root.get("objects")
        if not isinstance(objects, dict):
            raise GraphIntegrityError("Manifest has no 'objects' table")
        self._root = root
        self._objects: Dict[str, Dict[str, Any]] = objects
        self._labels: Dict[str, str] = dict(labels or {})
        self._created: Set[str] = set()
        self._ids = id_generator or IdGenerator()

    @classmethod
    def from_text(cls, text: str, id_generator: Optional[IdGenerator] = None) -> "ProjectGraph":
        """Parse manifest text into a graph."""
        document = pbxproj.loads(text)
        return cls(document.root, document.labels, id_generator=id_generator)

    @classmethod
    def load(
        cls, path: Union[str, Path], id_generator: Optional[IdGenerator] = None
    ) -> "ProjectGraph":
        """Load a graph from a ``project.pbxproj`` file."""
        path = Path(path)
        logger.debug("Loading project manifest: %s", path)
        return cls.from_text(path.read_text(encoding="utf-8"), id_generator=id_generator)

    def to_text(self) -> str:
        """Serialize the graph back to manifest text."""
        return pbxproj.dumps(self._root, self.label)

    @property
    def objects(self) -> Dict[str, Dict[str, Any]]:
        """Raw object table (read-only by convention)."""
        return self._objects

    @property
    def created(self) -> Set[str]:
        """IDs of objects added during this run."""
        return set(self._created)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._objects

    def kind_of(self, node_id: str) -> Optional[str]:
        attrs = self._objects.get(node_id)
        if not isinstance(attrs, dict):
            return None
        isa = attrs.get("isa")
        return isa if isinstance(isa, str) else None

    def get(self, node_id: str, record_type: Type[N]) -> N:
        """Return the typed record for ``node_id``.

        Args:
            node_id: Object identifier.
            record_type: Expected record class.

        Returns:
            The validated record.

        Raises:
            GraphIntegrityError: If the object is missing, of another kind,
                or malformed.
        """
        attrs = self._objects.get(node_id)
        if not isinstance(attrs, dict):
            raise GraphIntegrityError(
                f"{record_type.KIND.value} {node_id} is not present in the manifest"
            )
        if attrs.get("isa") != record_type.KIND.value:
            raise GraphIntegrityError(
                f"Object {node_id} is {attrs.get('isa')!r}, expected {record_type.KIND.value}"
            )
        try:
            return record_type.model_validate(attrs)
        except ValidationError as exc:
            raise GraphIntegrityError(
                f"Malformed {record_type.KIND.value} {node_id}: {exc}"
            ) from exc

    def iter_nodes(self, record_type: Type[N]) -> Iterator[Tuple[str, N]]:
        """Iterate over all well-formed objects of one kind.

        Malformed objects are skipped with a debug message.
        """
        wanted = record_type.KIND.value
        for node_id, attrs in list(self._objects.items()):
            if not isinstance(attrs, dict) or attrs.get("isa") != wanted:
                continue
            try:
                yield node_id, record_type.model_validate(attrs)
            except ValidationError as exc:
                logger.debug("Skipping malformed %s %s: %s", wanted, node_id, exc)

    def new_id(self) -> str:
        """Return an object ID not used anywhere in this graph."""
        return self._ids.new_id(self.has_node)

    def add(self, record: PBXNode, label: Optional[str] = None) -> str:
        """Insert a new object under a fresh ID.

        Args:
            record: Record to insert.
            label: Optional annotation written next to references to it.

        Returns:
            str: The new object ID.
        """
        node_id = self.new_id()
        self._objects[node_id] = record.to_attrs()
        self._created.add(node_id)
        if label:
            self._labels[node_id] = label
        logger.debug("Added %s %s (%s)", record.isa, node_id, label or "-")
        return node_id

    def update(self, node_id: str, record: PBXNode) -> None:
        """Write a modified record back in place, keeping its ID."""
        if node_id not in self._objects:
            raise GraphIntegrityError(f"Cannot update unknown object {node_id}")
        if self.kind_of(node_id) != record.isa:
            raise GraphIntegrityError(
                f"Cannot change kind of {node_id} from {self.kind_of(node_id)} to {record.isa}"
            )
        self._objects[node_id] = record.to_attrs()

    def set_label(self, node_id: str, label: str) -> None:
        self._labels.setdefault(node_id, label)

    def label(self, node_id: str) -> Optional[str]:
        """Return the annotation for an object.

        Parsed annotations win. Objects created during this run get one
        derived from their attributes, as Xcode would write it.
        """
        if node_id in self._labels:
            return self._labels[node_id]
        if node_id not in self._created:
            return None
        return self._derive_label(node_id)

    def _derive_label(self, node_id: str) -> Optional[str]:
        attrs = self._objects.get(node_id) or {}
        isa = attrs.get("isa")
        if isa == NodeKind.PROJECT.value:
            return "Project object"
        if isa in _PHASE_LABELS:
            return _PHASE_LABELS[isa]
        if isa == NodeKind.BUILD_FILE.value:
            file_label = self.label(str(attrs.get("fileRef", ""))) or "(null)"
            return f"{file_label} in {self._phase_label_for(node_id)}"
        name = attrs.get("name")
        if isinstance(name, str) and name:
            return name
        path = attrs.get("path")
        if isinstance(path, str) and path:
            return path.rsplit("/", 1)[-1]
        return None

    def _phase_label_for(self, build_file_id: str) -> str:
        for phase_id, attrs in self._objects.items():
            files = attrs.get("files") if isinstance(attrs, dict) else None
            if isinstance(files, list) and build_file_id in files:
                return self.label(phase_id) or _PHASE_LABELS.get(attrs.get("isa"), "Resources")
        return "Resources"

    @property
    def root_object_id(self) -> str:
        root_id = self._root.get("rootObject")
        if not isinstance(root_id, str) or not root_id:
            raise GraphIntegrityError("Manifest has no rootObject")
        return root_id

    def project(self) -> Tuple[str, Project]:
        """Return the project root object.

        Raises:
            GraphIntegrityError: If ``rootObject`` is missing or not a project.
        """
        root_id = self.root_object_id
        return root_id, self.get(root_id, Project)

    def find_build_file(self, file_ref: str) -> Optional[str]:
        """Return the ID of a build file wrapping ``file_ref``, if any."""
        for node_id, build_file in self.iter_nodes(BuildFile):
            if build_file.file_ref == file_ref:
                return node_id
        return None

    def resources_phase(self) -> Tuple[str, ResourcesBuildPhase]:
        """Locate the resources build phase of the application target.

        The phase listed by the first native target of the project wins;
        otherwise the first resources phase of the table is used.

        Raises:
            GraphIntegrityError: If the manifest has no resources phase.
        """
        _, project = self.project()
        for target_id in project.targets:
            if self.kind_of(target_id) != NodeKind.NATIVE_TARGET.value:
                continue
            target = self.get(target_id, NativeTarget)
            for phase_id in target.build_phases:
                if self.kind_of(phase_id) == NodeKind.RESOURCES_BUILD_PHASE.value:
                    return phase_id, self.get(phase_id, ResourcesBuildPhase)

        for phase_id, phase in self.iter_nodes(ResourcesBuildPhase):
            return phase_id, phase
        raise GraphIntegrityError("Manifest has no PBXResourcesBuildPhase")

    def reference_index(self) -> ReferenceIndex:
        """Build a NetworkX reference index of the current table."""
        return ReferenceIndex(self._objects)

    def reachable_ids(self) -> Set[str]:
        """IDs reachable from the root object through references."""
        return self.reference_index().reachable_from(self.root_object_id)

    def reference_snapshot(self) -> Tuple[Set[str], Set[Tuple[str, str, str]]]:
        """Capture reachable IDs and dangling references for a later check."""
        index = self.reference_index()
        return index.reachable_from(self.root_object_id), set(index.dangling_references())

    def verify_references(
        self,
        reachable_before: Set[str],
        dangling_before: Set[Tuple[str, str, str]],
    ) -> None:
        """Check that mutations since a snapshot kept the graph connected.

        Args:
            reachable_before: Reachable IDs from :meth:`reference_snapshot`.
            dangling_before: Dangling references from the same snapshot.

        Raises:
            GraphIntegrityError: If a previously reachable object became
                unreachable, a created object is unreachable, or a new
                dangling reference appeared.
        """
        index = self.reference_index()
        reachable = index.reachable_from(self.root_object_id)
        problems = []

        lost = reachable_before - reachable
        if lost:
            problems.append(f"no longer reachable: {', '.join(sorted(lost))}")
        orphaned = self._created - reachable
        if orphaned:
            problems.append(f"created but unreachable: {', '.join(sorted(orphaned))}")
        dangling = set(index.dangling_references()) - dangling_before
        if dangling:
            problems.append(
                "new dangling references: "
                + ", ".join(f"{src}.{attr} -> {dst}" for src, attr, dst in sorted(dangling))
            )

        if problems:
            raise GraphIntegrityError("; ".join(problems))
        logger.debug("Reference check passed: %d reachable objects", len(reachable))
