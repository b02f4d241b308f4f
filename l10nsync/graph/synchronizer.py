"""Localization synchronizer for the Xcode project manifest graph.

Ensures that every locale has an ``<locale>.lproj/InfoPlist.strings`` file
reference, that those references live in one ``InfoPlist.strings`` variant
group, that the variant group is in the navigator group and in the resources
build phase, and that the project knows every locale as a region.

The synchronization is additive: no existing object is removed or re-keyed.
Existing objects are always found by a stable attribute (path or name),
never by ID, because IDs of objects created by earlier runs are random.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from l10nsync.graph.manager import ProjectGraph
from l10nsync.graph.schema import (
    GROUP_SOURCE_TREE,
    STRINGS_FILE_TYPE,
    BuildFile,
    FileReference,
    GraphIntegrityError,
    Group,
    NodeKind,
    ResourcesBuildPhase,
    VariantGroup,
)

logger = logging.getLogger("l10nsync.graph.synchronizer")

DEFAULT_STRINGS_NAME = "InfoPlist.strings"
DEFAULT_DEVELOPMENT_REGION = "en"
BASE_REGION = "Base"


@dataclass
class SyncReport:
    """What one synchronization changed."""

    graph: ProjectGraph
    variant_group_id: str = ""
    known_regions: List[str] = field(default_factory=list)
    regions_added: List[str] = field(default_factory=list)
    regions_rewritten: bool = False
    created: List[Tuple[str, str]] = field(default_factory=list)
    memberships_added: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.regions_rewritten or self.created or self.memberships_added)


def _dedupe(items: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


class ManifestSynchronizer:
    """Idempotent localization update of a ProjectGraph."""

    def __init__(
        self,
        strings_name: str = DEFAULT_STRINGS_NAME,
        baseline_regions: Sequence[str] = (BASE_REGION,),
        group_name: Optional[str] = None,
    ) -> None:
        """Initialize the synchronizer.

        Args:
            strings_name: Name of the localized resource file.
            baseline_regions: Regions always present in ``knownRegions``,
                after the development region.
            group_name: Name of the main group's child group that should
                hold the variant group. ``None`` uses the main group itself.
        """
        self.strings_name = strings_name
        self.baseline_regions = list(baseline_regions)
        self.group_name = group_name

    def synchronize(self, graph: ProjectGraph, locales: Iterable[str]) -> SyncReport:
        """Bring the graph in line with ``locales``.

        Args:
            graph: Graph loaded for this run; mutated in place.
            locales: Locale identifiers to register.

        Returns:
            SyncReport: Summary of the changes.

        Raises:
            ValueError: If ``locales`` is empty.
            GraphIntegrityError: If a structurally required object is missing,
                or the mutation left an object unreachable or a reference
                dangling.
        """
        ordered = sorted(set(locales))
        if not ordered:
            raise ValueError("synchronize() needs at least one locale")

        report = SyncReport(graph=graph)

        # Resolve every required container before mutating anything.
        project_id, project = graph.project()
        group_id = self._resolve_target_group(graph, project.main_group)
        phase_id, _ = graph.resources_phase()
        reachable_before, dangling_before = graph.reference_snapshot()

        self._update_known_regions(graph, project_id, ordered, report)

        variant_id = self._ensure_variant_group(graph, report)
        report.variant_group_id = variant_id
        self._ensure_child(graph, group_id, Group, variant_id, self.strings_name, report)

        build_file_id = graph.find_build_file(variant_id)
        if build_file_id is None:
            build_file_id = graph.add(BuildFile.create(file_ref=variant_id))
            report.created.append((NodeKind.BUILD_FILE.value, build_file_id))
        self._ensure_phase_member(graph, phase_id, build_file_id, report)

        for locale in ordered:
            ref_id = self._ensure_file_reference(graph, locale, report)
            self._ensure_child(graph, variant_id, VariantGroup, ref_id, locale, report)

        graph.verify_references(reachable_before, dangling_before)

        if report.changed:
            logger.info(
                "Manifest updated: %d object(s) created, %d membership(s) added, regions added: %s",
                len(report.created),
                len(report.memberships_added),
                ", ".join(report.regions_added) or "none",
            )
        else:
            logger.info("Manifest already up to date for %d locale(s)", len(ordered))
        return report

    def _resolve_target_group(self, graph: ProjectGraph, main_group_id: str) -> str:
        main_group = graph.get(main_group_id, Group)
        if not isinstance(graph.objects[main_group_id].get("children"), list):
            raise GraphIntegrityError(
                f"Main group {main_group_id} has no resolvable children list"
            )
        if self.group_name is None:
            return main_group_id

        for child_id in main_group.children:
            if graph.kind_of(child_id) != NodeKind.GROUP.value:
                continue
            child = graph.get(child_id, Group)
            if child.display_name == self.group_name:
                if not isinstance(graph.objects[child_id].get("children"), list):
                    raise GraphIntegrityError(
                        f"Group {self.group_name!r} has no resolvable children list"
                    )
                return child_id
        raise GraphIntegrityError(
            f"Group {self.group_name!r} not found under the main group"
        )

    def _update_known_regions(
        self,
        graph: ProjectGraph,
        project_id: str,
        locales: List[str],
        report: SyncReport,
    ) -> None:
        _, project = graph.project()
        development_region = project.development_region or DEFAULT_DEVELOPMENT_REGION
        baseline = _dedupe([development_region, *self.baseline_regions])

        current = project.known_regions
        if current is None:
            current = []
        merged = _dedupe([*current, *baseline, *locales])
        report.known_regions = merged

        if merged == project.known_regions:
            return
        report.regions_added = [region for region in merged if region not in current]
        report.regions_rewritten = True
        project.known_regions = merged
        graph.update(project_id, project)
        logger.debug("knownRegions now: %s", ", ".join(merged))

    def _ensure_variant_group(self, graph: ProjectGraph, report: SyncReport) -> str:
        for node_id, group in graph.iter_nodes(VariantGroup):
            if group.name == self.strings_name:
                logger.debug("Reusing variant group %s", node_id)
                return node_id

        record = VariantGroup.create(
            name=self.strings_name,
            children=[],
            source_tree=GROUP_SOURCE_TREE,
        )
        node_id = graph.add(record, label=self.strings_name)
        report.created.append((NodeKind.VARIANT_GROUP.value, node_id))
        return node_id

    def _ensure_file_reference(
        self, graph: ProjectGraph, locale: str, report: SyncReport
    ) -> str:
        path = f"{locale}.lproj/{self.strings_name}"
        for node_id, ref in graph.iter_nodes(FileReference):
            if ref.path == path:
                return node_id

        record = FileReference.create(
            last_known_file_type=STRINGS_FILE_TYPE,
            name=locale,
            path=path,
            source_tree=GROUP_SOURCE_TREE,
        )
        node_id = graph.add(record, label=locale)
        report.created.append((NodeKind.FILE_REFERENCE.value, node_id))
        return node_id

    def _ensure_child(
        self,
        graph: ProjectGraph,
        container_id: str,
        container_type: type,
        child_id: str,
        label: str,
        report: SyncReport,
    ) -> None:
        container = graph.get(container_id, container_type)
        if child_id in container.children:
            return
        container.children.append(child_id)
        graph.update(container_id, container)
        graph.set_label(child_id, label)
        report.memberships_added.append((container_id, child_id))

    def _ensure_phase_member(
        self,
        graph: ProjectGraph,
        phase_id: str,
        build_file_id: str,
        report: SyncReport,
    ) -> None:
        phase = graph.get(phase_id, ResourcesBuildPhase)
        if build_file_id in phase.files:
            return
        phase.files.append(build_file_id)
        graph.update(phase_id, phase)
        report.memberships_added.append((phase_id, build_file_id))


def synchronize(
    graph: ProjectGraph,
    locales: Iterable[str],
    strings_name: str = DEFAULT_STRINGS_NAME,
    baseline_regions: Sequence[str] = (BASE_REGION,),
    group_name: Optional[str] = None,
) -> ProjectGraph:
    """Synchronize ``graph`` with ``locales`` in place and return it."""
    synchronizer = ManifestSynchronizer(
        strings_name=strings_name,
        baseline_regions=baseline_regions,
        group_name=group_name,
    )
    return synchronizer.synchronize(graph, locales).graph
