"""Reference index over the manifest object table.

Wraps NetworkX so reachability and dangling-reference checks do not have
to walk the raw object table by hand.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Set, Tuple

import networkx as nx

from l10nsync.graph.schema import REFERENCE_KEYS

logger = logging.getLogger("l10nsync.graph.backend")


def _referenced_ids(value: Any) -> Iterable[str]:
    if isinstance(value, str):
        yield value
    elif isinstance(value, list):
        for item in value:
            if isinstance(item, str):
                yield item


class ReferenceIndex:
    """Directed multigraph of ``object -> referenced object`` edges.

    Nodes carry the ``isa`` of the object; edges carry the attribute name
    (``kind``) the reference was found under. References to IDs that are
    not in the table become nodes with ``missing=True``.
    """

    def __init__(self, objects: Mapping[str, Mapping[str, Any]]) -> None:
        """Build the index from a raw object table.

        Args:
            objects: Mapping of object ID to raw attribute mapping.
        """
        self._graph = nx.MultiDiGraph()
        for node_id, attrs in objects.items():
            isa = attrs.get("isa") if isinstance(attrs, Mapping) else None
            self._graph.add_node(node_id, isa=isa, missing=False)

        for node_id, attrs in objects.items():
            if not isinstance(attrs, Mapping):
                continue
            for key, value in attrs.items():
                if key not in REFERENCE_KEYS:
                    continue
                for target in _referenced_ids(value):
                    if not self._graph.has_node(target):
                        self._graph.add_node(target, isa=None, missing=True)
                    self._graph.add_edge(node_id, target, kind=key)

        logger.debug(
            "Reference index built: %d objects, %d references",
            self._graph.number_of_nodes(),
            self._graph.number_of_edges(),
        )

    @property
    def native_graph(self) -> nx.MultiDiGraph:
        """Get the native NetworkX graph for advanced operations."""
        return self._graph

    def reachable_from(self, node_id: str) -> Set[str]:
        """Return every object reachable from ``node_id``, itself included."""
        if not self._graph.has_node(node_id):
            return set()
        reachable = set(nx.descendants(self._graph, node_id))
        reachable.add(node_id)
        return reachable

    def dangling_references(self) -> List[Tuple[str, str, str]]:
        """List references whose target is not in the object table.

        Returns:
            List[Tuple[str, str, str]]: ``(source, attribute, target)`` triples.
        """
        dangling: List[Tuple[str, str, str]] = []
        for source, target, data in self._graph.edges(data=True):
            if self._graph.nodes[target].get("missing"):
                dangling.append((source, data.get("kind", ""), target))
        return dangling

    def referrers(self, node_id: str, kind: str | None = None) -> List[str]:
        """Return objects referencing ``node_id``, optionally through one attribute."""
        if not self._graph.has_node(node_id):
            return []
        result: List[str] = []
        for source, _, data in self._graph.in_edges(node_id, data=True):
            if kind is None or data.get("kind") == kind:
                if source not in result:
                    result.append(source)
        return result

    def kinds(self) -> Dict[str, int]:
        """Count objects per ``isa``."""
        counts: Dict[str, int] = {}
        for _, data in self._graph.nodes(data=True):
            if data.get("missing"):
                continue
            isa = data.get("isa") or "unknown"
            counts[isa] = counts.get(isa, 0) + 1
        return counts
