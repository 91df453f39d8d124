"""Immutable dependency graph with depth-first cycle detection."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from types import MappingProxyType

Cycle = tuple[str, ...]

_UNVISITED = 0
_ON_PATH = 1
_FINISHED = 2


class DependencyGraph:
    """
    Directed graph mapping each node id to the ids it depends on.

    Node and edge order follow insertion order so traversal output is
    reproducible for a given document. The graph is never mutated after
    construction.
    """

    __slots__ = ("_adjacency",)

    def __init__(self, adjacency: Mapping[str, tuple[str, ...]]) -> None:
        self._adjacency: Mapping[str, tuple[str, ...]] = MappingProxyType(dict(adjacency))

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Iterable[str]]) -> DependencyGraph:
        """Build from an ``id -> dependency ids`` mapping."""

        adjacency: dict[str, tuple[str, ...]] = {}
        for node_id, dependencies in mapping.items():
            _validate_node_id(node_id)
            adjacency[node_id] = tuple(dependencies)
        return cls(adjacency)

    @property
    def nodes(self) -> tuple[str, ...]:
        """All node ids in insertion order."""
        return tuple(self._adjacency)

    @property
    def edge_count(self) -> int:
        return sum(len(dependencies) for dependencies in self._adjacency.values())

    def dependencies(self, node_id: str) -> tuple[str, ...]:
        """Direct dependencies of ``node_id``; unknown nodes have none."""
        return self._adjacency.get(node_id, ())

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._adjacency

    def __len__(self) -> int:
        return len(self._adjacency)

    def detect_cycles(self) -> tuple[Cycle, ...]:
        """
        Detect directed cycles.

        Returns closed paths, e.g. ``("A", "B", "C", "A")``, in discovery
        order. Nodes finished from one traversal root are never re-entered
        from another, so a cycle reachable only through an already finished
        node can go unreported; a cyclic graph always yields at least one.
        """
        return _CycleWalker(self).walk()


class _CycleWalker:
    """Per-call traversal state for :meth:`DependencyGraph.detect_cycles`."""

    __slots__ = ("_graph", "_state", "_path", "_path_index", "_cycles")

    def __init__(self, graph: DependencyGraph) -> None:
        self._graph = graph
        self._state: dict[str, int] = {}
        self._path: list[str] = []
        self._path_index: dict[str, int] = {}
        self._cycles: list[Cycle] = []

    def walk(self) -> tuple[Cycle, ...]:
        for root in self._graph.nodes:
            if self._state.get(root, _UNVISITED) == _UNVISITED:
                self._visit(root)
        return tuple(self._cycles)

    def _visit(self, root: str) -> None:
        self._enter(root)
        frames: list[tuple[str, Iterator[str]]] = [(root, iter(self._graph.dependencies(root)))]

        while frames:
            node, neighbors = frames[-1]

            try:
                neighbor = next(neighbors)
            except StopIteration:
                frames.pop()
                self._leave(node)
                continue

            neighbor_state = self._state.get(neighbor, _UNVISITED)
            if neighbor_state == _ON_PATH:
                start = self._path_index[neighbor]
                self._cycles.append((*self._path[start:], neighbor))
                continue
            if neighbor_state == _FINISHED:
                continue

            self._enter(neighbor)
            frames.append((neighbor, iter(self._graph.dependencies(neighbor))))

    def _enter(self, node: str) -> None:
        self._state[node] = _ON_PATH
        self._path_index[node] = len(self._path)
        self._path.append(node)

    def _leave(self, node: str) -> None:
        self._state[node] = _FINISHED
        self._path.pop()
        del self._path_index[node]


def detect_cycles(mapping: Mapping[str, Sequence[str]] | DependencyGraph) -> tuple[Cycle, ...]:
    """Convenience wrapper accepting either a graph or a plain mapping."""

    graph = mapping if isinstance(mapping, DependencyGraph) else DependencyGraph.from_mapping(mapping)
    return graph.detect_cycles()


def _validate_node_id(node_id: str) -> None:
    if not isinstance(node_id, str) or not node_id:
        raise ValueError("Node ID must be a non-empty string.")


__all__ = ["Cycle", "DependencyGraph", "detect_cycles"]
