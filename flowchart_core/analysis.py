"""
Diagram analysis - Structural metrics over a diagram's graph.

Provides one entry point, analyze_diagram(), plus a typed function per
analysis kind:
- Complexity: size, density and cyclomatic complexity
- Connectivity: degrees, weak connectivity, strongly connected components
- Hierarchy: BFS levels from root shapes
- Cycles: DFS back-edge detection
- Paths: root-to-dead-end simple path enumeration
- Clusters: weakly connected components

All functions are read-only; the diagram is never modified.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union, TYPE_CHECKING

from .config import get_settings
from .graph import (
    build_adjacency,
    hierarchy_levels,
    in_degrees,
    leaf_ids,
    out_degrees,
    root_ids,
    undirected_adjacency,
    valid_connections,
)
from .models import AnalysisKind, coerce_diagram

if TYPE_CHECKING:
    from .models import Diagram

logger = logging.getLogger(__name__)


def _round_score(value: float) -> int:
    """Round a 0-100 score half-up to an integer."""
    return int(math.floor(value + 0.5))


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


# --- Result types ---

@dataclass
class ComplexityMetrics:
    """
    Size and density of a diagram.

    `density` normalises by the undirected complete graph, so it is an
    approximation for directed diagrams and can exceed 1. `cyclomatic_complexity`
    is only meaningful for a single connected component and can be negative.
    """
    shape_count: int = 0
    connection_count: int = 0
    density: float = 0.0
    cyclomatic_complexity: int = 2
    avg_connections_per_shape: float = 0.0
    shape_type_diversity: float = 0.0
    complexity_score: int = 0

    def to_dict(self) -> dict:
        return {
            "shape_count": self.shape_count,
            "connection_count": self.connection_count,
            "density": self.density,
            "cyclomatic_complexity": self.cyclomatic_complexity,
            "avg_connections_per_shape": self.avg_connections_per_shape,
            "shape_type_diversity": self.shape_type_diversity,
            "complexity_score": self.complexity_score,
        }


@dataclass
class ConnectivityMetrics:
    """Degree statistics and connectedness of a diagram."""
    max_in_degree: int = 0
    max_out_degree: int = 0
    avg_in_degree: float = 0.0
    avg_out_degree: float = 0.0
    strongly_connected_components: int = 0
    is_connected: bool = False
    has_isolated_nodes: bool = False

    def to_dict(self) -> dict:
        return {
            "max_in_degree": self.max_in_degree,
            "max_out_degree": self.max_out_degree,
            "avg_in_degree": self.avg_in_degree,
            "avg_out_degree": self.avg_out_degree,
            "strongly_connected_components": self.strongly_connected_components,
            "is_connected": self.is_connected,
            "has_isolated_nodes": self.has_isolated_nodes,
        }


@dataclass
class HierarchyMetrics:
    """Shape of the BFS level structure rooted at shapes with no inputs."""
    max_depth: int = 0
    avg_shapes_per_level: float = 0.0
    root_shapes_count: int = 0
    leaf_shapes_count: int = 0
    avg_branching_factor: float = 0.0
    is_balanced: bool = True
    levels: list[list[str]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "max_depth": self.max_depth,
            "avg_shapes_per_level": self.avg_shapes_per_level,
            "root_shapes_count": self.root_shapes_count,
            "leaf_shapes_count": self.leaf_shapes_count,
            "avg_branching_factor": self.avg_branching_factor,
            "is_balanced": self.is_balanced,
            "levels": [list(level) for level in self.levels],
        }


@dataclass
class CycleMetrics:
    """Cycles found by DFS, one per back edge (not deduplicated)."""
    cycles: list[list[str]] = field(default_factory=list)

    @property
    def has_cycles(self) -> bool:
        return bool(self.cycles)

    @property
    def cycle_count(self) -> int:
        return len(self.cycles)

    def to_dict(self) -> dict:
        return {
            "has_cycles": self.has_cycles,
            "cycle_count": self.cycle_count,
            "cycles": [{"length": len(c), "nodes": list(c)} for c in self.cycles],
            "is_acyclic": not self.has_cycles,
        }


@dataclass
class PathMetrics:
    """Simple paths from each root shape to where it can go no further."""
    paths: list[list[str]] = field(default_factory=list)
    truncated: bool = False

    @property
    def total_paths(self) -> int:
        return len(self.paths)

    @property
    def max_path_length(self) -> int:
        return max((len(p) for p in self.paths), default=0)

    @property
    def avg_path_length(self) -> float:
        return round(_mean([len(p) for p in self.paths]), 2)

    @property
    def longest_paths(self) -> list[list[str]]:
        longest = self.max_path_length
        return [p for p in self.paths if len(p) == longest]

    def to_dict(self) -> dict:
        return {
            "total_paths": self.total_paths,
            "max_path_length": self.max_path_length,
            "avg_path_length": self.avg_path_length,
            "longest_paths": [list(p) for p in self.longest_paths],
            "truncated": self.truncated,
        }


@dataclass
class ConnectedComponent:
    """A weakly connected component in the diagram graph."""
    node_ids: list[str] = field(default_factory=list)
    edge_count: int = 0

    @property
    def size(self) -> int:
        return len(self.node_ids)


@dataclass
class ClusterMetrics:
    """Weakly connected components, in order of their first shape."""
    components: list[ConnectedComponent] = field(default_factory=list)

    def to_dict(self) -> dict:
        sizes = [c.size for c in self.components]
        return {
            "cluster_count": len(self.components),
            "max_cluster_size": max(sizes, default=0),
            "avg_cluster_size": round(_mean(sizes), 2),
            "clusters": [
                {
                    "id": f"cluster-{index}",
                    "size": component.size,
                    "nodes": list(component.node_ids),
                    "edge_count": component.edge_count,
                }
                for index, component in enumerate(self.components)
            ],
        }


# --- Graph algorithms ---

def find_connected_components(adjacency: dict[str, list[str]]) -> list[ConnectedComponent]:
    """
    Find all weakly connected components using BFS.

    Edges are treated as undirected, so every node is reachable from every
    other node of its component. Components are discovered in adjacency
    (shape) order.

    Args:
        adjacency: Directed adjacency list

    Returns:
        List of ConnectedComponent objects
    """
    neighbours = undirected_adjacency(adjacency)

    visited: set[str] = set()
    components: list[ConnectedComponent] = []

    for start_node in adjacency:
        if start_node in visited:
            continue

        component_nodes: list[str] = []
        queue = [start_node]
        visited.add(start_node)

        while queue:
            current = queue.pop(0)
            component_nodes.append(current)

            for neighbour in neighbours[current]:
                if neighbour not in visited:
                    visited.add(neighbour)
                    queue.append(neighbour)

        component_edges = sum(len(adjacency[node]) for node in component_nodes)
        components.append(ConnectedComponent(
            node_ids=component_nodes,
            edge_count=component_edges
        ))

    return components


def strongly_connected_components(adjacency: dict[str, list[str]]) -> list[list[str]]:
    """
    Tarjan's algorithm, iterative so deep graphs do not hit the recursion limit.

    Every node belongs to exactly one component; a node without a cycle
    through it forms a component of its own.
    """
    index_of: dict[str, int] = {}
    lowlink: dict[str, int] = {}
    on_stack: set[str] = set()
    stack: list[str] = []
    components: list[list[str]] = []
    counter = 0

    for start in adjacency:
        if start in index_of:
            continue

        index_of[start] = lowlink[start] = counter
        counter += 1
        stack.append(start)
        on_stack.add(start)
        work = [(start, iter(adjacency[start]))]

        while work:
            node, neighbours = work[-1]
            for neighbour in neighbours:
                if neighbour not in index_of:
                    index_of[neighbour] = lowlink[neighbour] = counter
                    counter += 1
                    stack.append(neighbour)
                    on_stack.add(neighbour)
                    work.append((neighbour, iter(adjacency[neighbour])))
                    break
                if neighbour in on_stack:
                    lowlink[node] = min(lowlink[node], index_of[neighbour])
            else:
                work.pop()
                if work:
                    parent = work[-1][0]
                    lowlink[parent] = min(lowlink[parent], lowlink[node])
                if lowlink[node] == index_of[node]:
                    component: list[str] = []
                    while True:
                        member = stack.pop()
                        on_stack.discard(member)
                        component.append(member)
                        if member == node:
                            break
                    components.append(component)

    return components


def find_cycles(adjacency: dict[str, list[str]]) -> list[list[str]]:
    """
    Find cycles with a depth-first search over shapes in order.

    Each node is expanded once. Meeting a node that is still on the current
    DFS path closes a cycle: the path slice from that node onwards. Cycles
    sharing nodes are reported once per closing edge and are not merged, and
    a self-loop is a cycle of length 1.

    Returns:
        List of cycles, each a list of node IDs (first node not repeated)
    """
    cycles: list[list[str]] = []
    visited: set[str] = set()

    for start in adjacency:
        if start in visited:
            continue

        visited.add(start)
        path = [start]
        on_path = {start}
        work = [iter(adjacency[start])]

        while work:
            for neighbour in work[-1]:
                if neighbour in on_path:
                    cycles.append(path[path.index(neighbour):])
                elif neighbour not in visited:
                    visited.add(neighbour)
                    path.append(neighbour)
                    on_path.add(neighbour)
                    work.append(iter(adjacency[neighbour]))
                    break
            else:
                work.pop()
                on_path.discard(path.pop())

    return cycles


def find_paths(
    adjacency: dict[str, list[str]],
    roots: list[str],
    max_paths: int
) -> tuple[list[list[str]], bool]:
    """
    Enumerate simple paths from each root using DFS.

    A path ends at a dead end, or where every successor is already on the
    path (so cycles cannot loop forever). The number of paths can grow
    exponentially with branching, so enumeration stops at `max_paths`.

    Args:
        adjacency: Directed adjacency list
        roots: Start nodes, in order
        max_paths: Maximum number of paths to collect

    Returns:
        (paths, truncated) where truncated is True if more paths existed
    """
    paths: list[list[str]] = []
    truncated = False

    for root in roots:
        path = [root]
        on_path = {root}
        work = [iter(adjacency[root])]
        extended = [False]

        while work:
            for neighbour in work[-1]:
                if neighbour not in on_path:
                    extended[-1] = True
                    path.append(neighbour)
                    on_path.add(neighbour)
                    work.append(iter(adjacency[neighbour]))
                    extended.append(False)
                    break
            else:
                work.pop()
                if not extended.pop():
                    if len(paths) >= max_paths:
                        truncated = True
                        break
                    paths.append(list(path))
                on_path.discard(path.pop())

        if truncated:
            break

    return paths, truncated


# --- Analyses ---

def analyze_complexity(diagram: "Diagram") -> ComplexityMetrics:
    """Count-based complexity metrics and the 0-100 complexity score."""
    diagram = coerce_diagram(diagram)
    shape_count = len(diagram.shapes)
    connection_count = len(valid_connections(diagram.shapes, diagram.connections))
    density = connection_count / max(1, shape_count * (shape_count - 1) / 2)

    avg_connections = connection_count / shape_count if shape_count else 0.0
    shape_types = {s.type for s in diagram.shapes}
    diversity = len(shape_types) / max(1, shape_count)

    shape_score = min(shape_count / 50 * 100, 100)
    connection_score = min(connection_count / 100 * 100, 100)
    density_score = min(density * 100, 100)

    return ComplexityMetrics(
        shape_count=shape_count,
        connection_count=connection_count,
        density=round(density, 2),
        cyclomatic_complexity=connection_count - shape_count + 2,
        avg_connections_per_shape=round(avg_connections, 2),
        shape_type_diversity=round(diversity, 2),
        complexity_score=_round_score((shape_score + connection_score + density_score) / 3),
    )


def analyze_connectivity(diagram: "Diagram") -> ConnectivityMetrics:
    """Degree statistics, weak connectivity and SCC count."""
    diagram = coerce_diagram(diagram)
    adjacency = build_adjacency(diagram.shapes, diagram.connections)
    if not adjacency:
        return ConnectivityMetrics()

    ins = in_degrees(adjacency)
    outs = out_degrees(adjacency)
    count = len(adjacency)

    return ConnectivityMetrics(
        max_in_degree=max(ins.values()),
        max_out_degree=max(outs.values()),
        avg_in_degree=round(sum(ins.values()) / count, 2),
        avg_out_degree=round(sum(outs.values()) / count, 2),
        strongly_connected_components=len(strongly_connected_components(adjacency)),
        is_connected=len(find_connected_components(adjacency)) == 1,
        has_isolated_nodes=any(ins[n] == 0 and outs[n] == 0 for n in adjacency),
    )


def _is_balanced(levels: list[list[str]]) -> bool:
    """Low variance in level sizes relative to their mean means balanced."""
    if len(levels) <= 1:
        return True

    sizes = [len(level) for level in levels]
    avg_size = _mean(sizes)
    variance = _mean([(size - avg_size) ** 2 for size in sizes])
    return variance < avg_size * 0.5


def analyze_hierarchy(diagram: "Diagram") -> HierarchyMetrics:
    """
    BFS level structure from root shapes.

    Shapes unreachable from any root are not on any level, but still count
    towards `avg_shapes_per_level` (which divides all shapes by the depth).
    """
    diagram = coerce_diagram(diagram)
    adjacency = build_adjacency(diagram.shapes, diagram.connections)
    levels = hierarchy_levels(adjacency)
    max_depth = len(levels)

    branching = [
        _mean([len(adjacency[node]) for node in level])
        for level in levels
    ]

    return HierarchyMetrics(
        max_depth=max_depth,
        avg_shapes_per_level=round(len(diagram.shapes) / max(1, max_depth), 2),
        root_shapes_count=len(root_ids(adjacency)),
        leaf_shapes_count=len(leaf_ids(adjacency)),
        avg_branching_factor=round(_mean(branching), 2),
        is_balanced=_is_balanced(levels),
        levels=levels,
    )


def analyze_cycles(diagram: "Diagram") -> CycleMetrics:
    diagram = coerce_diagram(diagram)
    adjacency = build_adjacency(diagram.shapes, diagram.connections)
    return CycleMetrics(cycles=find_cycles(adjacency))


def analyze_paths(diagram: "Diagram", max_paths: Optional[int] = None) -> PathMetrics:
    """
    Enumerate root-to-leaf paths.

    Args:
        diagram: The diagram to analyze
        max_paths: Path ceiling (defaults to the `max_paths` setting)
    """
    diagram = coerce_diagram(diagram)
    if max_paths is None:
        max_paths = get_settings().max_paths

    adjacency = build_adjacency(diagram.shapes, diagram.connections)
    paths, truncated = find_paths(adjacency, root_ids(adjacency), max_paths)
    if truncated:
        logger.warning(
            "Path enumeration for diagram %s stopped at %d paths",
            diagram.id, max_paths
        )
    return PathMetrics(paths=paths, truncated=truncated)


def analyze_clusters(diagram: "Diagram") -> ClusterMetrics:
    diagram = coerce_diagram(diagram)
    adjacency = build_adjacency(diagram.shapes, diagram.connections)
    return ClusterMetrics(components=find_connected_components(adjacency))


def overall_score(
    complexity: ComplexityMetrics,
    connectivity: ConnectivityMetrics,
    hierarchy: HierarchyMetrics
) -> int:
    """Weighted 0-100 score: 40% complexity, 30% connectedness, 30% balance."""
    score = (
        complexity.complexity_score * 0.4
        + (100 if connectivity.is_connected else 50) * 0.3
        + (100 if hierarchy.is_balanced else 70) * 0.3
    )
    return _round_score(score)


def analyze_metrics(diagram: "Diagram") -> dict:
    """Every analysis merged into one dict, plus the overall score."""
    diagram = coerce_diagram(diagram)
    complexity = analyze_complexity(diagram)
    connectivity = analyze_connectivity(diagram)
    hierarchy = analyze_hierarchy(diagram)

    return {
        **complexity.to_dict(),
        **connectivity.to_dict(),
        **hierarchy.to_dict(),
        **analyze_cycles(diagram).to_dict(),
        **analyze_paths(diagram).to_dict(),
        **analyze_clusters(diagram).to_dict(),
        "overall_score": overall_score(complexity, connectivity, hierarchy),
    }


_ANALYSES: dict[AnalysisKind, Callable[["Diagram"], Any]] = {
    AnalysisKind.COMPLEXITY: analyze_complexity,
    AnalysisKind.CONNECTIVITY: analyze_connectivity,
    AnalysisKind.HIERARCHY: analyze_hierarchy,
    AnalysisKind.CYCLES: analyze_cycles,
    AnalysisKind.PATHS: analyze_paths,
    AnalysisKind.CLUSTERS: analyze_clusters,
    AnalysisKind.METRICS: analyze_metrics,
}


def analyze_diagram(diagram: Union["Diagram", dict], kind: Union[AnalysisKind, str]) -> dict:
    """
    Run one analysis and return its JSON-ready result.

    Args:
        diagram: The diagram to analyze (a Diagram or its dict form)
        kind: One of the AnalysisKind values

    Returns:
        Result dictionary; empty if `kind` is not a known analysis

    Raises:
        InvalidDiagramError: if `diagram` is not a diagram
    """
    diagram = coerce_diagram(diagram)
    try:
        kind = AnalysisKind(kind)
    except ValueError:
        logger.warning("Unknown analysis kind %r, returning empty result", kind)
        return {}

    logger.debug(
        "Running %s analysis on diagram %s (%d shapes, %d connections)",
        kind.value, diagram.id, len(diagram.shapes), len(diagram.connections)
    )
    result = _ANALYSES[kind](diagram)
    return result if isinstance(result, dict) else result.to_dict()
