"""
Graph derivation helpers shared by analysis and layout.

Everything here is rebuilt per call from a diagram's shapes and connections;
nothing is cached or stored on the diagram. Connections whose source or target
is not a shape id are skipped, so callers never see dangling references.
"""

from collections import deque
from typing import Iterable, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Shape, Connection


def valid_connections(
    shapes: Iterable["Shape"],
    connections: Iterable["Connection"]
) -> list["Connection"]:
    """Connections whose endpoints both exist, in their original order."""
    ids = {s.id for s in shapes}
    return [c for c in connections if c.source in ids and c.target in ids]


def build_adjacency(
    shapes: list["Shape"],
    connections: list["Connection"]
) -> dict[str, list[str]]:
    """
    Build the directed adjacency list.

    Keys follow shape order. Duplicate connections keep duplicate targets,
    so multi-edges stay visible to degree and path counting.
    """
    adjacency: dict[str, list[str]] = {s.id: [] for s in shapes}
    for conn in connections:
        if conn.source in adjacency and conn.target in adjacency:
            adjacency[conn.source].append(conn.target)
    return adjacency


def undirected_adjacency(adjacency: dict[str, list[str]]) -> dict[str, list[str]]:
    """Symmetrise a directed adjacency list (no duplicate neighbours)."""
    neighbours: dict[str, dict[str, None]] = {node: {} for node in adjacency}
    for source, targets in adjacency.items():
        for target in targets:
            neighbours[source][target] = None
            neighbours[target][source] = None
    return {node: list(n) for node, n in neighbours.items()}


def in_degrees(adjacency: dict[str, list[str]]) -> dict[str, int]:
    degrees = {node: 0 for node in adjacency}
    for targets in adjacency.values():
        for target in targets:
            degrees[target] += 1
    return degrees


def out_degrees(adjacency: dict[str, list[str]]) -> dict[str, int]:
    return {node: len(targets) for node, targets in adjacency.items()}


def root_ids(adjacency: dict[str, list[str]]) -> list[str]:
    """Shapes with no incoming connections, in shape order."""
    degrees = in_degrees(adjacency)
    return [node for node in adjacency if degrees[node] == 0]


def leaf_ids(adjacency: dict[str, list[str]]) -> list[str]:
    """Shapes with no outgoing connections, in shape order."""
    return [node for node, targets in adjacency.items() if not targets]


def hierarchy_levels(adjacency: dict[str, list[str]]) -> list[list[str]]:
    """
    Assign shapes to levels by breadth-first search from the roots.

    A shape is placed on the level where BFS first reaches it and is never
    queued again, so cycles terminate. Shapes not reachable from any root
    (for example a cycle with no entry point) get no level at all.

    Returns:
        List of levels, each a list of shape ids in visit order
    """
    levels: list[list[str]] = []
    visited: set[str] = set()
    queue = deque((root, 0) for root in root_ids(adjacency))

    while queue:
        node, level = queue.popleft()
        if node in visited:
            continue
        visited.add(node)

        if level == len(levels):
            levels.append([])
        levels[level].append(node)

        for child in adjacency[node]:
            if child not in visited:
                queue.append((child, level + 1))

    return levels


def level_index(levels: list[list[str]]) -> dict[str, int]:
    """Map each levelled shape id to its level number."""
    return {node: depth for depth, members in enumerate(levels) for node in members}
