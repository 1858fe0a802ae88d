"""
Layout algorithms for diagram shapes.

Provides various layout strategies that can be applied to diagrams:
- Hierarchical: BFS levels from root shapes (orthogonal uses wider spacing)
- Force-directed: spring physics (organic uses longer, stronger tuning)
- Circular: evenly spaced on a circle
- Tree: subtree-width tree from each root
- Grid: row-major grid

The per-algorithm functions modify shapes in-place and return the modified
list. apply_layout() works on a deep copy so the caller's diagram is never
touched.
"""

import logging
import math
import random
from typing import Any, Callable, Optional, Union, TYPE_CHECKING

from .config import get_settings
from .graph import build_adjacency, hierarchy_levels, root_ids, valid_connections
from .models import LayoutAlgorithm, LayoutDirection, LayoutOptions, coerce_diagram

if TYPE_CHECKING:
    from .models import Shape, Connection, Diagram

logger = logging.getLogger(__name__)


# Default layout parameters
DEFAULT_LEVEL_SEPARATION = 150
DEFAULT_NODE_SEPARATION = 200
DEFAULT_START_X = 100
DEFAULT_START_Y = 100

# Force-directed parameters
DEFAULT_ITERATIONS = 100
DEFAULT_K = 100.0
DEFAULT_C = 0.01
MAX_DISPLACEMENT = 10.0
INITIAL_BOX_WIDTH = 1000.0
INITIAL_BOX_HEIGHT = 1000.0


def _is_left_right(direction: Union[LayoutDirection, str]) -> bool:
    return LayoutDirection(direction) == LayoutDirection.LEFT_RIGHT


def hierarchical_layout(
    shapes: list["Shape"],
    connections: list["Connection"],
    direction: Union[LayoutDirection, str] = LayoutDirection.TOP_DOWN,
    level_separation: float = DEFAULT_LEVEL_SEPARATION,
    node_separation: float = DEFAULT_NODE_SEPARATION,
    start_x: float = DEFAULT_START_X,
    start_y: float = DEFAULT_START_Y
) -> list["Shape"]:
    """
    Arrange shapes in levels based on connection directions.

    Shapes with no incoming connections form the first level; each following
    level holds the shapes first reached from the previous one. Shapes in a
    level are centred on the level axis.

    Shapes that BFS never reaches (a cycle with no root feeding it) keep
    their current position. Give every such component a root shape if full
    coverage is needed.

    Args:
        shapes: Shapes to arrange
        connections: Connections defining the hierarchy
        direction: "top-down" (levels along Y) or "left-right" (levels along X)
        level_separation: Gap between consecutive levels
        node_separation: Gap between neighbouring shapes in a level
        start_x: X coordinate of the first level / level axis
        start_y: Y coordinate of the first level / level axis

    Returns:
        The same list of shapes (modified in-place)
    """
    if not shapes:
        return shapes

    adjacency = build_adjacency(shapes, connections)
    levels = hierarchy_levels(adjacency)
    shape_map = {s.id: s for s in shapes}
    left_right = _is_left_right(direction)

    # One step per slot keeps every level on the same grid
    max_width = max(s.size.width for s in shapes)
    max_height = max(s.size.height for s in shapes)
    if left_right:
        level_step = max_width + level_separation
        sibling_step = max_height + node_separation
    else:
        level_step = max_height + level_separation
        sibling_step = max_width + node_separation

    for depth, members in enumerate(levels):
        offset = (len(members) - 1) / 2
        for index, shape_id in enumerate(members):
            along = depth * level_step
            across = (index - offset) * sibling_step
            if left_right:
                shape_map[shape_id].move_to(start_x + along, start_y + across)
            else:
                shape_map[shape_id].move_to(start_x + across, start_y + along)

    return shapes


def force_directed_layout(
    shapes: list["Shape"],
    connections: list["Connection"],
    iterations: int = DEFAULT_ITERATIONS,
    k: float = DEFAULT_K,
    c: float = DEFAULT_C,
    seed: Optional[int] = None,
    width: float = INITIAL_BOX_WIDTH,
    height: float = INITIAL_BOX_HEIGHT
) -> list["Shape"]:
    """
    Arrange shapes using a force-directed simulation.

    Simulates physical forces:
    - All shapes repel each other with force k^2 / d
    - Connected shapes attract each other with force d^2 / k

    Each step moves a shape along its net force scaled by `c`, capped at
    MAX_DISPLACEMENT. Every step is O(n^2) in the number of shapes.

    Unpositioned shapes start at a random point inside the
    (0, 0)-(width, height) box; placed shapes start where they are.

    Args:
        shapes: Shapes to arrange
        connections: Connections (connected shapes attract)
        iterations: Number of simulation steps
        k: Ideal distance between shapes
        c: Damping factor applied to the net force
        seed: Random seed for start positions (defaults to the `layout_seed` setting)
        width: Width of the start box
        height: Height of the start box

    Returns:
        The same list of shapes (modified in-place)
    """
    if not shapes:
        return shapes

    if seed is None:
        seed = get_settings().layout_seed
    rng = random.Random(seed)
    k = k if k > 0 else 1.0

    positions: dict[str, list[float]] = {}
    for shape in shapes:
        if shape.position is None:
            positions[shape.id] = [rng.uniform(0, width), rng.uniform(0, height)]
        else:
            positions[shape.id] = [shape.position.x, shape.position.y]

    # Self-loops have no direction to pull along
    springs = [
        (conn.source, conn.target)
        for conn in valid_connections(shapes, connections)
        if conn.source != conn.target
    ]
    ids = list(positions)
    k_squared = k * k

    for _ in range(iterations):
        forces: dict[str, list[float]] = {shape_id: [0.0, 0.0] for shape_id in ids}

        # Repulsion between all shape pairs
        for i, id1 in enumerate(ids):
            p1 = positions[id1]
            for id2 in ids[i + 1:]:
                p2 = positions[id2]
                dx = p1[0] - p2[0]
                dy = p1[1] - p2[1]
                dist = math.hypot(dx, dy)
                if dist == 0:
                    dx, dy, dist = 1.0, 0.0, 1.0

                force = k_squared / dist
                fx = force * dx / dist
                fy = force * dy / dist

                forces[id1][0] += fx
                forces[id1][1] += fy
                forces[id2][0] -= fx
                forces[id2][1] -= fy

        # Attraction along connections
        for source, target in springs:
            ps = positions[source]
            pt = positions[target]
            dx = pt[0] - ps[0]
            dy = pt[1] - ps[1]
            dist = math.hypot(dx, dy)
            if dist == 0:
                continue

            force = dist * dist / k
            fx = force * dx / dist
            fy = force * dy / dist

            forces[source][0] += fx
            forces[source][1] += fy
            forces[target][0] -= fx
            forces[target][1] -= fy

        # Apply forces with damping, capped per step
        for shape_id in ids:
            fx, fy = forces[shape_id]
            magnitude = math.hypot(fx, fy)
            if magnitude == 0 or not math.isfinite(magnitude):
                continue
            step = min(magnitude * c, MAX_DISPLACEMENT)
            positions[shape_id][0] += fx / magnitude * step
            positions[shape_id][1] += fy / magnitude * step

    for shape in shapes:
        x, y = positions[shape.id]
        shape.move_to(x, y)

    return shapes


def circular_layout(
    shapes: list["Shape"],
    radius: float = 200,
    center_x: float = 400,
    center_y: float = 400
) -> list["Shape"]:
    """
    Place shapes evenly around a circle, starting at angle 0.

    Returns:
        The same list of shapes (modified in-place)
    """
    if not shapes:
        return shapes

    angle_step = 2 * math.pi / len(shapes)
    for i, shape in enumerate(shapes):
        angle = i * angle_step
        shape.move_to(
            center_x + radius * math.cos(angle),
            center_y + radius * math.sin(angle)
        )

    return shapes


def tree_layout(
    shapes: list["Shape"],
    connections: list["Connection"],
    direction: Union[LayoutDirection, str] = LayoutDirection.TOP_DOWN,
    level_separation: float = DEFAULT_LEVEL_SEPARATION,
    sibling_separation: float = DEFAULT_NODE_SEPARATION,
    start_x: float = DEFAULT_START_X,
    start_y: float = DEFAULT_START_Y
) -> list["Shape"]:
    """
    Arrange shapes as a forest of trees, one per root shape.

    Each shape joins the tree of the first parent that reaches it, so shapes
    with several parents appear once. A leaf takes one unit of width, a
    parent the sum of its children's widths, and each parent is centred over
    its children. Trees are placed side by side in root order.

    Shapes not reachable from a root keep their current position.

    Args:
        shapes: Shapes to arrange
        connections: Connections defining parent -> child
        direction: "top-down" (depth along Y) or "left-right" (depth along X)
        level_separation: Distance between depths
        sibling_separation: Distance per unit of subtree width
        start_x: X coordinate of the first tree's left edge / root
        start_y: Y coordinate of the first tree's top edge / root

    Returns:
        The same list of shapes (modified in-place)
    """
    if not shapes:
        return shapes

    adjacency = build_adjacency(shapes, connections)
    shape_map = {s.id: s for s in shapes}
    left_right = _is_left_right(direction)

    # Claim children breadth-first so each shape has a single parent
    children: dict[str, list[str]] = {}
    depth: dict[str, int] = {}
    order: list[str] = []
    roots = root_ids(adjacency)
    for root in roots:
        depth[root] = 0
    for root in roots:
        queue = [root]
        while queue:
            current = queue.pop(0)
            order.append(current)
            children[current] = []
            for child in adjacency[current]:
                if child not in depth:
                    depth[child] = depth[current] + 1
                    children[current].append(child)
                    queue.append(child)

    # Subtree widths, children before parents
    widths: dict[str, int] = {}
    for node in reversed(order):
        widths[node] = sum(widths[c] for c in children[node]) or 1

    offsets: dict[str, float] = {}
    cursor = 0.0
    for root in roots:
        offsets[root] = cursor
        cursor += widths[root]

    for node in order:
        child_offset = offsets[node]
        for child in children[node]:
            offsets[child] = child_offset
            child_offset += widths[child]

        across = (offsets[node] + (widths[node] - 1) / 2) * sibling_separation
        along = depth[node] * level_separation
        if left_right:
            shape_map[node].move_to(start_x + along, start_y + across)
        else:
            shape_map[node].move_to(start_x + across, start_y + along)

    return shapes


def grid_layout(
    shapes: list["Shape"],
    columns: Optional[int] = None,
    cell_width: float = 150,
    cell_height: float = 100,
    padding: float = 20,
    start_x: float = DEFAULT_START_X,
    start_y: float = DEFAULT_START_Y
) -> list["Shape"]:
    """
    Arrange shapes in a grid pattern, row by row.

    Args:
        shapes: Shapes to arrange
        columns: Number of columns (auto-calculated if None)
        cell_width: Width of a grid cell
        cell_height: Height of a grid cell
        padding: Space between cells
        start_x: X coordinate of the first cell
        start_y: Y coordinate of the first cell

    Returns:
        The same list of shapes (modified in-place)
    """
    if not shapes:
        return shapes

    # Auto-calculate columns based on shape count
    if columns is None:
        columns = max(3, int(len(shapes) ** 0.5) + 1)
    columns = max(1, columns)

    for i, shape in enumerate(shapes):
        row = i // columns
        col = i % columns
        shape.move_to(
            start_x + col * (cell_width + padding),
            start_y + row * (cell_height + padding)
        )

    return shapes


def _with_connections(func: Callable) -> Callable[["Diagram", dict], Any]:
    return lambda diagram, kwargs: func(diagram.shapes, diagram.connections, **kwargs)


def _shapes_only(func: Callable) -> Callable[["Diagram", dict], Any]:
    return lambda diagram, kwargs: func(diagram.shapes, **kwargs)


# algorithm -> (runner, accepted option names, algorithm defaults)
_HIERARCHICAL_OPTIONS = ("direction", "level_separation", "node_separation", "start_x", "start_y")
_FORCE_OPTIONS = ("iterations", "k", "c", "seed", "width", "height")

_LAYOUTS: dict[LayoutAlgorithm, tuple[Callable, tuple[str, ...], dict]] = {
    LayoutAlgorithm.HIERARCHICAL: (
        _with_connections(hierarchical_layout), _HIERARCHICAL_OPTIONS, {}
    ),
    LayoutAlgorithm.ORTHOGONAL: (
        _with_connections(hierarchical_layout), _HIERARCHICAL_OPTIONS,
        {"level_separation": 200, "node_separation": 250}
    ),
    LayoutAlgorithm.FORCE_DIRECTED: (
        _with_connections(force_directed_layout), _FORCE_OPTIONS, {}
    ),
    LayoutAlgorithm.ORGANIC: (
        _with_connections(force_directed_layout), _FORCE_OPTIONS,
        {"iterations": 150, "k": 150.0, "c": 0.02}
    ),
    LayoutAlgorithm.CIRCULAR: (
        _shapes_only(circular_layout), ("radius", "center_x", "center_y"), {}
    ),
    LayoutAlgorithm.TREE: (
        _with_connections(tree_layout),
        ("direction", "level_separation", "sibling_separation", "start_x", "start_y"),
        {}
    ),
    LayoutAlgorithm.GRID: (
        _shapes_only(grid_layout),
        ("columns", "cell_width", "cell_height", "padding", "start_x", "start_y"),
        {}
    ),
}


def apply_layout(
    diagram: Union["Diagram", dict],
    algorithm: Union[LayoutAlgorithm, str],
    options: Union[LayoutOptions, dict, None] = None
) -> "Diagram":
    """
    Lay out a copy of the diagram.

    Args:
        diagram: The diagram to lay out (a Diagram or its dict form)
        algorithm: One of the LayoutAlgorithm values
        options: LayoutOptions or a dict of option names (snake_case or
            camelCase); options the algorithm does not use are ignored

    Returns:
        A new Diagram with updated positions; an unchanged copy if the
        algorithm is unknown

    Raises:
        InvalidDiagramError: if `diagram` is not a diagram
        pydantic.ValidationError: if an option has an invalid value
    """
    result = coerce_diagram(diagram).model_copy(deep=True)

    try:
        algorithm = LayoutAlgorithm(algorithm)
    except ValueError:
        logger.warning("Unknown layout algorithm %r, diagram left unchanged", algorithm)
        return result

    if options is None:
        options = LayoutOptions()
    elif isinstance(options, dict):
        options = LayoutOptions.model_validate(options)

    runner, accepted, defaults = _LAYOUTS[algorithm]
    given = options.set_values()
    kwargs = {**defaults, **{name: given[name] for name in accepted if name in given}}

    logger.debug(
        "Applying %s layout to diagram %s (%d shapes) with %s",
        algorithm.value, result.id, len(result.shapes), kwargs
    )
    runner(result, kwargs)
    return result
