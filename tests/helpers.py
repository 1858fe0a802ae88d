"""Diagram builders shared by the test modules."""

from flowchart_core import Connection, Diagram, Shape


def make_diagram(edges, extra_shapes=(), positions=None):
    """Build a diagram from (source, target) pairs; shapes appear in first-seen order."""
    ids = []
    for source, target in edges:
        for shape_id in (source, target):
            if shape_id not in ids:
                ids.append(shape_id)
    for shape_id in extra_shapes:
        if shape_id not in ids:
            ids.append(shape_id)

    positions = positions or {}
    shapes = [
        Shape(id=shape_id, label=shape_id, position=positions.get(shape_id))
        for shape_id in ids
    ]
    connections = [Connection(source=s, target=t) for s, t in edges]
    return Diagram(name="test", shapes=shapes, connections=connections)
