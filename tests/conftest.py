"""Pytest configuration and shared fixtures for flowchart_core tests."""

import pytest

from flowchart_core import Diagram, Position
from flowchart_core.config import get_settings

from tests.helpers import make_diagram


@pytest.fixture(autouse=True)
def fresh_settings():
    """Reload settings for every test so env changes do not leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def empty_diagram():
    return Diagram(name="empty")


@pytest.fixture
def linear_diagram():
    """A -> B -> C"""
    return make_diagram([("A", "B"), ("B", "C")])


@pytest.fixture
def cyclic_diagram():
    """A -> B -> C -> A"""
    return make_diagram([("A", "B"), ("B", "C"), ("C", "A")])


@pytest.fixture
def diamond_diagram():
    """A branches to B and C, which join at D."""
    return make_diagram([("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")])


@pytest.fixture
def disjoint_diagram():
    """Two separate edges A -> B and C -> D."""
    return make_diagram([("A", "B"), ("C", "D")])


@pytest.fixture
def tree_diagram():
    """R has children A and B; A has children C and D."""
    return make_diagram([("R", "A"), ("R", "B"), ("A", "C"), ("A", "D")])


@pytest.fixture
def positioned_diagram():
    """Linear diagram whose shapes were already placed."""
    return make_diagram(
        [("A", "B"), ("B", "C")],
        positions={
            "A": Position(x=10, y=20),
            "B": Position(x=30, y=40),
            "C": Position(x=50, y=60),
        },
    )
