"""
Flowchart Tool Core - Diagram models, structural analysis, and layout algorithms.

This module provides the functionality used by both library callers and the
MCP tools, ensuring a single source of truth for all diagram logic.
"""

from .models import (
    # Enums
    ShapeType,
    AnalysisKind,
    LayoutAlgorithm,
    LayoutDirection,
    # Core models
    Position,
    Size,
    Shape,
    Connection,
    Diagram,
    LayoutOptions,
    coerce_diagram,
)

from .exceptions import FlowchartError, InvalidDiagramError
from .validation import validate_diagram, validation_summary, ValidationIssue, IssueSeverity
from .analysis import (
    analyze_diagram,
    analyze_complexity,
    analyze_connectivity,
    analyze_hierarchy,
    analyze_cycles,
    analyze_paths,
    analyze_clusters,
    analyze_metrics,
)
from .layout import (
    apply_layout,
    hierarchical_layout,
    force_directed_layout,
    circular_layout,
    tree_layout,
    grid_layout,
)

__version__ = "0.1.0"

__all__ = [
    # Enums
    "ShapeType",
    "AnalysisKind",
    "LayoutAlgorithm",
    "LayoutDirection",
    # Models
    "Position",
    "Size",
    "Shape",
    "Connection",
    "Diagram",
    "LayoutOptions",
    "coerce_diagram",
    # Errors
    "FlowchartError",
    "InvalidDiagramError",
    # Validation
    "validate_diagram",
    "validation_summary",
    "ValidationIssue",
    "IssueSeverity",
    # Analysis
    "analyze_diagram",
    "analyze_complexity",
    "analyze_connectivity",
    "analyze_hierarchy",
    "analyze_cycles",
    "analyze_paths",
    "analyze_clusters",
    "analyze_metrics",
    # Layout
    "apply_layout",
    "hierarchical_layout",
    "force_directed_layout",
    "circular_layout",
    "tree_layout",
    "grid_layout",
]
